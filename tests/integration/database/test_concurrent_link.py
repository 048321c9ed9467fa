"""Concurrent wallet links against a file-backed SQLite database."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.exceptions import ErrorCode, WalletTakenError
from domain.entities.profile import Profile
from domain.entities.wallet import LinkedWallet
from domain.services.wallet_service import WalletService
from infrastructure.auth.address_recovery import EthAccountRecovery
from infrastructure.auth.challenge_codec import ChallengeCodec
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


@pytest.fixture
async def file_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine on disk, so every session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dashboard.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def file_uow_factory(
    file_engine: AsyncEngine,
) -> Callable[[TokenUser | None], SQLAlchemyUnitOfWork]:
    sessions = async_sessionmaker(
        bind=file_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    def factory(user: TokenUser | None = None) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(sessions)

    return factory


@pytest.mark.asyncio
async def test_two_users_linking_same_wallet_exactly_one_wins(
    file_uow_factory, alice_account: LocalAccount
) -> None:
    wallet = to_checksum_address(alice_account.address)
    first = TokenUser(id="wallet-user-1", wallet_address=wallet)
    second = TokenUser(id="wallet-user-2", wallet_address=wallet)
    async with file_uow_factory() as uow:
        await uow.profiles.create(Profile(user_id=first.id))
        await uow.profiles.create(Profile(user_id=second.id))
        await uow.commit()

    service = WalletService(
        file_uow_factory,
        codec=ChallengeCodec("concurrency-secret"),
        recovery=EthAccountRecovery(),
    )

    results = await asyncio.gather(
        service.link_from_session(first),
        service.link_from_session(second),
        return_exceptions=True,
    )

    linked = [r for r in results if isinstance(r, LinkedWallet)]
    taken = [r for r in results if isinstance(r, WalletTakenError)]
    assert len(linked) == 1
    assert len(taken) == 1
    assert taken[0].error_code == ErrorCode.WALLET_TAKEN

    async with file_uow_factory() as uow:
        owners = [
            profile
            for profile in (
                await uow.profiles.get_by_user_id(first.id),
                await uow.profiles.get_by_user_id(second.id),
            )
            if profile.wallet_address == wallet.lower()
        ]
    assert len(owners) == 1
