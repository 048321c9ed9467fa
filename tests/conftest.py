"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

# Test configuration must be in place before the application modules load
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["SUPABASE_JWT_SECRET"] = "test-claims-secret"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_ENV"] = "test"

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from helpers import ALICE_KEY, BOB_KEY, TEST_HOST, TEST_SESSION_SECRET
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables, one per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def db_uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[TokenUser | None], SQLAlchemyUnitOfWork]:
    """UoW factory over the test database (claims are not applied on SQLite)."""

    def factory(user: TokenUser | None = None) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def alice_account() -> LocalAccount:
    return Account.from_key(ALICE_KEY)


@pytest.fixture
def bob_account() -> LocalAccount:
    return Account.from_key(BOB_KEY)


@pytest.fixture
def test_user() -> TokenUser:
    """An identity-provider user."""
    return TokenUser(
        id="google-oauth2|1001",
        email="alice@example.com",
        display_name="Alice",
    )


@pytest.fixture
def other_user() -> TokenUser:
    return TokenUser(
        id="google-oauth2|2002",
        email="bob@example.com",
        display_name="Bob",
    )


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key=TEST_SESSION_SECRET,
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_headers(auth_provider: JWTAuthProvider, test_user: TokenUser) -> dict[str, str]:
    """Authorization headers for the test user."""
    return {"Authorization": f"Bearer {auth_provider.create_token(test_user)}"}


@pytest.fixture
def other_auth_headers(auth_provider: JWTAuthProvider, other_user: TokenUser) -> dict[str, str]:
    """Authorization headers for a second user."""
    return {"Authorization": f"Bearer {auth_provider.create_token(other_user)}"}


@pytest.fixture
async def client(
    db_uow_factory: Callable[[TokenUser | None], SQLAlchemyUnitOfWork],
    auth_provider: JWTAuthProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client over a fresh app wired to the SQLite database.

    Real session tokens are validated; only the service factories are
    replaced so they use the test database.
    """
    from api.dependencies.auth import get_auth_provider
    from api.v1.dependencies import (
        get_favorite_service,
        get_profile_service,
        get_wallet_service,
    )
    from domain.services.favorite_service import FavoriteService
    from domain.services.profile_service import ProfileService
    from domain.services.wallet_service import WalletService
    from infrastructure.auth.address_recovery import EthAccountRecovery
    from infrastructure.auth.challenge_codec import ChallengeCodec
    from main import create_app

    app = create_app()

    wallet_service = WalletService(
        db_uow_factory,
        codec=ChallengeCodec(TEST_SESSION_SECRET),
        recovery=EthAccountRecovery(),
    )
    profile_service = ProfileService(db_uow_factory)
    favorite_service = FavoriteService(db_uow_factory)

    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[get_wallet_service] = lambda: wallet_service
    app.dependency_overrides[get_profile_service] = lambda: profile_service
    app.dependency_overrides[get_favorite_service] = lambda: favorite_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=f"http://{TEST_HOST}") as c:
        yield c

    app.dependency_overrides.clear()
