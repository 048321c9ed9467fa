"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Annotated, Callable

from fastapi import Depends

from api.dependencies.auth import get_current_user
from core.config import settings
from domain.services.favorite_service import FavoriteService
from domain.services.profile_service import ProfileService
from domain.services.wallet_service import WalletService
from infrastructure.auth.address_recovery import EthAccountRecovery
from infrastructure.auth.challenge_codec import ChallengeCodec
from infrastructure.auth.provider import TokenUser
from infrastructure.auth.supabase_claims import SupabaseClaimMinter
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


@lru_cache
def get_claim_minter() -> SupabaseClaimMinter:
    """Get the store-bridge claim minter."""
    return SupabaseClaimMinter(
        settings.claims_secret(),
        expire_minutes=settings.supabase_claims_expire_minutes,
    )


def get_uow_factory() -> Callable[[TokenUser | None], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances scoped to a caller."""
    minter = get_claim_minter()

    def factory(user: TokenUser | None = None) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(
            async_session_factory,
            access_token=minter.mint(user) if user else None,
            claims_verifier=minter,
            rls_role=settings.rls_role,
        )

    return factory


@lru_cache
def get_challenge_codec() -> ChallengeCodec:
    """Get the challenge cookie codec."""
    return ChallengeCodec(settings.challenge_secret())


@lru_cache
def get_wallet_service() -> WalletService:
    """Get Wallet service instance."""
    return WalletService(
        get_uow_factory(),
        codec=get_challenge_codec(),
        recovery=EthAccountRecovery(),
        ttl_seconds=settings.challenge_ttl_seconds,
        chain_id=settings.siwe_chain_id,
        app_name=settings.dashboard_name,
    )


@lru_cache
def get_profile_service() -> ProfileService:
    """Get Profile service instance."""
    return ProfileService(get_uow_factory())


@lru_cache
def get_favorite_service() -> FavoriteService:
    """Get Favorite service instance."""
    return FavoriteService(get_uow_factory())


async def get_provisioned_user(
    user: Annotated[TokenUser, Depends(get_current_user)],
    profiles: ProfileService = Depends(get_profile_service),
) -> TokenUser:
    """Authenticated user whose profile row is guaranteed to exist."""
    await profiles.ensure_profile(user)
    return user


ProvisionedUser = Annotated[TokenUser, Depends(get_provisioned_user)]
