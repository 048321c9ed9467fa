"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

import orjson
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.auth.supabase_claims import SupabaseClaimMinter
from infrastructure.database.repositories.sqlalchemy_favorite_repo import (
    SQLAlchemyFavoriteRepository,
)
from infrastructure.database.repositories.sqlalchemy_profile_repo import (
    SQLAlchemyProfileRepository,
)


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    When given a claim token, each transaction on Postgres runs with the
    caller's claims and the RLS role, so row-level policies scope every
    statement to that caller.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        access_token: str | None = None,
        claims_verifier: SupabaseClaimMinter | None = None,
        rls_role: str = "",
    ) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None
        self._access_token = access_token
        self._claims_verifier = claims_verifier
        self._rls_role = rls_role

    @property
    def profiles(self) -> SQLAlchemyProfileRepository:
        """Get profile repository."""
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return SQLAlchemyProfileRepository(self._session)

    @property
    def favorites(self) -> SQLAlchemyFavoriteRepository:
        """Get favorite repository."""
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return SQLAlchemyFavoriteRepository(self._session)

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()
            await self._apply_claims()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def _apply_claims(self) -> None:
        """Scope the current transaction to the caller (Postgres only)."""
        if not self._session or not self._access_token or not self._claims_verifier:
            return
        if self._session.get_bind().dialect.name != "postgresql":
            return

        claims = self._claims_verifier.verify(self._access_token)
        await self._session.execute(
            text("SELECT set_config('request.jwt.claims', :claims, true)"),
            {"claims": orjson.dumps(claims).decode()},
        )
        if self._rls_role:
            # SET does not accept bind parameters
            role = self._rls_role.replace('"', "")
            await self._session.execute(text(f'SET LOCAL ROLE "{role}"'))

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        try:
            await self._apply_claims()
        except Exception:
            await self._session.close()
            self._session = None
            raise
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None
