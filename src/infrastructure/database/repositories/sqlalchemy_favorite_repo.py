"""SQLAlchemy implementation of Favorite repository."""

import structlog
from sqlalchemy import delete, select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AuthorizationError
from infrastructure.database.errors import (
    INSUFFICIENT_PRIVILEGE,
    UNDEFINED_FUNCTION,
    sqlstate,
)
from infrastructure.database.models import FavoriteModel

logger = structlog.get_logger()

REPLACE_FAVORITES_SQL = text(
    "SELECT replace_user_favorites(:user_id, CAST(:token_ids AS text[]))"
)


class SQLAlchemyFavoriteRepository:
    """SQLAlchemy implementation of IFavoriteRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_user(self, user_id: str) -> list[str]:
        """Get the user's favorite token ids, oldest first."""
        stmt = (
            select(FavoriteModel.token_id)
            .where(FavoriteModel.user_id == user_id)
            .order_by(FavoriteModel.created_at, FavoriteModel.token_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def replace_all(self, user_id: str, token_ids: list[str]) -> None:
        """Replace the favorite set through the database function when available.

        The function takes a transaction-scoped advisory lock per user. When it
        is missing, or the store is not Postgres, rows are replaced directly.
        """
        if self._session.get_bind().dialect.name != "postgresql":
            await self._replace_directly(user_id, token_ids, reason="dialect")
            return

        try:
            async with self._session.begin_nested():
                await self._session.execute(
                    REPLACE_FAVORITES_SQL,
                    {"user_id": user_id, "token_ids": token_ids},
                )
        except DBAPIError as exc:
            code = sqlstate(exc)
            if code == INSUFFICIENT_PRIVILEGE:
                raise AuthorizationError("Cannot modify favorites of another user") from exc
            if code != UNDEFINED_FUNCTION:
                raise
            await self._replace_directly(user_id, token_ids, reason="function_missing")

    async def _replace_directly(self, user_id: str, token_ids: list[str], reason: str) -> None:
        logger.warning("favorites_rpc_unavailable", user_id=user_id, reason=reason)
        await self._session.execute(delete(FavoriteModel).where(FavoriteModel.user_id == user_id))
        if token_ids:
            self._session.add_all(
                FavoriteModel(user_id=user_id, token_id=token_id) for token_id in token_ids
            )
        await self._session.flush()
