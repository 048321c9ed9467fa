"""Favorite service: read and whole-set replace of a user's favorite tokens."""

from collections.abc import Callable

import structlog

from core.exceptions import AuthorizationError, ValidationFailedError
from core.locks import KeyedLock
from domain.entities.favorite import MAX_FAVORITES, TOKEN_ID_PATTERN, normalize_token_ids
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


class FavoriteService:
    """Service layer for favorites.

    Replace calls for the same user are serialized within the process;
    across processes the database function's advisory lock does the same.
    """

    def __init__(
        self,
        uow_factory: Callable[[TokenUser | None], IUnitOfWork],
        locks: KeyedLock | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._locks = locks or KeyedLock()

    async def get_all_for_user(self, user: TokenUser) -> list[str]:
        """Get the caller's favorite token ids."""
        async with self._uow_factory(user) as uow:
            return await uow.favorites.list_for_user(user.id)

    async def replace(
        self, user: TokenUser, target_user_id: str, token_ids: list[str]
    ) -> list[str]:
        """Replace the target user's favorites; the target must be the caller.

        Returns:
            The normalized set that was stored
        """
        if target_user_id != user.id:
            logger.warning("favorites_forbidden", user_id=user.id, target_user_id=target_user_id)
            raise AuthorizationError("Cannot modify favorites of another user")

        if len(token_ids) > MAX_FAVORITES:
            raise ValidationFailedError(
                f"At most {MAX_FAVORITES} favorites are allowed", field="favorites"
            )
        for token_id in token_ids:
            if not TOKEN_ID_PATTERN.match(token_id):
                raise ValidationFailedError(f"Invalid token id: {token_id!r}", field="favorites")

        normalized = normalize_token_ids(token_ids)
        async with self._locks.hold(user.id):
            async with self._uow_factory(user) as uow:
                await uow.favorites.replace_all(user.id, normalized)
                await uow.commit()

        logger.info("favorites_replaced", user_id=user.id, count=len(normalized))
        return normalized
