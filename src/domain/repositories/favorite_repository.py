"""Favorite repository protocol."""

from typing import Protocol


class IFavoriteRepository(Protocol):
    """Repository interface for a user's favorite token set."""

    async def list_for_user(self, user_id: str) -> list[str]:
        """Get the user's favorite token ids, oldest first."""
        ...

    async def replace_all(self, user_id: str, token_ids: list[str]) -> None:
        """Replace the user's favorite set with ``token_ids`` (already normalized)."""
        ...
