"""Profile repository protocol."""

from datetime import datetime
from typing import Protocol

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Repository interface for Profile entities."""

    async def get_by_user_id(self, user_id: str) -> Profile | None:
        """Get the profile owned by a session subject."""
        ...

    async def get_by_wallet(self, wallet_address: str) -> Profile | None:
        """Get the profile holding a wallet address (matched lowercase)."""
        ...

    async def get_by_username(self, username: str) -> Profile | None:
        """Get a profile by username."""
        ...

    async def create(self, profile: Profile) -> Profile:
        """Insert a new profile.

        Raises ProfileAlreadyExistsError if a row for the same user exists.
        """
        ...

    async def set_wallet(
        self, user_id: str, wallet_address: str, linked_at: datetime
    ) -> Profile | None:
        """Store a wallet on the user's row; None when the row is missing.

        Raises WalletTakenError on a uniqueness violation.
        """
        ...

    async def clear_wallet(self, user_id: str) -> Profile | None:
        """Remove the wallet from the user's row; None when the row is missing."""
        ...

    async def update_details(self, profile: Profile) -> Profile:
        """Persist username, bio and social links.

        Raises UsernameTakenError on a uniqueness violation.
        """
        ...
