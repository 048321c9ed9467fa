"""Profile domain entity."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

TWITTER_LINK_PATTERN = re.compile(r"^https://(www\.)?(twitter\.com|x\.com)/[a-zA-Z0-9_]{1,15}$")
TELEGRAM_LINK_PATTERN = re.compile(r"^https://t\.me/[a-zA-Z0-9_]{5,32}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Profile:
    """Domain entity for a user profile, keyed by the session subject."""

    user_id: str
    id: UUID = field(default_factory=uuid4)
    username: str | None = None
    email: str | None = None
    bio: str = ""
    twitter_link: str | None = None
    telegram_link: str | None = None
    wallet_address: str | None = None
    wallet_linked_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
        if self.wallet_address:
            self.wallet_address = self.wallet_address.lower()

    @property
    def is_wallet_linked(self) -> bool:
        return bool(self.wallet_address)


def normalize_twitter_link(value: str | None) -> str | None:
    """Turn a handle (``@name`` or ``name``) into a full twitter.com URL."""
    if not value:
        return None
    if value.startswith("https://twitter.com/") or value.startswith("https://x.com/"):
        return value
    if value.startswith("@"):
        return f"https://twitter.com/{value[1:]}"
    return f"https://twitter.com/{value}"


def normalize_telegram_link(value: str | None) -> str | None:
    """Turn a handle (``@name`` or ``name``) into a full t.me URL."""
    if not value:
        return None
    if value.startswith("https://t.me/"):
        return value
    if value.startswith("@"):
        return f"https://t.me/{value[1:]}"
    return f"https://t.me/{value}"
