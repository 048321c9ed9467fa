"""Wallet challenge and link value objects."""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum

CHALLENGE_VERSION = 1

WALLET_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


class ChallengeMethod(StrEnum):
    """How the wallet proves control of its key."""

    SIWE = "siwe"
    PERSONAL_SIGN = "personal_sign"


class LinkMethod(StrEnum):
    """Methods accepted by the link operation."""

    SIWE = "siwe"
    PERSONAL_SIGN = "personal_sign"
    SESSION = "session"


class ChallengeIntent(StrEnum):
    """What the signed challenge will be used for."""

    LOGIN = "login"
    LINK = "link"


@dataclass(frozen=True)
class Challenge:
    """A pending sign-in or link attempt, carried in a signed cookie.

    ``user_id`` is set when the challenge was issued to an authenticated
    caller; ``message`` is the exact text the wallet must sign when the
    server could build it up front.
    """

    method: ChallengeMethod
    nonce: str
    domain: str
    issued_at: datetime
    expires_at: datetime
    user_id: str | None = None
    message: str | None = None
    version: int = CHALLENGE_VERSION

    @property
    def intent(self) -> ChallengeIntent:
        return ChallengeIntent.LINK if self.user_id else ChallengeIntent.LOGIN

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True, slots=True)
class SiweHints:
    """Fields a client needs to assemble its own SIWE message."""

    statement: str
    uri: str
    version: str
    chain_id: int


@dataclass(frozen=True, slots=True)
class IssuedChallenge:
    """Result of issuing a challenge: the record plus its cookie encoding."""

    challenge: Challenge
    cookie_value: str
    siwe: SiweHints | None = None


@dataclass(frozen=True, slots=True)
class LinkedWallet:
    """Read-only value object returned after a successful link."""

    wallet_address: str
    linked_at: datetime


@dataclass(frozen=True, slots=True)
class WalletStatus:
    """Link status projection of a profile."""

    is_linked: bool
    wallet_address: str | None = None
    linked_at: datetime | None = None


def is_valid_wallet_address(address: str | None) -> bool:
    """Check the fixed-length hex account format (any letter case)."""
    return bool(address) and WALLET_ADDRESS_PATTERN.match(address) is not None


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: if the value is not an ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
