"""Signed cookie encoding for wallet challenges.

Format: ``v1.<base64url(payload)>.<base64url(HMAC-SHA256(secret, payload))>``
where ``payload`` is compact JSON with sorted keys. Base64 is unpadded.
"""

import base64
import binascii
import hashlib
import hmac
import re
from datetime import datetime
from enum import StrEnum
from typing import Any

import orjson

from domain.entities.wallet import (
    CHALLENGE_VERSION,
    Challenge,
    ChallengeMethod,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

VERSION_TAG = "v1"

_B64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_REQUIRED_FIELDS = ("version", "method", "nonce", "domain", "issued_at", "expires_at")


class ChallengeErrorCode(StrEnum):
    """Reasons a challenge cookie is rejected, checked in this order."""

    NO_CHALLENGE = "NO_CHALLENGE"
    INVALID_COOKIE = "INVALID_COOKIE"
    TAMPERED = "TAMPERED"
    INVALID_JSON = "INVALID_JSON"
    EXPIRED = "EXPIRED"


class ChallengeDecodeError(Exception):
    """Raised by ChallengeCodec.decode with the rejection code."""

    def __init__(self, code: ChallengeErrorCode) -> None:
        self.code = code
        super().__init__(code.value)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    if not _B64URL_PATTERN.match(value):
        raise ValueError("not base64url")
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


class ChallengeCodec:
    """Encodes and verifies challenge cookies with a shared HMAC secret."""

    def __init__(self, secret: str | bytes) -> None:
        if not secret:
            raise ValueError("Challenge codec requires a non-empty secret")
        self._secret = secret.encode() if isinstance(secret, str) else secret

    def _mac(self, payload: bytes) -> bytes:
        return hmac.new(self._secret, payload, hashlib.sha256).digest()

    def encode(self, challenge: Challenge) -> str:
        """Serialize and sign a challenge."""
        data: dict[str, Any] = {
            "version": challenge.version,
            "method": challenge.method.value,
            "nonce": challenge.nonce,
            "domain": challenge.domain,
            "issued_at": format_timestamp(challenge.issued_at),
            "expires_at": format_timestamp(challenge.expires_at),
        }
        if challenge.user_id is not None:
            data["user_id"] = challenge.user_id
        if challenge.message is not None:
            data["message"] = challenge.message

        payload = orjson.dumps(data, option=orjson.OPT_SORT_KEYS)
        return f"{VERSION_TAG}.{_b64encode(payload)}.{_b64encode(self._mac(payload))}"

    def decode(self, value: str | None, now: datetime | None = None) -> Challenge:
        """Verify a cookie value and return the challenge it carries.

        Raises:
            ChallengeDecodeError: with the first failing check's code
        """
        if not value:
            raise ChallengeDecodeError(ChallengeErrorCode.NO_CHALLENGE)

        parts = value.split(".")
        if len(parts) != 3 or parts[0] != VERSION_TAG:
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_COOKIE)
        try:
            payload = _b64decode(parts[1])
            mac = _b64decode(parts[2])
        except (ValueError, binascii.Error):
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_COOKIE) from None

        if not hmac.compare_digest(mac, self._mac(payload)):
            raise ChallengeDecodeError(ChallengeErrorCode.TAMPERED)

        challenge = self._parse_payload(payload)
        if challenge.is_expired(now or utc_now()):
            raise ChallengeDecodeError(ChallengeErrorCode.EXPIRED)
        return challenge

    @staticmethod
    def _parse_payload(payload: bytes) -> Challenge:
        try:
            data = orjson.loads(payload)
        except orjson.JSONDecodeError:
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_JSON) from None

        if not isinstance(data, dict) or any(data.get(key) in (None, "") for key in _REQUIRED_FIELDS):
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_JSON)
        if data["version"] != CHALLENGE_VERSION:
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_JSON)

        try:
            return Challenge(
                method=ChallengeMethod(data["method"]),
                nonce=str(data["nonce"]),
                domain=str(data["domain"]),
                issued_at=parse_timestamp(str(data["issued_at"])),
                expires_at=parse_timestamp(str(data["expires_at"])),
                user_id=data.get("user_id") or None,
                message=data.get("message") or None,
                version=data["version"],
            )
        except ValueError:
            raise ChallengeDecodeError(ChallengeErrorCode.INVALID_JSON) from None
