"""Per-request claims for the database's row-level-security policies.

Postgres policies compare ``auth.jwt() ->> 'sub'`` against row owners. The
unit of work mints a short-lived token for the caller, verifies it, and
hands its claims to the session via ``request.jwt.claims``.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.provider import TokenUser

CLAIMS_AUDIENCE = "authenticated"
CLAIMS_ALGORITHM = "HS256"


class SupabaseClaimMinter:
    """Signs and verifies store-bridge claim tokens."""

    def __init__(self, secret: str | bytes, expire_minutes: int = 15) -> None:
        self._secret = secret
        self._expire_minutes = expire_minutes

    def mint(self, user: TokenUser) -> str:
        """Create a claim token whose subject is the caller."""
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": user.id,
            "id": user.id,
            "role": CLAIMS_AUDIENCE,
            "aud": CLAIMS_AUDIENCE,
            "iat": now,
            "exp": now + timedelta(minutes=self._expire_minutes),
        }
        if user.email:
            payload["email"] = user.email
        return jwt.encode(payload, self._secret, algorithm=CLAIMS_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode a claim token.

        Raises:
            AuthenticationError: if the token is expired or not ours
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[CLAIMS_ALGORITHM],
                audience=CLAIMS_AUDIENCE,
            )
        except JWTError as exc:
            raise AuthenticationError(
                "Invalid database claims", error_code=ErrorCode.INVALID_TOKEN
            ) from exc
        if not claims.get("sub"):
            raise AuthenticationError("Invalid database claims", error_code=ErrorCode.INVALID_TOKEN)
        return claims
