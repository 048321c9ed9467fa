"""JWT session token provider.

Session tokens are HS256 JWTs signed with the session secret:
    {
        "sub": "google-subject" | "wallet:0xabc...",
        "email": "user@example.com",
        "name": "John",
        "wallet_address": "0xabc...",
        "exp": 1234567890
    }

Only ``sub`` is required. ``wallet_address`` is written solely by the
wallet sign-in flow after the signature has been verified.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import ExpiredSignatureError, JWTError, jwt

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


class JWTAuthProvider:
    """JWT-based session provider."""

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str = settings.session_algorithm,
        expire_minutes: int = settings.session_expire_minutes,
    ) -> None:
        self._secret_key = secret_key or settings.challenge_secret()
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a session token and extract user info.

        Args:
            token: The JWT to validate

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_aud": False},
            )
        except ExpiredSignatureError:
            logger.info("session_token_expired")
            return None
        except JWTError:
            return None

        user_id = payload.get("sub")
        if not user_id or not isinstance(user_id, str):
            return None

        user_metadata = payload.get("user_metadata") or {}
        display_name = (
            payload.get("name")
            or user_metadata.get("display_name")
            or user_metadata.get("full_name")
        )

        wallet_address = payload.get("wallet_address")
        if not isinstance(wallet_address, str) or not wallet_address:
            wallet_address = None

        return TokenUser(
            id=user_id,
            email=payload.get("email") or None,
            display_name=display_name,
            role=payload.get("role"),
            wallet_address=wallet_address,
        )

    def create_token(self, user: TokenUser) -> str:
        """
        Create a session token for a user.

        Args:
            user: The user to create a token for

        Returns:
            The generated JWT string
        """
        expire = datetime.now(timezone.utc) + timedelta(minutes=self._expire_minutes)

        payload: dict = {"sub": user.id, "exp": expire}
        if user.email:
            payload["email"] = user.email
        if user.display_name:
            payload["name"] = user.display_name
        if user.role:
            payload["role"] = user.role
        if user.wallet_address:
            payload["wallet_address"] = user.wallet_address.lower()

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
