"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"

    # Not found errors (404)
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_METHOD = "INVALID_METHOD"
    MISSING_SIGNATURE = "MISSING_SIGNATURE"
    MISSING_WALLET = "MISSING_WALLET"
    INVALID_WALLET = "INVALID_WALLET"

    # Wallet challenge protocol errors (400)
    CHALLENGE_INVALID = "CHALLENGE_INVALID"
    CHALLENGE_MISMATCH = "CHALLENGE_MISMATCH"
    CHALLENGE_METHOD_MISMATCH = "CHALLENGE_METHOD_MISMATCH"
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    DOMAIN_MISMATCH = "DOMAIN_MISMATCH"
    NONCE_MISMATCH = "NONCE_MISMATCH"
    MESSAGE_MISMATCH = "MESSAGE_MISMATCH"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    ADDRESS_MISMATCH = "ADDRESS_MISMATCH"

    # Conflict errors (409)
    WALLET_TAKEN = "WALLET_TAKEN"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    PROFILE_EXISTS = "PROFILE_EXISTS"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup."""


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class ValidationFailedError(AppException):
    """Domain-level validation failed (after schema validation passed)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status_code=400,
            details={"field": field} if field else None,
        )


class ProfileNotFoundError(AppException):
    """Caller has no profile row."""

    def __init__(
        self,
        user_id: str,
        message: str = "User profile not found. Please log out and log in again to recreate your profile.",
    ) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            message=message,
            status_code=404,
            details={"user_id": user_id},
        )


class ProfileAlreadyExistsError(AppException):
    """A profile row for this user was inserted concurrently."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_EXISTS,
            message="Profile already exists",
            status_code=409,
            details={"user_id": user_id},
        )


class WalletTakenError(AppException):
    """Wallet address already linked to another profile."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.WALLET_TAKEN,
            message="Wallet already linked to another user",
            status_code=409,
        )


class UsernameTakenError(AppException):
    """Username already used by another profile."""

    def __init__(self, username: str) -> None:
        super().__init__(
            error_code=ErrorCode.USERNAME_TAKEN,
            message=f"Username already taken: {username}",
            status_code=409,
            details={"username": username},
        )


class WalletVerificationError(AppException):
    """A wallet challenge or signature check failed."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


class ChallengeInvalidError(WalletVerificationError):
    """The challenge cookie could not be decoded."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            error_code=ErrorCode.CHALLENGE_INVALID,
            message=f"Challenge not valid: {reason}",
            details={"reason": reason},
        )
