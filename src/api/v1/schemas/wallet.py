"""Pydantic schemas for Wallet API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

SIGNED_METHODS = ("siwe", "personal_sign")


class ChallengeRequest(BaseModel):
    """Schema for requesting a wallet challenge."""

    method: str = Field("siwe", max_length=32)
    address: str | None = Field(None, max_length=42)
    chain_id: int | None = Field(None, gt=0)


class SiweHintsResponse(BaseModel):
    """Fields the client uses to build its SIWE message."""

    statement: str
    uri: str
    version: str
    chain_id: int


class ChallengeResponse(BaseModel):
    """Schema for an issued challenge."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "method": "personal_sign",
                "nonce": "4f6a0c1d9b2e4a7f8c3d5e6f7a8b9c0d",
                "domain": "dashboard.example.com",
                "issued_at": "2026-01-28T10:00:00.000Z",
                "expires_at": "2026-01-28T10:10:00.000Z",
                "message": "Link your wallet to Web3 Dashboard\n\n...",
            }
        },
    )

    method: str
    nonce: str
    domain: str
    issued_at: str
    expires_at: str
    message: str | None = None
    siwe: SiweHintsResponse | None = None


class SignedChallenge(BaseModel):
    """Signature over an issued challenge."""

    method: str = Field(..., max_length=32)
    signature: str | None = Field(None, max_length=512)
    siwe_message: str | None = Field(None, max_length=4096)

    @model_validator(mode="after")
    def require_signature(self) -> "SignedChallenge":
        if self.method in SIGNED_METHODS and not self.signature:
            raise ValueError("signature is required")
        if self.method == "siwe" and not self.siwe_message:
            raise ValueError("siwe_message is required")
        return self


class LinkRequest(SignedChallenge):
    """Schema for linking a wallet; method ``session`` needs no signature."""


class SignInRequest(SignedChallenge):
    """Schema for signing in with a wallet."""


class LinkResponse(BaseModel):
    """Schema for a successful link."""

    success: bool = True
    message: str = "Wallet linked successfully"
    wallet_address: str
    linked_at: datetime


class UnlinkResponse(BaseModel):
    """Schema for unlink."""

    success: bool = True
    message: str = "Wallet unlinked successfully"


class WalletStatusResponse(BaseModel):
    """Schema for wallet link status."""

    is_linked: bool
    wallet_address: str | None = None
    linked_at: datetime | None = None


class SignInResponse(BaseModel):
    """Schema for a wallet sign-in session."""

    access_token: str
    token_type: str = "bearer"
    user_id: str
    wallet_address: str
