"""Pydantic schemas for Profile API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SocialLinks(BaseModel):
    """Social handles or URLs."""

    twitter: str | None = Field(None, max_length=255)
    telegram: str | None = Field(None, max_length=255)


class ProfileUpdate(BaseModel):
    """Schema for updating the caller's profile."""

    username: str = Field(..., min_length=1, max_length=50)
    bio: str = Field("", max_length=500)
    social_links: SocialLinks = Field(default_factory=SocialLinks)


class ProfileResponse(BaseModel):
    """Schema for Profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    username: str | None = None
    email: str | None = None
    bio: str = ""
    twitter_link: str | None = None
    telegram_link: str | None = None
    wallet_address: str | None = None
    wallet_linked_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ProfileDetailResponse(BaseModel):
    """Schema for single Profile response."""

    data: ProfileResponse
