"""Pydantic schemas for Favorites API."""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

TokenId = Annotated[
    str,
    StringConstraints(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9-]+$"),
]


class FavoritesUpdate(BaseModel):
    """Schema for replacing the caller's favorites."""

    favorites: list[TokenId] = Field(..., max_length=200)


class FavoritesListResponse(BaseModel):
    """Schema for the caller's favorites."""

    data: list[str]
