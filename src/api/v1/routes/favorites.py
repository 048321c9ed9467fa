"""Favorites API routes."""

from fastapi import APIRouter, Depends, Request

from api.v1.dependencies import ProvisionedUser, get_favorite_service
from api.v1.schemas.common import MessageResponse, error_responses
from api.v1.schemas.favorites import FavoritesListResponse, FavoritesUpdate
from core.rate_limit import limiter
from domain.services.favorite_service import FavoriteService

router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get(
    "",
    response_model=FavoritesListResponse,
    summary="List favorite tokens",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_favorites(
    request: Request,
    user: ProvisionedUser,
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoritesListResponse:
    """Get the caller's favorite token ids."""
    return FavoritesListResponse(data=await service.get_all_for_user(user))


@router.put(
    "",
    response_model=MessageResponse,
    summary="Replace favorite tokens",
    responses=error_responses(400, 401),
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def replace_favorites(
    request: Request,
    body: FavoritesUpdate,
    user: ProvisionedUser,
    service: FavoriteService = Depends(get_favorite_service),
) -> MessageResponse:
    """Replace the caller's favorites with the given set.

    Ids are lowercased and de-duplicated; an empty list clears the set.
    """
    await service.replace(user, user.id, body.favorites)
    return MessageResponse(message="Favorites updated successfully")
