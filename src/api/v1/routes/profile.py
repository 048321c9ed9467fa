"""Profile API routes."""

from fastapi import APIRouter, Depends, Request

from api.v1.dependencies import ProvisionedUser, get_profile_service
from api.v1.schemas.common import error_responses
from api.v1.schemas.profile import ProfileDetailResponse, ProfileResponse, ProfileUpdate
from core.rate_limit import limiter
from domain.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get(
    "",
    response_model=ProfileDetailResponse,
    summary="Get the caller's profile",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def get_profile(
    request: Request,
    user: ProvisionedUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Get the authenticated user's profile, creating it on first access."""
    profile = await service.get(user)
    return ProfileDetailResponse(data=ProfileResponse.model_validate(profile))


@router.patch(
    "",
    response_model=ProfileDetailResponse,
    summary="Update the caller's profile",
    responses=error_responses(400, 401, 409),
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def update_profile(
    request: Request,
    body: ProfileUpdate,
    user: ProvisionedUser,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Update username, bio and social links.

    Handles such as ``@name`` are expanded to full Twitter and Telegram URLs.
    """
    profile = await service.update(
        user,
        username=body.username,
        bio=body.bio,
        twitter=body.social_links.twitter,
        telegram=body.social_links.telegram,
    )
    return ProfileDetailResponse(data=ProfileResponse.model_validate(profile))
