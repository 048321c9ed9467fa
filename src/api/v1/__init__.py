"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.favorites import router as favorites_router
from api.v1.routes.profile import router as profile_router
from api.v1.routes.wallet import router as wallet_router

router = APIRouter()
router.include_router(wallet_router)
router.include_router(profile_router)
router.include_router(favorites_router)
