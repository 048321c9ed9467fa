"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from core.config import Settings, secrets_are_shared, settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


def check_secrets(config: Settings) -> None:
    """Refuse to start without signing secrets; warn when one secret serves both purposes.

    Raises:
        ConfigurationError: if neither SESSION_SECRET nor SUPABASE_JWT_SECRET is set
    """
    if secrets_are_shared(config):
        logger.warning(
            "shared_signing_secret",
            detail="Challenge cookies and database claims are signed with the same secret",
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    check_secrets(settings)
    logger.info("application_started", environment=settings.app_env)
    yield
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Web3 Dashboard API\n\n"
            "Wallet linking, wallet sign-in, profiles and favorite tokens.\n\n"
            "### Wallet flow\n"
            "1. `POST /api/v1/wallet/challenge` issues a challenge and sets an "
            "HttpOnly `wallet_challenge` cookie\n"
            "2. The wallet signs the SIWE or personal_sign message\n"
            "3. `POST /api/v1/wallet/link` (or `/signin`) verifies the signature "
            "against the cookie\n\n"
            "### Authentication\n"
            "All endpoints except `/health`, `/wallet/challenge` and "
            "`/wallet/signin` require a session token:\n"
            "```\nAuthorization: Bearer <your_token>\n```"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "wallet",
                "description": "Wallet challenge, link and sign-in",
            },
            {
                "name": "profile",
                "description": "Profile read and update",
            },
            {
                "name": "favorites",
                "description": "Favorite token operations",
            },
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
