"""Wallet API routes."""

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import ORJSONResponse

from api.dependencies.auth import OptionalUser, get_auth_provider
from api.exception_handlers import app_exception_response
from api.v1.dependencies import ProvisionedUser, get_profile_service, get_wallet_service
from api.v1.schemas.common import error_responses
from api.v1.schemas.wallet import (
    ChallengeRequest,
    ChallengeResponse,
    LinkRequest,
    LinkResponse,
    SiweHintsResponse,
    SignInRequest,
    SignInResponse,
    UnlinkResponse,
    WalletStatusResponse,
)
from core.config import settings
from core.exceptions import AppException, AuthenticationError
from core.rate_limit import limiter
from domain.entities.wallet import format_timestamp
from domain.services.profile_service import ProfileService
from domain.services.wallet_service import WalletService
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

router = APIRouter(prefix="/wallet", tags=["wallet"])


def request_domain(request: Request) -> str:
    """Host header without the port."""
    host = request.headers.get("host", "")
    return host.split(":")[0]


def request_origin(request: Request) -> str:
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    return f"{scheme}://{request.headers.get('host', '')}"


def set_challenge_cookie(response: Response, value: str) -> None:
    response.set_cookie(
        key=settings.challenge_cookie_name,
        value=value,
        max_age=settings.challenge_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_challenge_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.challenge_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


@router.post(
    "/challenge",
    response_model=ChallengeResponse,
    summary="Issue a wallet challenge",
    responses=error_responses(400),
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def issue_challenge(
    request: Request,
    response: Response,
    body: ChallengeRequest,
    user: OptionalUser,
    service: WalletService = Depends(get_wallet_service),
) -> ChallengeResponse:
    """Issue a challenge, bound to the caller when a session is present.

    The challenge is returned in the body and in an HttpOnly cookie that the
    link and sign-in calls verify.
    """
    issued = await service.issue_challenge(
        method=body.method,
        domain=request_domain(request),
        uri=request_origin(request),
        user=user,
        address=body.address,
        chain_id=body.chain_id,
    )
    set_challenge_cookie(response, issued.cookie_value)

    challenge = issued.challenge
    return ChallengeResponse(
        method=challenge.method.value,
        nonce=challenge.nonce,
        domain=challenge.domain,
        issued_at=format_timestamp(challenge.issued_at),
        expires_at=format_timestamp(challenge.expires_at),
        message=challenge.message,
        siwe=(
            SiweHintsResponse(
                statement=issued.siwe.statement,
                uri=issued.siwe.uri,
                version=issued.siwe.version,
                chain_id=issued.siwe.chain_id,
            )
            if issued.siwe
            else None
        ),
    )


@router.post(
    "/link",
    response_model=LinkResponse,
    summary="Link a wallet to the caller's profile",
    responses=error_responses(400, 401, 404, 409),
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def link_wallet(
    request: Request,
    body: LinkRequest,
    user: OptionalUser,
    service: WalletService = Depends(get_wallet_service),
    profiles: ProfileService = Depends(get_profile_service),
) -> Response:
    """Verify the signed challenge and store the wallet on the caller's profile.

    The challenge cookie is cleared whatever the outcome.
    """
    try:
        if user is None:
            raise AuthenticationError("Authorization header required")
        await profiles.ensure_profile(user)
        linked = await service.link(
            user=user,
            cookie=request.cookies.get(settings.challenge_cookie_name),
            method=body.method,
            domain=request_domain(request),
            signature=body.signature,
            siwe_message=body.siwe_message,
        )
    except AppException as exc:
        logger.warning("wallet_request_rejected", error_code=exc.error_code.value)
        error_response = app_exception_response(exc)
        clear_challenge_cookie(error_response)
        return error_response

    payload = LinkResponse(wallet_address=linked.wallet_address, linked_at=linked.linked_at)
    response = ORJSONResponse(content=payload.model_dump(mode="json"))
    clear_challenge_cookie(response)
    return response


@router.post(
    "/unlink",
    response_model=UnlinkResponse,
    summary="Unlink the caller's wallet",
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def unlink_wallet(
    request: Request,
    user: ProvisionedUser,
    service: WalletService = Depends(get_wallet_service),
) -> UnlinkResponse:
    """Clear the wallet from the caller's profile. Idempotent."""
    await service.unlink(user)
    return UnlinkResponse()


@router.post(
    "/check",
    response_model=WalletStatusResponse,
    summary="Check wallet link status",
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def check_wallet(
    request: Request,
    user: ProvisionedUser,
    service: WalletService = Depends(get_wallet_service),
) -> WalletStatusResponse:
    """Report whether the caller has a linked wallet."""
    status = await service.check(user)
    return WalletStatusResponse(
        is_linked=status.is_linked,
        wallet_address=status.wallet_address,
        linked_at=status.linked_at,
    )


@router.post(
    "/signin",
    response_model=SignInResponse,
    summary="Sign in with a wallet",
    responses=error_responses(400),
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def sign_in(
    request: Request,
    body: SignInRequest,
    service: WalletService = Depends(get_wallet_service),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> Response:
    """Verify a challenge and issue a session token for the signer.

    The challenge cookie is cleared whatever the outcome.
    """
    try:
        address = await service.sign_in(
            cookie=request.cookies.get(settings.challenge_cookie_name),
            method=body.method,
            domain=request_domain(request),
            signature=body.signature,
            siwe_message=body.siwe_message,
        )
    except AppException as exc:
        logger.warning("wallet_request_rejected", error_code=exc.error_code.value)
        error_response = app_exception_response(exc)
        clear_challenge_cookie(error_response)
        return error_response

    user = TokenUser(
        id=f"wallet:{address}",
        display_name=f"Wallet {address[2:6]}",
        wallet_address=address,
    )
    payload = SignInResponse(
        access_token=auth_provider.create_token(user),
        user_id=user.id,
        wallet_address=address,
    )
    response = ORJSONResponse(content=payload.model_dump(mode="json"))
    clear_challenge_cookie(response)
    return response
