"""Wallet service: challenge issuance, signature verification and linking."""

import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from eth_utils import to_checksum_address

from core.exceptions import (
    ChallengeInvalidError,
    ErrorCode,
    ProfileNotFoundError,
    ValidationFailedError,
    WalletTakenError,
    WalletVerificationError,
)
from domain.entities.wallet import (
    Challenge,
    ChallengeIntent,
    ChallengeMethod,
    IssuedChallenge,
    LinkedWallet,
    LinkMethod,
    SiweHints,
    WalletStatus,
    format_timestamp,
    is_valid_wallet_address,
    parse_timestamp,
    utc_now,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.wallet_messages import (
    SIWE_STATEMENTS,
    SIWE_VERSION,
    build_personal_sign_message,
    build_siwe_message,
    parse_siwe_message,
)
from infrastructure.auth.address_recovery import IAddressRecovery, SignatureRecoveryError
from infrastructure.auth.challenge_codec import ChallengeCodec, ChallengeDecodeError
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()


def _parse_method(method: str, allowed: type[ChallengeMethod] | type[LinkMethod]) -> str:
    try:
        return allowed(method).value
    except ValueError:
        raise WalletVerificationError(
            ErrorCode.INVALID_METHOD,
            f"Unsupported method: {method!r}",
            details={"allowed": [m.value for m in allowed]},
        ) from None


class WalletService:
    """Service layer for the wallet challenge/response protocol.

    Challenges are never stored server-side: the caller holds them in a
    signed cookie, and every decision below is derived from that cookie,
    the request, and the recovered signer.
    """

    def __init__(
        self,
        uow_factory: Callable[[TokenUser | None], IUnitOfWork],
        codec: ChallengeCodec,
        recovery: IAddressRecovery,
        clock: Callable[[], datetime] = utc_now,
        ttl_seconds: int = 600,
        chain_id: int = 1,
        app_name: str = "Web3 Dashboard",
    ) -> None:
        self._uow_factory = uow_factory
        self._codec = codec
        self._recovery = recovery
        self._clock = clock
        self._ttl = timedelta(seconds=ttl_seconds)
        self._chain_id = chain_id
        self._app_name = app_name

    async def issue_challenge(
        self,
        method: str,
        domain: str,
        uri: str,
        user: TokenUser | None = None,
        address: str | None = None,
        chain_id: int | None = None,
    ) -> IssuedChallenge:
        """Create a fresh challenge and its signed cookie value.

        The challenge is bound to ``user`` when one is given (intent ``link``),
        otherwise it is an anonymous sign-in challenge (intent ``login``).
        """
        challenge_method = ChallengeMethod(_parse_method(method, ChallengeMethod))
        if not domain:
            raise ValidationFailedError("Request host is required", field="host")
        if address is not None and not is_valid_wallet_address(address):
            raise WalletVerificationError(ErrorCode.INVALID_WALLET, "Invalid wallet address")

        issued_at = self._clock()
        expires_at = issued_at + self._ttl
        nonce = secrets.token_hex(16)
        intent = ChallengeIntent.LINK if user else ChallengeIntent.LOGIN
        user_id = user.id if user else None

        siwe: SiweHints | None = None
        if challenge_method == ChallengeMethod.PERSONAL_SIGN:
            message: str | None = build_personal_sign_message(
                domain=domain,
                nonce=nonce,
                issued_at=format_timestamp(issued_at),
                expires_at=format_timestamp(expires_at),
                user_id=user_id,
                intent=intent,
                app_name=self._app_name,
            )
        else:
            siwe = SiweHints(
                statement=SIWE_STATEMENTS[intent],
                uri=uri,
                version=SIWE_VERSION,
                chain_id=chain_id or self._chain_id,
            )
            message = None
            if address is not None:
                message = build_siwe_message(
                    domain=domain,
                    address=to_checksum_address(address),
                    statement=siwe.statement,
                    uri=siwe.uri,
                    version=siwe.version,
                    chain_id=siwe.chain_id,
                    nonce=nonce,
                    issued_at=format_timestamp(issued_at),
                    expiration_time=format_timestamp(expires_at),
                )

        challenge = Challenge(
            method=challenge_method,
            nonce=nonce,
            domain=domain,
            issued_at=issued_at,
            expires_at=expires_at,
            user_id=user_id,
            message=message,
        )
        logger.info(
            "challenge_issued",
            method=challenge_method.value,
            intent=intent.value,
            user_id=user_id,
        )
        return IssuedChallenge(
            challenge=challenge,
            cookie_value=self._codec.encode(challenge),
            siwe=siwe,
        )

    async def link(
        self,
        user: TokenUser,
        cookie: str | None,
        method: str,
        domain: str,
        signature: str | None = None,
        siwe_message: str | None = None,
    ) -> LinkedWallet:
        """Verify a signed challenge and bind the signer to the caller's profile."""
        link_method = _parse_method(method, LinkMethod)
        if link_method == LinkMethod.SESSION:
            return await self.link_from_session(user)

        address = await self._verify(
            cookie=cookie,
            method=link_method,
            domain=domain,
            signature=signature,
            siwe_message=siwe_message,
            bound_user_id=user.id,
        )
        return await self._bind(user, address)

    async def link_from_session(self, user: TokenUser) -> LinkedWallet:
        """Bind the wallet carried by the caller's session token.

        Only the sign-in flow writes ``wallet_address`` into a session
        token, after verifying a signature for it.
        """
        if not user.wallet_address:
            raise WalletVerificationError(
                ErrorCode.MISSING_WALLET, "No wallet address in session"
            )
        if not is_valid_wallet_address(user.wallet_address):
            raise WalletVerificationError(ErrorCode.INVALID_WALLET, "Invalid wallet address")
        return await self._bind(user, user.wallet_address.lower())

    async def unlink(self, user: TokenUser) -> None:
        """Remove the caller's wallet. Unlinking twice is not an error."""
        async with self._uow_factory(user) as uow:
            profile = await uow.profiles.clear_wallet(user.id)
            if profile is None:
                raise ProfileNotFoundError(user.id)
            await uow.commit()
        logger.info("wallet_unlinked", user_id=user.id)

    async def check(self, user: TokenUser) -> WalletStatus:
        """Report whether the caller has a linked wallet."""
        async with self._uow_factory(user) as uow:
            profile = await uow.profiles.get_by_user_id(user.id)
        if profile is None or not profile.wallet_address:
            return WalletStatus(is_linked=False)
        return WalletStatus(
            is_linked=True,
            wallet_address=profile.wallet_address,
            linked_at=profile.wallet_linked_at,
        )

    async def sign_in(
        self,
        cookie: str | None,
        method: str,
        domain: str,
        signature: str | None = None,
        siwe_message: str | None = None,
    ) -> str:
        """Verify a signed challenge without caller binding.

        Returns:
            The lowercase signer address
        """
        challenge_method = _parse_method(method, ChallengeMethod)
        address = await self._verify(
            cookie=cookie,
            method=challenge_method,
            domain=domain,
            signature=signature,
            siwe_message=siwe_message,
            bound_user_id=None,
        )
        logger.info("wallet_signed_in", wallet_address=address)
        return address

    async def _verify(
        self,
        cookie: str | None,
        method: str,
        domain: str,
        signature: str | None,
        siwe_message: str | None,
        bound_user_id: str | None,
    ) -> str:
        """Run the verification gates in order and return the lowercase signer.

        ``bound_user_id`` is None for sign-in, where the challenge need not be
        bound to anyone.
        """
        if not signature or (method == ChallengeMethod.SIWE and not siwe_message):
            raise WalletVerificationError(
                ErrorCode.MISSING_SIGNATURE, "Signature and message are required"
            )

        now = self._clock()
        try:
            challenge = self._codec.decode(cookie, now=now)
        except ChallengeDecodeError as exc:
            logger.info("challenge_rejected", reason=exc.code.value)
            raise ChallengeInvalidError(exc.code.value) from exc

        if bound_user_id is not None and challenge.user_id != bound_user_id:
            raise WalletVerificationError(
                ErrorCode.CHALLENGE_MISMATCH, "Challenge was issued to a different session"
            )
        if challenge.method.value != method:
            raise WalletVerificationError(
                ErrorCode.CHALLENGE_METHOD_MISMATCH, "Challenge was issued for another method"
            )
        if challenge.domain != domain:
            raise WalletVerificationError(ErrorCode.DOMAIN_MISMATCH, "Domain mismatch")

        if challenge.method == ChallengeMethod.PERSONAL_SIGN:
            if not challenge.message:
                raise ChallengeInvalidError("INVALID_JSON")
            recovered = await self._recover(challenge.message, signature)
        else:
            recovered = await self._verify_siwe(challenge, siwe_message or "", signature, now)

        if not is_valid_wallet_address(recovered):
            raise WalletVerificationError(ErrorCode.INVALID_WALLET, "Invalid wallet address")
        return recovered.lower()

    async def _verify_siwe(
        self, challenge: Challenge, siwe_message: str, signature: str, now: datetime
    ) -> str:
        if challenge.message is not None and siwe_message != challenge.message:
            raise WalletVerificationError(
                ErrorCode.MESSAGE_MISMATCH, "Signed message differs from the issued message"
            )

        fields = parse_siwe_message(siwe_message)
        if fields.nonce != challenge.nonce:
            raise WalletVerificationError(ErrorCode.NONCE_MISMATCH, "Nonce mismatch")
        if fields.domain != challenge.domain:
            raise WalletVerificationError(ErrorCode.DOMAIN_MISMATCH, "Domain mismatch")

        recovered = await self._recover(siwe_message, signature)
        if (fields.address or "").lower() != recovered.lower():
            raise WalletVerificationError(
                ErrorCode.ADDRESS_MISMATCH, "Signer does not match the message address"
            )

        if fields.expiration_time is not None:
            try:
                expired = now > parse_timestamp(fields.expiration_time)
            except ValueError:
                expired = True
            if expired:
                raise WalletVerificationError(ErrorCode.CHALLENGE_EXPIRED, "Message expired")
        return recovered

    async def _recover(self, message: str, signature: str) -> str:
        try:
            return await self._recovery.recover(message, signature)
        except SignatureRecoveryError as exc:
            raise WalletVerificationError(
                ErrorCode.SIGNATURE_INVALID, "Invalid signature"
            ) from exc

    async def _bind(self, user: TokenUser, address: str) -> LinkedWallet:
        """Write the wallet to the caller's row.

        The holder lookup only gives an early, friendly answer; the unique
        constraint decides races, and under row-level security other users'
        rows may not be visible to it at all.
        """
        async with self._uow_factory(user) as uow:
            holder = await uow.profiles.get_by_wallet(address)
            if holder and holder.user_id != user.id:
                logger.info("wallet_taken", user_id=user.id)
                raise WalletTakenError()

            if not await uow.profiles.get_by_user_id(user.id):
                raise ProfileNotFoundError(user.id)

            profile = await uow.profiles.set_wallet(user.id, address, self._clock())
            if profile is None or profile.wallet_linked_at is None:
                raise ProfileNotFoundError(user.id)
            await uow.commit()

        logger.info("wallet_linked", user_id=user.id, wallet_address=address)
        return LinkedWallet(wallet_address=address, linked_at=profile.wallet_linked_at)
