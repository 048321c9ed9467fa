"""EIP-191 personal-message signer recovery."""

import asyncio
from typing import Protocol

import structlog
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import is_address

from domain.entities.wallet import is_valid_wallet_address

logger = structlog.get_logger()

SIGNATURE_LENGTH = 65

# personal_sign recovery ids; the 0/1 and EIP-155 encodings of the same id are rejected.
RECOVERY_IDS = (27, 28)


class SignatureRecoveryError(Exception):
    """The signature is malformed or no address can be recovered from it."""


class IAddressRecovery(Protocol):
    """Recovers the signing account of a personal message."""

    async def recover(self, message: str, signature: str) -> str:
        """Return the checksummed signer address.

        Raises:
            SignatureRecoveryError: if recovery fails
        """
        ...


def signature_bytes(signature: str) -> bytes:
    """Decode a hex `r || s || v` signature, rejecting non-canonical v."""
    try:
        raw = bytes.fromhex(signature.removeprefix("0x"))
    except ValueError as exc:
        raise SignatureRecoveryError(f"Invalid signature hex format: {exc}") from exc

    if len(raw) != SIGNATURE_LENGTH:
        raise SignatureRecoveryError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
        )
    if raw[-1] not in RECOVERY_IDS:
        raise SignatureRecoveryError(f"Unsupported recovery id: {raw[-1]}")
    return raw


def recover_address(message: str, signature: str) -> str:
    """Synchronous recovery; CPU-bound, call from a worker thread."""
    if not message or not signature:
        raise SignatureRecoveryError("Message and signature are required")
    raw = signature_bytes(signature)
    try:
        address = Account.recover_message(encode_defunct(text=message), signature=raw)
    except (BadSignature, ValidationError, ValueError, TypeError, IndexError) as exc:
        raise SignatureRecoveryError(str(exc)) from exc

    if not is_valid_wallet_address(address) or not is_address(address):
        raise SignatureRecoveryError(f"Recovered value is not an address: {address!r}")
    return str(address)


class EthAccountRecovery:
    """IAddressRecovery backed by eth_account, run off the event loop."""

    async def recover(self, message: str, signature: str) -> str:
        try:
            return await asyncio.to_thread(recover_address, message, signature)
        except SignatureRecoveryError as exc:
            logger.info("signature_recovery_failed", reason=str(exc))
            raise
