"""Text formats signed by wallets: EIP-4361 (SIWE) and plain personal_sign."""

import re
from dataclasses import dataclass

from domain.entities.wallet import ChallengeIntent

SIWE_VERSION = "1"

SIWE_STATEMENTS = {
    ChallengeIntent.LOGIN: "Sign to sign in",
    ChallengeIntent.LINK: "Sign to link your wallet to your account",
}

_HEADER_PATTERN = re.compile(r"^(.+) wants you to sign in with your Ethereum account:$")


@dataclass(frozen=True, slots=True)
class SiweMessageFields:
    """Fields extracted from a SIWE message; anything missing is None."""

    domain: str | None = None
    address: str | None = None
    statement: str | None = None
    uri: str | None = None
    version: str | None = None
    chain_id: int | None = None
    nonce: str | None = None
    issued_at: str | None = None
    expiration_time: str | None = None


def build_siwe_message(
    domain: str,
    address: str,
    statement: str | None,
    uri: str,
    version: str,
    chain_id: int,
    nonce: str,
    issued_at: str,
    expiration_time: str | None = None,
) -> str:
    """Render an EIP-4361 message.

    The statement block is omitted when ``statement`` is empty, and the
    ``Expiration Time`` line when ``expiration_time`` is None.
    """
    lines = [
        f"{domain} wants you to sign in with your Ethereum account:",
        address,
        "",
    ]
    if statement:
        lines.extend([statement, ""])
    lines.extend(
        [
            f"URI: {uri}",
            f"Version: {version}",
            f"Chain ID: {chain_id}",
            f"Nonce: {nonce}",
            f"Issued At: {issued_at}",
        ]
    )
    if expiration_time is not None:
        lines.append(f"Expiration Time: {expiration_time}")
    return "\n".join(lines)


def _field(text: str, label: str) -> str | None:
    match = re.search(rf"(?:^|\n){re.escape(label)}:[ \t]*([^\n]+)", text)
    if not match:
        return None
    return match.group(1).strip() or None


def parse_siwe_message(text: str) -> SiweMessageFields:
    """Extract SIWE fields from ``text``. Never raises."""
    if not isinstance(text, str) or not text:
        return SiweMessageFields()

    text = text.replace("\r\n", "\n")
    lines = text.split("\n")
    header = _HEADER_PATTERN.match(lines[0].strip()) if lines else None
    address = lines[1].strip() if len(lines) > 1 else ""

    statement = None
    # Header, address, blank, then optional statement followed by a blank line
    if len(lines) > 4 and lines[2] == "" and lines[3] and not lines[3].startswith("URI:"):
        statement = lines[3].strip() or None

    chain_id = None
    raw_chain_id = _field(text, "Chain ID")
    if raw_chain_id is not None and raw_chain_id.isdigit():
        chain_id = int(raw_chain_id)

    return SiweMessageFields(
        domain=header.group(1) if header else None,
        address=address or None,
        statement=statement,
        uri=_field(text, "URI"),
        version=_field(text, "Version"),
        chain_id=chain_id,
        nonce=_field(text, "Nonce"),
        issued_at=_field(text, "Issued At"),
        expiration_time=_field(text, "Expiration Time"),
    )


def build_personal_sign_message(
    domain: str,
    nonce: str,
    issued_at: str,
    expires_at: str,
    user_id: str | None = None,
    intent: ChallengeIntent = ChallengeIntent.LINK,
    app_name: str = "Web3 Dashboard",
) -> str:
    """Render the plain-text message used by the personal_sign method."""
    if intent == ChallengeIntent.LOGIN:
        purpose = f"Sign in to {app_name}"
    else:
        purpose = f"Link your wallet to {app_name}"
    user_line = f"User: {user_id}\n" if user_id else ""
    return (
        f"{purpose}\n"
        "\n"
        f"{user_line}"
        f"Domain: {domain}\n"
        f"Nonce: {nonce}\n"
        f"Issued At: {issued_at}\n"
        f"Expires At: {expires_at}\n"
    )
