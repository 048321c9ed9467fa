"""Helpers shared by unit and integration tests."""

from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from httpx import Response

# Fixed keys so signer addresses are stable across runs
ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32

TEST_HOST = "dashboard.test"
TEST_SESSION_SECRET = "test-session-secret"


def sign_text(account: LocalAccount, message: str) -> str:
    """EIP-191 personal_sign signature as 0x-prefixed hex."""
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


def challenge_cookie_from(response: Response, name: str = "wallet_challenge") -> str | None:
    """Value of the challenge cookie set by ``response``, if any."""
    for header in response.headers.get_list("set-cookie"):
        key, _, value = header.split(";", 1)[0].partition("=")
        if key.strip() == name:
            return value.strip().strip('"') or None
    return None


def clears_challenge_cookie(response: Response, name: str = "wallet_challenge") -> bool:
    """Whether ``response`` expires the challenge cookie."""
    return any(
        header.startswith(f"{name}=") and "max-age=0" in header.lower()
        for header in response.headers.get_list("set-cookie")
    )
