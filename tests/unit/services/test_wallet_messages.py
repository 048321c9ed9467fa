"""Unit tests for SIWE and personal_sign message formats."""

from domain.entities.wallet import ChallengeIntent
from domain.services.wallet_messages import (
    build_personal_sign_message,
    build_siwe_message,
    parse_siwe_message,
)

ADDRESS = "0x19E7E376E7C213B7E7e7e46cc70A5dD086DAff2A"


def _siwe(**overrides) -> str:
    params = {
        "domain": "dashboard.test",
        "address": ADDRESS,
        "statement": "Sign to link your wallet to your account",
        "uri": "https://dashboard.test",
        "version": "1",
        "chain_id": 1,
        "nonce": "f00dbabe" * 4,
        "issued_at": "2026-01-28T10:00:00.000Z",
        "expiration_time": "2026-01-28T10:10:00.000Z",
    }
    params.update(overrides)
    return build_siwe_message(**params)


class TestBuildSiweMessage:
    def test_full_layout(self):
        assert _siwe() == (
            "dashboard.test wants you to sign in with your Ethereum account:\n"
            f"{ADDRESS}\n"
            "\n"
            "Sign to link your wallet to your account\n"
            "\n"
            "URI: https://dashboard.test\n"
            "Version: 1\n"
            "Chain ID: 1\n"
            f"Nonce: {'f00dbabe' * 4}\n"
            "Issued At: 2026-01-28T10:00:00.000Z\n"
            "Expiration Time: 2026-01-28T10:10:00.000Z"
        )

    def test_omits_statement_block_when_absent(self):
        message = _siwe(statement=None)

        lines = message.split("\n")
        assert lines[2] == ""
        assert lines[3] == "URI: https://dashboard.test"

    def test_omits_expiration_line_when_absent(self):
        message = _siwe(expiration_time=None)

        assert "Expiration Time" not in message
        assert message.endswith("Issued At: 2026-01-28T10:00:00.000Z")

    def test_is_deterministic(self):
        assert _siwe() == _siwe()


class TestParseSiweMessage:
    def test_extracts_every_field(self):
        fields = parse_siwe_message(_siwe())

        assert fields.domain == "dashboard.test"
        assert fields.address == ADDRESS
        assert fields.statement == "Sign to link your wallet to your account"
        assert fields.uri == "https://dashboard.test"
        assert fields.version == "1"
        assert fields.chain_id == 1
        assert fields.nonce == "f00dbabe" * 4
        assert fields.issued_at == "2026-01-28T10:00:00.000Z"
        assert fields.expiration_time == "2026-01-28T10:10:00.000Z"

    def test_without_statement_or_expiration(self):
        fields = parse_siwe_message(_siwe(statement=None, expiration_time=None))

        assert fields.statement is None
        assert fields.expiration_time is None
        assert fields.nonce == "f00dbabe" * 4

    def test_garbage_yields_empty_fields(self):
        fields = parse_siwe_message("hello there")

        assert fields.domain is None
        assert fields.nonce is None
        assert fields.chain_id is None

    def test_empty_and_non_string_never_raise(self):
        assert parse_siwe_message("").domain is None
        assert parse_siwe_message(None).nonce is None  # type: ignore[arg-type]

    def test_non_numeric_chain_id(self):
        fields = parse_siwe_message(_siwe().replace("Chain ID: 1", "Chain ID: mainnet"))

        assert fields.chain_id is None

    def test_accepts_crlf_line_endings(self):
        fields = parse_siwe_message(_siwe().replace("\n", "\r\n"))

        assert fields.domain == "dashboard.test"
        assert fields.address == ADDRESS
        assert fields.nonce == "f00dbabe" * 4


class TestBuildPersonalSignMessage:
    def test_link_message_with_user_line(self):
        message = build_personal_sign_message(
            domain="dashboard.test",
            nonce="abc123",
            issued_at="2026-01-28T10:00:00.000Z",
            expires_at="2026-01-28T10:10:00.000Z",
            user_id="google-oauth2|1001",
            intent=ChallengeIntent.LINK,
        )

        assert message == (
            "Link your wallet to Web3 Dashboard\n"
            "\n"
            "User: google-oauth2|1001\n"
            "Domain: dashboard.test\n"
            "Nonce: abc123\n"
            "Issued At: 2026-01-28T10:00:00.000Z\n"
            "Expires At: 2026-01-28T10:10:00.000Z\n"
        )

    def test_login_message_without_user(self):
        message = build_personal_sign_message(
            domain="dashboard.test",
            nonce="abc123",
            issued_at="2026-01-28T10:00:00.000Z",
            expires_at="2026-01-28T10:10:00.000Z",
            intent=ChallengeIntent.LOGIN,
        )

        assert message.startswith("Sign in to Web3 Dashboard\n\nDomain: dashboard.test\n")
        assert "User:" not in message

    def test_custom_app_name(self):
        message = build_personal_sign_message(
            domain="d",
            nonce="n",
            issued_at="i",
            expires_at="e",
            app_name="Token Board",
        )

        assert message.startswith("Link your wallet to Token Board\n")
