"""
Unit tests for the session token service.

Tests cover minting, each verification failure in order, and the generic
external message shared by all token failures.
"""
import base64
import json
import time
from datetime import timedelta

import pytest

from hireassist.exceptions import (
    GENERIC_SESSION_MESSAGE,
    InvalidSignature,
    MalformedToken,
    TokenError,
    TokenExpired,
    UserMismatch,
)
from hireassist.infrastructure.crypto import create_crypto_provider
from hireassist.infrastructure.token_service import (
    SESSION_TOKEN_LIFETIME,
    SessionTokenService,
)

USER_ID = "usr_lq2k3m_abcdefghijklmnopqrstuvwxyz012345"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _split(token: str) -> tuple[dict, str]:
    payload_part, signature = token.split(".")
    return json.loads(base64.b64decode(payload_part)), signature


def _join(payload: dict, signature: str) -> str:
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return f"{base64.b64encode(raw).decode('ascii')}.{signature}"


class TestMint:
    """Test cases for token minting."""

    def test_token_format(self, token_service):
        """Test token is base64 payload and signature joined by one dot."""
        token = token_service.mint(USER_ID)

        assert token.count(".") == 1
        payload, signature = _split(token)
        assert set(payload) == {"userId", "issued", "expires", "random"}
        assert payload["userId"] == USER_ID
        assert len(payload["random"]) == 32
        assert signature

    def test_lifetime_is_24_hours(self, token_service):
        """Test expiry is issue time plus the fixed lifetime."""
        payload, _ = _split(token_service.mint(USER_ID))

        assert payload["expires"] - payload["issued"] == 24 * 60 * 60 * 1000
        assert SESSION_TOKEN_LIFETIME == timedelta(hours=24)

    def test_tokens_are_unique(self, token_service):
        """Test two tokens for the same user differ."""
        assert token_service.mint(USER_ID) != token_service.mint(USER_ID)


class TestVerify:
    """Test cases for token verification."""

    def test_verify_fresh_token(self, token_service):
        """Test a freshly minted token verifies for its user."""
        verified = token_service.verify(token_service.mint(USER_ID))

        assert verified.user_id == USER_ID
        assert timedelta(hours=23) < verified.remaining <= SESSION_TOKEN_LIFETIME

    def test_verify_with_expected_user(self, token_service):
        """Test verification succeeds when the expected user matches."""
        verified = token_service.verify(token_service.mint(USER_ID), expected_user_id=USER_ID)

        assert verified.payload.user_id == USER_ID

    def test_expires_at(self, token_service):
        """Test expiry is exposed as an aware datetime."""
        token = token_service.mint(USER_ID)
        payload, _ = _split(token)

        verified = token_service.verify(token)

        assert int(verified.expires_at.timestamp() * 1000) == payload["expires"]

    @pytest.mark.parametrize("token", ["", "no-separator", "a.b.c", ".signature", "payload."])
    def test_malformed_structure(self, token_service, token):
        """Test tokens without exactly one separator or with empty parts."""
        with pytest.raises(MalformedToken):
            token_service.verify(token)

    def test_non_string_token(self, token_service):
        """Test non-string input is malformed."""
        with pytest.raises(MalformedToken):
            token_service.verify(None)

    def test_payload_not_base64(self, token_service):
        """Test undecodable payload segment."""
        with pytest.raises(MalformedToken):
            token_service.verify("!!!not-base64!!!.signature")

    def test_payload_not_json(self, token_service):
        """Test payload that decodes to something other than JSON."""
        garbage = base64.b64encode(b"not json at all").decode("ascii")

        with pytest.raises(MalformedToken):
            token_service.verify(f"{garbage}.signature")

    def test_payload_missing_fields(self, token_service):
        """Test JSON payload without the required keys."""
        partial = base64.b64encode(b'{"userId":"usr_x"}').decode("ascii")

        with pytest.raises(MalformedToken):
            token_service.verify(f"{partial}.signature")

    def test_flipped_payload_byte_fails_signature(self, token_service):
        """Test altering the payload keeps it decodable but breaks the signature."""
        payload, signature = _split(token_service.mint(USER_ID))
        nonce = payload["random"]
        payload["random"] = ("1" if nonce[0] == "0" else "0") + nonce[1:]

        with pytest.raises(InvalidSignature):
            token_service.verify(_join(payload, signature))

    def test_forged_user_id_fails_signature(self, token_service):
        """Test swapping the user id in the payload is detected."""
        payload, signature = _split(token_service.mint(USER_ID))
        payload["userId"] = "usr_attacker_0000"

        with pytest.raises(InvalidSignature):
            token_service.verify(_join(payload, signature))

    def test_extended_expiry_fails_signature(self, token_service):
        """Test pushing the expiry forward is detected."""
        payload, signature = _split(token_service.mint(USER_ID))
        payload["expires"] += 10 * 24 * 60 * 60 * 1000

        with pytest.raises(InvalidSignature):
            token_service.verify(_join(payload, signature))

    def test_tampered_signature(self, token_service):
        """Test a replaced signature is rejected."""
        payload_part, signature = token_service.mint(USER_ID).split(".")
        replacement = ("A" if signature[0] != "A" else "B") + signature[1:]

        with pytest.raises(InvalidSignature):
            token_service.verify(f"{payload_part}.{replacement}")

    def test_token_from_other_server_secret(self, token_service):
        """Test a token signed under another secret is rejected."""
        other = SessionTokenService(
            create_crypto_provider(
                server_secret="another_server_key_used_only_in_this_test_case_0001",
                encryption_passphrase="unused-passphrase",
            )
        )

        with pytest.raises(InvalidSignature):
            token_service.verify(other.mint(USER_ID))

    def test_expired_token(self, crypto, token_service):
        """Test a token whose expiry is one millisecond in the past."""
        lifetime_ms = int(SESSION_TOKEN_LIFETIME.total_seconds() * 1000)
        past = SessionTokenService(crypto, clock=lambda: _now_ms() - lifetime_ms - 1)

        with pytest.raises(TokenExpired):
            token_service.verify(past.mint(USER_ID))

    def test_expired_checked_before_user(self, crypto, token_service):
        """Test expiry is reported before a user mismatch."""
        lifetime_ms = int(SESSION_TOKEN_LIFETIME.total_seconds() * 1000)
        past = SessionTokenService(crypto, clock=lambda: _now_ms() - lifetime_ms - 1)

        with pytest.raises(TokenExpired):
            token_service.verify(past.mint(USER_ID), expected_user_id="usr_someone_else")

    def test_user_mismatch(self, token_service):
        """Test a valid token presented for another user."""
        with pytest.raises(UserMismatch):
            token_service.verify(token_service.mint(USER_ID), expected_user_id="usr_someone_else")


class TestTokenErrors:
    """Test cases for externally visible token failure details."""

    @pytest.mark.parametrize("error_cls", [MalformedToken, InvalidSignature, TokenExpired, UserMismatch])
    def test_generic_external_message(self, error_cls):
        """Test every token failure presents the same body."""
        error = error_cls("precise internal reason")

        assert isinstance(error, TokenError)
        assert error.http_status == 401
        assert error.to_dict() == {"success": False, "error": GENERIC_SESSION_MESSAGE, "code": "INVALID_SESSION"}
        assert "precise internal reason" not in str(error.to_dict())

    def test_reason_is_internal(self):
        """Test the reason names the failure for logs."""
        assert InvalidSignature("x").reason == "InvalidSignature"
