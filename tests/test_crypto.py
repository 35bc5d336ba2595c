"""
Unit tests for the crypto primitives provider.

Tests cover id generation, key derivation, HMAC signing, AES-GCM and
request fingerprinting.
"""
import re

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
import pytest

from hireassist.domain.value_objects import EncryptedBlob
from hireassist.exceptions import EncryptionFailure, IntegrityError
from hireassist.infrastructure.crypto import CryptoProvider, create_crypto_provider

SERVER_SECRET = "test_server_key_for_pytest_only_not_for_production_use_minimum_32_chars"

USER_ID_RE = re.compile(r"^usr_[0-9a-z]+_[A-Za-z0-9_-]{32}$")


def _flip_hex(value: str) -> str:
    return ("1" if value[0] == "0" else "0") + value[1:]


class TestSecureRandomId:
    """Test cases for user id generation."""

    def test_format(self):
        """Test id has prefix, base36 timestamp and 24 url-safe random bytes."""
        user_id = CryptoProvider.secure_random_id()

        assert USER_ID_RE.match(user_id)

    def test_ids_are_unique(self):
        """Test ids do not collide across many calls."""
        ids = {CryptoProvider.secure_random_id() for _ in range(1000)}

        assert len(ids) == 1000

    def test_random_hex_length(self):
        """Test nonce hex is two characters per byte."""
        assert len(CryptoProvider.secure_random_hex(16)) == 32


class TestKeyDerivation:
    """Test cases for scrypt key derivation."""

    def test_derive_key_deterministic(self):
        """Test same secret and salt give the same key."""
        first = CryptoProvider.derive_key("passphrase-one", "salt-value")
        second = CryptoProvider.derive_key("passphrase-one", "salt-value")

        assert first == second
        assert len(first) == 32

    def test_derive_key_salt_matters(self):
        """Test a different salt gives a different key."""
        assert CryptoProvider.derive_key("passphrase-one", "salt-a") != CryptoProvider.derive_key(
            "passphrase-one", "salt-b"
        )


class TestHmac:
    """Test cases for HMAC signing."""

    def test_sign_deterministic(self, crypto):
        """Test same payload signs to the same code."""
        assert crypto.hmac_sign("payload") == crypto.hmac_sign("payload")

    def test_sign_is_unpadded_base64url(self, crypto):
        """Test signature is 43 url-safe characters with no padding."""
        signature = crypto.hmac_sign(b"payload")

        assert len(signature) == 43
        assert "=" not in signature
        assert "+" not in signature and "/" not in signature

    def test_different_payloads_differ(self, crypto):
        """Test two payloads produce different codes."""
        assert crypto.hmac_sign("payload-a") != crypto.hmac_sign("payload-b")

    def test_explicit_secret_overrides_server_secret(self, crypto):
        """Test passing a secret signs with that secret instead."""
        assert crypto.hmac_sign("payload", secret="another-secret") != crypto.hmac_sign("payload")

    def test_signatures_match(self, crypto):
        """Test constant-time comparison."""
        signature = crypto.hmac_sign("payload")

        assert CryptoProvider.signatures_match(signature, signature)
        assert not CryptoProvider.signatures_match(signature, crypto.hmac_sign("other"))


class TestAead:
    """Test cases for AES-256-GCM encryption."""

    def test_round_trip(self, crypto):
        """Test decrypt returns the original plaintext."""
        blob = crypto.aead_encrypt("ada@example.com")

        assert crypto.aead_decrypt(blob) == "ada@example.com"

    def test_blob_shape(self, crypto):
        """Test blob fields are hex with 12-byte IV and 16-byte tag."""
        blob = crypto.aead_encrypt("ada@example.com")

        assert blob.algorithm == "aes-256-gcm"
        assert len(bytes.fromhex(blob.iv)) == 12
        assert len(bytes.fromhex(blob.auth_tag)) == 16
        assert "ada@example.com" not in blob.ciphertext

    def test_fresh_iv_per_call(self, crypto):
        """Test the same plaintext never reuses an IV."""
        first = crypto.aead_encrypt("same")
        second = crypto.aead_encrypt("same")

        assert first.iv != second.iv
        assert first.ciphertext != second.ciphertext

    def test_tampered_ciphertext_fails(self, crypto):
        """Test flipped ciphertext is rejected by the tag check."""
        blob = crypto.aead_encrypt("ada@example.com")
        tampered = blob.model_copy(update={"ciphertext": _flip_hex(blob.ciphertext)})

        with pytest.raises(IntegrityError):
            crypto.aead_decrypt(tampered)

    def test_tampered_tag_fails(self, crypto):
        """Test flipped tag is rejected."""
        blob = crypto.aead_encrypt("ada@example.com")
        tampered = blob.model_copy(update={"auth_tag": _flip_hex(blob.auth_tag)})

        with pytest.raises(IntegrityError):
            crypto.aead_decrypt(tampered)

    def test_wrong_key_fails(self, crypto):
        """Test a blob does not decrypt under another key."""
        blob = crypto.aead_encrypt("ada@example.com")
        other_key = CryptoProvider.derive_key("other-passphrase", "other-salt")

        with pytest.raises(IntegrityError):
            crypto.aead_decrypt(blob, key=other_key)

    def test_unsupported_algorithm(self, crypto):
        """Test unknown algorithm identifiers are refused."""
        blob = crypto.aead_encrypt("value").model_copy(update={"algorithm": "aes-128-cbc"})

        with pytest.raises(EncryptionFailure):
            crypto.aead_decrypt(blob)

    def test_invalid_hex(self, crypto):
        """Test non-hex blob parts are refused."""
        blob = EncryptedBlob(ciphertext="zz", iv="00" * 12, auth_tag="00" * 16)

        with pytest.raises(EncryptionFailure):
            crypto.aead_decrypt(blob)

    def test_invalid_iv_length(self, crypto):
        """Test a short IV is refused before decryption is attempted."""
        blob = crypto.aead_encrypt("value").model_copy(update={"iv": "00" * 8})

        with pytest.raises(EncryptionFailure):
            crypto.aead_decrypt(blob)

    def test_non_utf8_plaintext(self, crypto):
        """Test authentic ciphertext that is not UTF-8 raises a crypto error."""
        key = CryptoProvider.derive_key("other-passphrase", "other-salt")
        iv = bytes(12)
        sealed = AESGCM(key).encrypt(iv, b"\xff\xfe\xfd", None)
        blob = EncryptedBlob(ciphertext=sealed[:-16].hex(), iv=iv.hex(), auth_tag=sealed[-16:].hex())

        with pytest.raises(EncryptionFailure):
            crypto.aead_decrypt(blob, key=key)


class TestWeakDefault:
    """Test cases for the fallback field key."""

    def test_flagged_without_passphrase(self):
        """Test provider reports the weak default when no passphrase is set."""
        provider = create_crypto_provider(server_secret=SERVER_SECRET)

        assert provider.using_weak_default is True

    def test_not_flagged_with_passphrase(self, crypto):
        """Test a configured passphrase clears the flag."""
        assert crypto.using_weak_default is False

    def test_fallback_key_differs_from_configured_key(self, crypto):
        """Test blobs from the fallback key do not open under the configured key."""
        weak = create_crypto_provider(server_secret=SERVER_SECRET)
        blob = weak.aead_encrypt("value")

        with pytest.raises(IntegrityError):
            crypto.aead_decrypt(blob)


class TestFingerprint:
    """Test cases for request fingerprints."""

    def test_fingerprint_is_short_and_stable(self):
        """Test fingerprint is 16 characters and deterministic."""
        first = CryptoProvider.request_fingerprint("Mozilla/5.0", "10.0.0.1", "en-US")
        second = CryptoProvider.request_fingerprint("Mozilla/5.0", "10.0.0.1", "en-US")

        assert first == second
        assert len(first) == 16

    def test_missing_parts_use_unknown(self):
        """Test missing components are treated as 'unknown'."""
        assert CryptoProvider.request_fingerprint() == CryptoProvider.request_fingerprint(
            "unknown", "unknown", "unknown"
        )

    def test_components_matter(self):
        """Test a different IP gives a different fingerprint."""
        assert CryptoProvider.request_fingerprint("ua", "10.0.0.1") != CryptoProvider.request_fingerprint(
            "ua", "10.0.0.2"
        )
