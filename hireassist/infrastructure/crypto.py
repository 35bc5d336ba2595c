"""
HireAssist Backend - Crypto Primitives.

Secure random identifiers, scrypt key derivation, HMAC-SHA256 signing and
AES-256-GCM authenticated encryption. Everything above this module (token
service, field encryption) goes through a ``CryptoProvider`` built from
explicit configuration; no secret is read from the environment here.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
import time

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, Field

from ..domain.value_objects import AES_GCM_ALGORITHM, EncryptedBlob
from ..exceptions import EncryptionFailure, IntegrityError

logger = structlog.get_logger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
USER_ID_RANDOM_BYTES = 24
USER_ID_PREFIX = "usr"

SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


class CryptoConfig(BaseModel):
    """Crypto provider configuration."""
    server_secret: str = Field(..., min_length=1, description="HMAC secret for session signatures")
    encryption_passphrase: str | None = Field(default=None, description="Passphrase for field encryption")
    encryption_salt: str = Field(default="hireassist-salt")
    fallback_salt: str = Field(default="hireassist-encryption-salt")


class CryptoProvider:
    """
    Crypto primitives provider.

    The field encryption key is derived once at construction. When no
    passphrase is configured the key is derived from the server secret with a
    separate salt; that state is exposed as ``using_weak_default`` and logged
    as a warning every time a provider is built.
    """

    def __init__(self, config: CryptoConfig) -> None:
        self.config = config
        self._server_secret = config.server_secret.encode("utf-8")
        self.using_weak_default = config.encryption_passphrase is None

        if self.using_weak_default:
            logger.warning(
                "weak_encryption_key_in_use",
                message="Field encryption key derived from server secret; set an encryption passphrase",
            )
            self._field_key = self.derive_key(config.server_secret, config.fallback_salt)
        else:
            self._field_key = self.derive_key(config.encryption_passphrase, config.encryption_salt)

    # --- Random ---

    @staticmethod
    def secure_random_id() -> str:
        """
        Generate an opaque user identifier.

        Format: ``usr_<base36 ms timestamp>_<base64url 24 random bytes>``.
        """
        timestamp = _to_base36(time.time_ns() // 1_000_000)
        random_part = _b64url(secrets.token_bytes(USER_ID_RANDOM_BYTES))
        user_id = f"{USER_ID_PREFIX}_{timestamp}_{random_part}"
        logger.debug("user_id_generated", user_id_prefix=user_id[:20])
        return user_id

    @staticmethod
    def secure_random_hex(num_bytes: int = 16) -> str:
        return secrets.token_hex(num_bytes)

    # --- Key derivation ---

    @staticmethod
    def derive_key(secret: str | bytes, salt: str | bytes) -> bytes:
        """Derive a 32-byte key with scrypt. Same inputs always give the same key."""
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        if isinstance(salt, str):
            salt = salt.encode("utf-8")
        kdf = Scrypt(salt=salt, length=KEY_SIZE, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
        return kdf.derive(secret)

    # --- HMAC ---

    def hmac_sign(self, payload: str | bytes, secret: str | bytes | None = None) -> str:
        """HMAC-SHA256 over ``payload``, rendered as unpadded base64url."""
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        if secret is None:
            key = self._server_secret
        elif isinstance(secret, str):
            key = secret.encode("utf-8")
        else:
            key = secret
        return _b64url(hmac.new(key, payload, hashlib.sha256).digest())

    @staticmethod
    def signatures_match(expected: str, provided: str) -> bool:
        """Constant-time signature comparison."""
        return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))

    # --- AEAD ---

    def aead_encrypt(self, plaintext: str, key: bytes | None = None) -> EncryptedBlob:
        """Encrypt with AES-256-GCM under a fresh random IV."""
        key = key or self._field_key
        try:
            iv = os.urandom(NONCE_SIZE)
            sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
        except Exception as e:
            raise EncryptionFailure(f"Failed to encrypt value: {type(e).__name__}") from e

        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return EncryptedBlob(
            ciphertext=ciphertext.hex(),
            iv=iv.hex(),
            auth_tag=tag.hex(),
            algorithm=AES_GCM_ALGORITHM,
        )

    def aead_decrypt(self, blob: EncryptedBlob, key: bytes | None = None) -> str:
        """
        Decrypt an AES-256-GCM blob.

        Raises:
            EncryptionFailure: If the blob is structurally unusable
            IntegrityError: If the authentication tag does not verify
        """
        key = key or self._field_key
        if blob.algorithm != AES_GCM_ALGORITHM:
            raise EncryptionFailure(f"Unsupported algorithm: {blob.algorithm}")
        try:
            ciphertext = bytes.fromhex(blob.ciphertext)
            iv = bytes.fromhex(blob.iv)
            tag = bytes.fromhex(blob.auth_tag)
        except ValueError as e:
            raise EncryptionFailure("Encrypted blob is not valid hex") from e
        if len(iv) != NONCE_SIZE or len(tag) != TAG_SIZE:
            raise EncryptionFailure("Encrypted blob has invalid IV or tag length")

        try:
            plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        except InvalidTag as e:
            raise IntegrityError() from e
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncryptionFailure("Decrypted value is not valid UTF-8") from e

    # --- Fingerprinting ---

    @staticmethod
    def request_fingerprint(
        user_agent: str | None = None,
        ip: str | None = None,
        accept_language: str | None = None,
    ) -> str:
        """Short, weak device signal. Not a security boundary."""
        components = [user_agent or "unknown", ip or "unknown", accept_language or "unknown"]
        digest = hashlib.sha256("|".join(components).encode("utf-8")).digest()
        return _b64url(digest)[:16]


def create_crypto_provider(
    server_secret: str,
    encryption_passphrase: str | None = None,
    encryption_salt: str = "hireassist-salt",
    fallback_salt: str = "hireassist-encryption-salt",
) -> CryptoProvider:
    """
    Factory function to create a crypto provider.

    Args:
        server_secret: HMAC secret for session tokens
        encryption_passphrase: Field encryption passphrase (weak fallback if None)
        encryption_salt: Salt used with the passphrase
        fallback_salt: Salt used when deriving from the server secret

    Returns:
        Configured CryptoProvider instance
    """
    config = CryptoConfig(
        server_secret=server_secret,
        encryption_passphrase=encryption_passphrase,
        encryption_salt=encryption_salt,
        fallback_salt=fallback_salt,
    )
    return CryptoProvider(config)
