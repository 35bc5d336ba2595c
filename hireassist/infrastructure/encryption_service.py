"""
HireAssist Backend - Field Encryption Service.

Field-level AES-GCM encryption for the sensitive profile fields (email, phone,
full name). Values move between two tagged forms, ``PlainText`` and
``Encrypted``; callers never see or build an ``EncryptedBlob`` themselves.
"""
from __future__ import annotations

from typing import Any

import structlog

from ..domain.value_objects import SENSITIVE_FIELDS, Encrypted, PlainText
from ..exceptions import CryptoError
from .crypto import CryptoProvider

logger = structlog.get_logger(__name__)


class FieldEncryptionService:
    """
    Encryption Service for profile fields.

    Record-level helpers tolerate per-field failures: a field that cannot be
    encrypted or decrypted is logged and keeps its last-known value, so one
    corrupt field never aborts a whole read or write.
    """

    def __init__(self, crypto: CryptoProvider, sensitive_fields: tuple[str, ...] = SENSITIVE_FIELDS) -> None:
        """
        Initialize encryption service.

        Args:
            crypto: Crypto primitives provider holding the field key
            sensitive_fields: Profile field names that are stored encrypted
        """
        self.crypto = crypto
        self.sensitive_fields = sensitive_fields

    def encrypt_field(self, value: Any) -> Any:
        """
        Encrypt a single value.

        Strings and ``PlainText`` values become ``Encrypted``. Anything else,
        including already encrypted values, is returned unchanged.
        """
        if isinstance(value, PlainText):
            value = value.value
        if not isinstance(value, str):
            return value
        return Encrypted(blob=self.crypto.aead_encrypt(value))

    def decrypt_field(self, value: Any) -> Any:
        """
        Decrypt a single value.

        ``Encrypted`` yields its plaintext, ``PlainText`` is unwrapped, and any
        other value (for example an unencrypted legacy string) passes through.

        Raises:
            IntegrityError: If the blob's authentication tag does not verify
            EncryptionFailure: If the blob is structurally invalid
        """
        if isinstance(value, Encrypted):
            return self.crypto.aead_decrypt(value.blob)
        if isinstance(value, PlainText):
            return value.value
        return value

    def encrypt_user_fields(self, profile: dict[str, Any]) -> dict[str, Any]:
        """Encrypt the sensitive fields of a profile mapping."""
        encrypted = dict(profile)
        for field in self.sensitive_fields:
            if field not in encrypted or not encrypted[field]:
                continue
            try:
                encrypted[field] = self.encrypt_field(encrypted[field])
            except CryptoError as e:
                logger.warning("field_encryption_failed", field=field, error_code=e.error_code)
        return encrypted

    def decrypt_user_fields(self, profile: dict[str, Any]) -> dict[str, Any]:
        """
        Decrypt the sensitive fields of a profile mapping.

        A field that fails to decrypt is returned still encrypted.
        """
        decrypted = dict(profile)
        for field in self.sensitive_fields:
            if field not in decrypted:
                continue
            try:
                decrypted[field] = self.decrypt_field(decrypted[field])
            except CryptoError as e:
                logger.warning("field_decryption_failed", field=field, error_code=e.error_code)
        return decrypted

    def rotate_field(self, value: Encrypted, old_crypto: CryptoProvider) -> Encrypted:
        """
        Re-encrypt a value produced under an older key with the current key.

        Raises:
            IntegrityError: If the value does not verify under the old key
        """
        plaintext = old_crypto.aead_decrypt(value.blob)
        rotated = Encrypted(blob=self.crypto.aead_encrypt(plaintext))
        logger.info("field_encryption_rotated")
        return rotated


def create_encryption_service(crypto: CryptoProvider) -> FieldEncryptionService:
    """Factory function to create the field encryption service."""
    return FieldEncryptionService(crypto)
