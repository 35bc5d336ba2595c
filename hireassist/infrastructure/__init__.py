"""
HireAssist Backend - Infrastructure Layer.

Infrastructure implementations for the directory's collaborators:
- CryptoProvider: random ids, scrypt key derivation, HMAC, AES-GCM
- SessionTokenService: signed, self-describing session tokens
- FieldEncryptionService: encryption of sensitive profile fields
- KeyValueStore: namespaced storage abstraction with an in-memory backend
"""
from __future__ import annotations

from .crypto import (
    CryptoConfig,
    CryptoProvider,
    create_crypto_provider,
)
from .token_service import (
    SESSION_TOKEN_LIFETIME,
    SessionTokenService,
    TokenPayload,
    VerifiedToken,
    create_token_service,
)
from .encryption_service import (
    FieldEncryptionService,
    create_encryption_service,
)
from .repository import (
    USERS,
    SESSIONS,
    KeyValueStore,
    InMemoryKeyValueStore,
)

__all__ = [
    # Crypto
    "CryptoConfig",
    "CryptoProvider",
    "create_crypto_provider",
    # Tokens
    "SESSION_TOKEN_LIFETIME",
    "SessionTokenService",
    "TokenPayload",
    "VerifiedToken",
    "create_token_service",
    # Encryption
    "FieldEncryptionService",
    "create_encryption_service",
    # Storage
    "USERS",
    "SESSIONS",
    "KeyValueStore",
    "InMemoryKeyValueStore",
]
