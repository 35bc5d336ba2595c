"""Shared fixtures for HireAssist tests."""
from __future__ import annotations

import pytest

from hireassist.domain.service import UserDirectory
from hireassist.infrastructure.crypto import CryptoProvider, create_crypto_provider
from hireassist.infrastructure.encryption_service import FieldEncryptionService, create_encryption_service
from hireassist.infrastructure.repository import InMemoryKeyValueStore
from hireassist.infrastructure.token_service import SessionTokenService, create_token_service

TEST_SERVER_SECRET = "test_server_key_for_pytest_only_not_for_production_use_minimum_32_chars"
TEST_PASSPHRASE = "test_field_passphrase_for_pytest_only"


@pytest.fixture(scope="session")
def crypto() -> CryptoProvider:
    """Crypto provider with an explicit encryption passphrase."""
    return create_crypto_provider(
        server_secret=TEST_SERVER_SECRET,
        encryption_passphrase=TEST_PASSPHRASE,
    )


@pytest.fixture
def token_service(crypto: CryptoProvider) -> SessionTokenService:
    return create_token_service(crypto)


@pytest.fixture
def encryption_service(crypto: CryptoProvider) -> FieldEncryptionService:
    return create_encryption_service(crypto)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def directory(
    store: InMemoryKeyValueStore,
    crypto: CryptoProvider,
    token_service: SessionTokenService,
    encryption_service: FieldEncryptionService,
) -> UserDirectory:
    """User directory over a fresh in-memory store."""
    return UserDirectory(
        store=store,
        crypto=crypto,
        token_service=token_service,
        encryption_service=encryption_service,
    )
