"""
HireAssist Backend.

Session and credential layer for the HireAssist browser extension: user ids,
signed session tokens, field-level encryption of profile data and the user
directory built on them.

Architecture:
    - Domain Layer: user and session records, validation, the user directory
    - Infrastructure Layer: crypto primitives, tokens, field encryption, storage

Usage:
    # Domain layer
    from hireassist.domain import UserRecord, SessionRecord, validate_user_profile
    from hireassist.domain.service import UserDirectory

    # Infrastructure layer
    from hireassist.infrastructure import create_crypto_provider, create_token_service

    # Configuration
    from hireassist.config import HireAssistSettings
"""
__version__ = "1.0.0"

from .config import HireAssistSettings
from .exceptions import (
    HireAssistError,
    TokenError,
    UserNotFound,
    CryptoError,
    ValidationFailure,
)

__all__ = [
    "__version__",
    # Config
    "HireAssistSettings",
    # Errors
    "HireAssistError",
    "TokenError",
    "UserNotFound",
    "CryptoError",
    "ValidationFailure",
]
