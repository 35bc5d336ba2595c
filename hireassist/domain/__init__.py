"""
HireAssist Backend - Domain Layer.

Public API for the domain layer: records, tagged field values and input
validation. The user directory lives in ``hireassist.domain.service``.
"""
from .entities import RegistrationMetadata, SessionRecord, UserRecord
from .value_objects import (
    AES_GCM_ALGORITHM,
    SENSITIVE_FIELDS,
    EncryptedBlob,
    PlainText,
    Encrypted,
    TaggedValue,
    RequestContext,
    default_user_settings,
)
from .validation import (
    ValidationResult,
    validate_user_profile,
    validate_user_settings,
    sanitize_text_input,
)

__all__ = [
    # Entities
    "UserRecord",
    "SessionRecord",
    "RegistrationMetadata",
    # Value Objects
    "AES_GCM_ALGORITHM",
    "SENSITIVE_FIELDS",
    "EncryptedBlob",
    "PlainText",
    "Encrypted",
    "TaggedValue",
    "RequestContext",
    "default_user_settings",
    # Validation
    "ValidationResult",
    "validate_user_profile",
    "validate_user_settings",
    "sanitize_text_input",
]
