"""
HireAssist Exception Hierarchy.

Typed failures raised by the crypto, token and directory layers. Each error
carries a stable ``error_code`` and ``http_status`` so the route layer can map
it to a response without inspecting messages, and a ``user_message`` that is
safe to show to the extension.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

GENERIC_SESSION_MESSAGE = "Invalid session"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    CRYPTOGRAPHY = "cryptography"
    INTERNAL = "internal"


class HireAssistError(Exception):
    """Base exception for all HireAssist errors."""
    error_code: str = "HIREASSIST_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    http_status: int = 500

    def __init__(self, message: str, *, user_message: str | None = None,
                 details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.user_message = user_message or "An error occurred. Please try again."
        self.details = details or {}
        self._log_error()

    def _log_error(self) -> None:
        log_data = {
            "error_code": self.error_code, "category": self.category.value,
            "severity": self.severity.value, "details": self.details,
        }
        if self.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.error(self.message, **log_data)
        else:
            logger.debug(self.message, **log_data)

    def to_dict(self) -> dict[str, Any]:
        """Externally visible error body; never includes the internal message."""
        return {"success": False, "error": self.user_message, "code": self.error_code}


# Token and session failures. All of them present the same generic message so
# a caller cannot tell a forged signature apart from a malformed token.
class TokenError(HireAssistError):
    error_code = "INVALID_SESSION"
    category = ErrorCategory.AUTHENTICATION
    severity = ErrorSeverity.LOW
    http_status = 401

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, user_message=GENERIC_SESSION_MESSAGE, **kwargs)

    @property
    def reason(self) -> str:
        """Internal failure reason, for logs only."""
        return type(self).__name__


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    severity = ErrorSeverity.MEDIUM


class TokenExpired(TokenError):
    pass


class UserMismatch(TokenError):
    severity = ErrorSeverity.MEDIUM


class SessionNotFound(TokenError):
    pass


class UserNotFound(HireAssistError):
    error_code = "USER_NOT_FOUND"
    category = ErrorCategory.NOT_FOUND
    severity = ErrorSeverity.LOW
    http_status = 404

    def __init__(self, user_id: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        details["user_id"] = user_id[:20]
        super().__init__(f"User '{user_id}' not found", user_message="User not found",
                         details=details, **kwargs)
        self.user_id = user_id


# Cryptography failures
class CryptoError(HireAssistError):
    error_code = "CRYPTO_ERROR"
    category = ErrorCategory.CRYPTOGRAPHY
    severity = ErrorSeverity.HIGH
    http_status = 500


class IntegrityError(CryptoError):
    error_code = "INTEGRITY_ERROR"

    def __init__(self, message: str = "Authentication tag mismatch", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class EncryptionFailure(CryptoError):
    error_code = "ENCRYPTION_FAILURE"


class ValidationFailure(HireAssistError):
    error_code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.LOW
    http_status = 400

    def __init__(self, message: str, *, errors: list[str] | None = None, **kwargs: Any) -> None:
        self.errors = list(errors or [])
        details = kwargs.pop("details", {})
        details["errors"] = self.errors
        super().__init__(message, user_message=message, details=details, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["details"] = self.errors
        return body


class SettingsValidationFailure(ValidationFailure):
    error_code = "SETTINGS_VALIDATION_ERROR"


class BadRequest(HireAssistError):
    """Request is missing something a route requires before it reaches the directory."""
    category = ErrorCategory.VALIDATION
    severity = ErrorSeverity.LOW
    http_status = 400

    def __init__(self, message: str, *, code: str, http_status: int = 400, **kwargs: Any) -> None:
        self.error_code = code
        self.http_status = http_status
        super().__init__(message, user_message=message, **kwargs)
