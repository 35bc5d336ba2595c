"""
HireAssist Backend - Input Validation.

Sanitizers for profile and settings input. The user directory only ever
persists the ``sanitized`` output of these functions, never raw request data.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email as _validate_email
import structlog

logger = structlog.get_logger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 254
PHONE_MIN_LENGTH = 10
PHONE_MAX_LENGTH = 15
LINKEDIN_MAX_LENGTH = 200

DISPOSABLE_EMAIL_DOMAINS = frozenset({"tempmail.org", "10minutemail.com", "guerrillamail.com"})
VALID_THEMES = ("light", "dark", "auto")
VALID_LANGUAGES = ("en", "es", "fr", "de", "it", "pt", "hi")
BOOLEAN_SETTINGS = ("autoFill", "smartSuggestions", "notifications")

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")
_NAME_RE = re.compile(r"^[a-zA-Z\s.\-']+$")
_PHONE_STRIP_RE = re.compile(r"[^\d+\s\-()]")
_PHONE_RE = re.compile(r"^\+?[\d\s\-()]{10,15}$")
_NON_DIGIT_RE = re.compile(r"\D")
_REPEATED_DIGIT_RE = re.compile(r"(\d)\1+")
_HARMFUL_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (r"<script", r"javascript:", r"data:", r"vbscript:", r"onload", r"onerror")
]


@dataclass
class ValidationResult:
    """Outcome of validating one input object or field."""
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    sanitized: Any = None


def _strip_markup(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub("", value)).strip()


def validate_full_name(name: Any) -> ValidationResult:
    """Letters, spaces, dots, hyphens and apostrophes; 2-100 characters."""
    if not isinstance(name, str):
        return ValidationResult(False, ["Full name must be a string"], "")

    errors: list[str] = []
    sanitized = _strip_markup(name)

    if not sanitized:
        errors.append("Full name cannot be empty")
    elif len(sanitized) < NAME_MIN_LENGTH:
        errors.append(f"Full name must be at least {NAME_MIN_LENGTH} characters long")
    elif len(sanitized) > NAME_MAX_LENGTH:
        errors.append(f"Full name cannot exceed {NAME_MAX_LENGTH} characters")
        sanitized = sanitized[:NAME_MAX_LENGTH]

    if sanitized and not _NAME_RE.match(sanitized):
        errors.append(
            "Full name contains invalid characters. "
            "Only letters, spaces, dots, hyphens, and apostrophes are allowed"
        )

    if any(pattern.search(name) for pattern in _HARMFUL_PATTERNS):
        errors.append("Full name contains potentially harmful content")

    return ValidationResult(not errors, errors, sanitized)


def validate_email(email: Any) -> ValidationResult:
    """RFC-shaped address, lowercased, disposable domains refused."""
    if not isinstance(email, str):
        return ValidationResult(False, ["Email must be a string"], "")

    errors: list[str] = []
    sanitized = email.strip().lower()

    if not sanitized:
        errors.append("Email cannot be empty")
    elif len(sanitized) > EMAIL_MAX_LENGTH:
        errors.append(f"Email cannot exceed {EMAIL_MAX_LENGTH} characters")
    else:
        try:
            _validate_email(sanitized, check_deliverability=False)
        except EmailNotValidError:
            errors.append("Invalid email format")

    if "@" in sanitized:
        domain = sanitized.rsplit("@", 1)[1]
        if domain in DISPOSABLE_EMAIL_DOMAINS:
            errors.append("Temporary email addresses are not allowed")

    return ValidationResult(not errors, errors, sanitized)


def validate_phone(phone: Any) -> ValidationResult:
    """10-15 characters of digits, ``+``, spaces, hyphens and parentheses, not all one digit."""
    if not isinstance(phone, str):
        return ValidationResult(False, ["Phone number must be a string"], "")

    errors: list[str] = []
    sanitized = _PHONE_STRIP_RE.sub("", phone).strip()

    if not sanitized:
        errors.append("Phone number cannot be empty")
    elif len(sanitized) < PHONE_MIN_LENGTH:
        errors.append(f"Phone number is too short (minimum {PHONE_MIN_LENGTH} digits)")
    elif len(sanitized) > PHONE_MAX_LENGTH:
        errors.append(f"Phone number is too long (maximum {PHONE_MAX_LENGTH} digits)")

    if sanitized and not _PHONE_RE.match(sanitized):
        errors.append("Invalid phone number format")

    digits = _NON_DIGIT_RE.sub("", sanitized)
    if _REPEATED_DIGIT_RE.fullmatch(digits):
        errors.append("Phone number appears to be invalid (all same digits)")

    return ValidationResult(not errors, errors, sanitized)


def validate_linkedin_url(url: Any) -> ValidationResult:
    """Profile URL on a linkedin.com host with an ``/in/`` or ``/pub/`` path."""
    if not isinstance(url, str):
        return ValidationResult(False, ["LinkedIn URL must be a string"], "")

    errors: list[str] = []
    sanitized = url.strip()

    if not sanitized:
        return ValidationResult(False, ["LinkedIn URL cannot be empty"], "")
    if len(sanitized) > LINKEDIN_MAX_LENGTH:
        errors.append("LinkedIn URL is too long")

    if not sanitized.startswith(("http://", "https://")):
        sanitized = "https://" + sanitized

    parsed = urlparse(sanitized)
    host = (parsed.hostname or "").lower()
    if not host:
        errors.append("Invalid URL format")
    else:
        if host != "linkedin.com" and not host.endswith(".linkedin.com"):
            errors.append("URL must be from linkedin.com domain")
        if "/in/" not in parsed.path and "/pub/" not in parsed.path:
            errors.append("LinkedIn URL must be a profile URL (containing /in/ or /pub/)")

    return ValidationResult(not errors, errors, sanitized)


_PROFILE_VALIDATORS = {
    "fullName": validate_full_name,
    "email": validate_email,
    "phone": validate_phone,
    "linkedin": validate_linkedin_url,
}


def validate_user_profile(profile: Any) -> ValidationResult:
    """
    Validate and sanitize profile input.

    Only known profile fields are carried into ``sanitized``; unknown keys are
    dropped.
    """
    if not isinstance(profile, dict):
        return ValidationResult(False, ["Profile data must be an object"], {})

    errors: list[str] = []
    sanitized: dict[str, Any] = {}
    for name, validator in _PROFILE_VALIDATORS.items():
        if name not in profile:
            continue
        result = validator(profile[name])
        if result.is_valid:
            sanitized[name] = result.sanitized
        else:
            errors.extend(result.errors)

    if errors:
        logger.warning("profile_validation_failed", errors=errors, fields=sorted(profile))

    return ValidationResult(not errors, errors, sanitized)


def validate_user_settings(settings: Any) -> ValidationResult:
    """Validate and sanitize extension settings input."""
    if not isinstance(settings, dict):
        return ValidationResult(False, ["Settings must be an object"], {})

    errors: list[str] = []
    sanitized: dict[str, Any] = {}

    if "backendUrl" in settings:
        backend_url = settings["backendUrl"]
        if not isinstance(backend_url, str):
            errors.append("Backend URL must be a string")
        else:
            parsed = urlparse(backend_url.strip())
            if not parsed.scheme or not parsed.netloc:
                errors.append("Invalid backend URL format")
            else:
                sanitized["backendUrl"] = backend_url.strip()

    for name in BOOLEAN_SETTINGS:
        if name in settings:
            if isinstance(settings[name], bool):
                sanitized[name] = settings[name]
            else:
                errors.append(f"{name} must be a boolean")

    if "theme" in settings:
        if settings["theme"] in VALID_THEMES:
            sanitized["theme"] = settings["theme"]
        else:
            errors.append(f"Theme must be one of: {', '.join(VALID_THEMES)}")

    if "language" in settings:
        if settings["language"] in VALID_LANGUAGES:
            sanitized["language"] = settings["language"]
        else:
            errors.append("Language must be a valid language code")

    if errors:
        logger.warning("settings_validation_failed", errors=errors)

    return ValidationResult(not errors, errors, sanitized)


def sanitize_text_input(value: Any, max_length: int = 1000) -> str:
    """Strip markup and script-ish protocols from free text."""
    if not isinstance(value, str):
        return ""
    cleaned = _TAG_RE.sub("", value)
    cleaned = re.sub(r"(javascript|data|vbscript):", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()[:max_length]
