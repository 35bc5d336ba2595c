"""
HireAssist Backend - Service Configuration.

Externalized configuration following 12-factor app principles.
All configuration values are loaded from environment variables (or a local
``.env`` file) through pydantic-settings.

Architecture Layer: Infrastructure
Principles: Configuration Externalization, Type Safety, Validation
"""
from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.get_logger(__name__)

# Known unsafe default values that should be rejected
_UNSAFE_SECRET_PATTERNS = [
    "change-in-production",
    "default-secret",
    "changeme",
    "password",
    "secret123",
    "xxxxxxxx",
]


def _is_unsafe_secret(value: str) -> bool:
    """Check if a secret value matches known unsafe patterns."""
    if not value:
        return True
    value_lower = value.lower()
    return any(pattern in value_lower for pattern in _UNSAFE_SECRET_PATTERNS)


class SecuritySettings(BaseSettings):
    """
    Secrets for session signing and field encryption.

    Environment Variables:
        HIREASSIST_SECURITY_SERVER_SECRET: HMAC secret for session tokens (REQUIRED)
        HIREASSIST_SECURITY_ENCRYPTION_PASSPHRASE: Passphrase for profile field encryption (optional)
        HIREASSIST_SECURITY_ENCRYPTION_SALT: Salt for deriving the field key from the passphrase
        HIREASSIST_SECURITY_FALLBACK_SALT: Salt for the fallback key derived from the server secret

    SECURITY: When no encryption passphrase is set the field key is derived from
    the server secret. That is a weak default: it is reported by
    ``uses_weak_encryption_default`` and rejected in production.
    """

    server_secret: str = Field(
        ...,  # Required, no default
        min_length=32,
        description="HMAC secret for session tokens (REQUIRED)",
    )
    encryption_passphrase: str | None = Field(
        default=None,
        description="Passphrase for AES-GCM field encryption",
    )
    encryption_salt: str = Field(default="hireassist-salt", min_length=8)
    fallback_salt: str = Field(default="hireassist-encryption-salt", min_length=8)

    model_config = SettingsConfigDict(
        env_prefix="HIREASSIST_SECURITY_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("server_secret")
    @classmethod
    def validate_server_secret(cls, v: str) -> str:
        """Reject secrets that look like shipped placeholders."""
        if _is_unsafe_secret(v):
            raise ValueError(
                "server_secret appears to use an unsafe default value. "
                "Please provide a secure, randomly generated secret."
            )
        return v

    @field_validator("encryption_passphrase")
    @classmethod
    def empty_passphrase_is_unset(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def uses_weak_encryption_default(self) -> bool:
        return self.encryption_passphrase is None


class ServiceConfig(BaseSettings):
    """
    Backend service configuration.

    Environment Variables:
        HIREASSIST_SERVICE_NAME: Service name (default: hireassist-backend)
        HIREASSIST_SERVICE_ENV: Environment (default: development)
        HIREASSIST_SERVICE_HOST: Bind host (default: 0.0.0.0)
        HIREASSIST_SERVICE_PORT: Bind port (default: 3000)
        HIREASSIST_SERVICE_LOG_LEVEL: Log level (default: INFO)
        HIREASSIST_SERVICE_CORS_ORIGINS: Comma-separated allowed origins
        HIREASSIST_SERVICE_CORS_ORIGIN_REGEX: Regex for browser-extension origins
    """

    name: str = Field(default="hireassist-backend", description="Service name")
    env: Literal["development", "staging", "production"] = Field(default="development")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")

    cors_origins: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        description="Comma-separated list of allowed origins",
    )
    cors_origin_regex: str = Field(
        default=r"^(chrome-extension|moz-extension)://.*$",
        description="Origins matching this pattern are allowed (browser extensions)",
    )

    model_config = SettingsConfigDict(env_prefix="HIREASSIST_SERVICE_", env_file=".env", extra="ignore")

    def get_cors_origins(self) -> list[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def is_production(self) -> bool:
        return self.env == "production"

    def is_development(self) -> bool:
        return self.env == "development"


class HireAssistSettings(BaseSettings):
    """
    Complete backend settings aggregating all configuration sections.

    SECURITY: the server secret MUST be provided via environment variable.
    Production deployments must also provide an encryption passphrase.
    """

    security: SecuritySettings = Field(default_factory=SecuritySettings)
    service: ServiceConfig = Field(default_factory=ServiceConfig)

    model_config = SettingsConfigDict(env_prefix="HIREASSIST_", env_file=".env", extra="ignore")

    @model_validator(mode="after")
    def validate_production_encryption(self) -> "HireAssistSettings":
        """Production must not run on the key derived from the server secret."""
        if self.service.is_production() and self.security.uses_weak_encryption_default:
            raise ValueError(
                "HIREASSIST_SECURITY_ENCRYPTION_PASSPHRASE must be set in production; "
                "the derived fallback key is not acceptable there."
            )
        return self

    def validate_all(self) -> None:
        """Log the effective configuration (no secrets)."""
        if self.security.uses_weak_encryption_default:
            logger.warning(
                "weak_encryption_key_configured",
                message="No encryption passphrase set; field key derived from server secret",
                env=self.service.env,
            )
        logger.info(
            "configuration_validated",
            service=self.service.name,
            env=self.service.env,
            weak_encryption_default=self.security.uses_weak_encryption_default,
        )

    @staticmethod
    def load() -> HireAssistSettings:
        """
        Load settings from environment variables.

        Returns:
            HireAssistSettings: Loaded and validated settings
        """
        try:
            settings = HireAssistSettings()
            settings.validate_all()
            return settings
        except Exception as e:
            logger.error("configuration_load_failed", error=str(e))
            raise
