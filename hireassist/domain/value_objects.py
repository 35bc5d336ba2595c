"""
HireAssist Backend - Domain Value Objects.

Value objects are immutable objects defined by their attributes. The profile
field values use an explicit tagged variant: a value is either ``PlainText``
or ``Encrypted`` and code matches on the ``kind`` tag instead of probing the
shape of a dict.

Architecture Layer: Domain
Principles: Immutability, Value Equality, Self-Validation
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
import structlog

logger = structlog.get_logger(__name__)

AES_GCM_ALGORITHM = "aes-256-gcm"

# Profile fields that are only ever stored encrypted
SENSITIVE_FIELDS: tuple[str, ...] = ("email", "phone", "fullName")


class EncryptedBlob(BaseModel):
    """
    AES-GCM output for a single field.

    Produced and consumed only by the field encryption service. All binary
    parts are hex encoded.
    """

    ciphertext: str = Field(..., description="Hex-encoded ciphertext")
    iv: str = Field(..., description="Hex-encoded initialization vector")
    auth_tag: str = Field(..., description="Hex-encoded GCM authentication tag")
    algorithm: str = Field(default=AES_GCM_ALGORITHM)

    model_config = ConfigDict(frozen=True)


class PlainText(BaseModel):
    """A profile value that is stored as-is."""

    kind: Literal["plain"] = "plain"
    value: str

    model_config = ConfigDict(frozen=True)


class Encrypted(BaseModel):
    """A profile value stored as an encrypted blob."""

    kind: Literal["encrypted"] = "encrypted"
    blob: EncryptedBlob

    model_config = ConfigDict(frozen=True)


TaggedValue = Annotated[Union[PlainText, Encrypted], Field(discriminator="kind")]
_tagged_adapter: TypeAdapter[PlainText | Encrypted] = TypeAdapter(TaggedValue)


def revive_tagged(value: Any) -> Any:
    """
    Rebuild a tagged value loaded from storage.

    Only dicts carrying a known ``kind`` tag are converted; anything else is
    returned unchanged. A tagged dict that does not validate (for example a
    blob missing its auth tag) is logged and returned as stored.
    """
    if isinstance(value, dict) and value.get("kind") in ("plain", "encrypted"):
        try:
            return _tagged_adapter.validate_python(value)
        except ValidationError as e:
            logger.warning("field_revive_failed", kind=value.get("kind"), error_count=e.error_count())
    return value


class RequestContext(BaseModel):
    """Provenance of the request that triggered a registration or session."""

    ip: str = Field(default="unknown")
    user_agent: str = Field(default="unknown")
    fingerprint: str = Field(default="unknown")

    model_config = ConfigDict(frozen=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_user_settings() -> dict[str, Any]:
    """Settings every new user starts with."""
    return {
        "backendUrl": "http://localhost:3000",
        "autoFill": True,
        "smartSuggestions": True,
        "notifications": True,
        "theme": "light",
        "language": "en",
        "privacy": {
            "shareData": False,
            "analytics": False,
        },
        "createdAt": utcnow().isoformat(),
    }
