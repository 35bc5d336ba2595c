"""
HireAssist Backend - Domain Entities.

User and session records owned by the user directory. Both are stored in the
key-value store as plain JSON-compatible dicts and rebuilt with
``model_validate`` on the way back.

Architecture Layer: Domain
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .value_objects import revive_tagged, utcnow


def _advance(previous: datetime) -> datetime:
    """Current time, never earlier than or equal to ``previous``."""
    now = utcnow()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class RegistrationMetadata(BaseModel):
    """Registration provenance. Written once at creation."""

    registration_ip: str = Field(default="unknown")
    user_agent: str = Field(default="unknown")
    registration_fingerprint: str = Field(default="unknown")

    model_config = ConfigDict(frozen=True)


class UserRecord(BaseModel):
    """
    A registered extension user.

    Invariants:
    - id, created_at and metadata are immutable once created
    - sensitive profile fields hold ``Encrypted`` values while stored
    - resumes is append-only
    """

    id: str = Field(..., frozen=True, description="Opaque user identifier")
    created_at: datetime = Field(default_factory=utcnow, frozen=True)
    last_active: datetime = Field(default_factory=utcnow)
    last_login: datetime = Field(default_factory=utcnow)

    profile: dict[str, Any] = Field(default_factory=dict)
    settings: dict[str, Any] = Field(default_factory=dict)
    resumes: list[str] = Field(default_factory=list)
    metadata: RegistrationMetadata = Field(default_factory=RegistrationMetadata, frozen=True)

    @field_validator("profile", mode="before")
    @classmethod
    def revive_profile_values(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {key: revive_tagged(value) for key, value in v.items()}
        return v

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_active = _advance(self.last_active)


class SessionRecord(BaseModel):
    """Server-side bookkeeping for one minted session token."""

    user_id: str = Field(..., frozen=True)
    token: str = Field(..., frozen=True)
    created_at: datetime = Field(default_factory=utcnow, frozen=True)
    last_used: datetime = Field(default_factory=utcnow)
    fingerprint: str = Field(default="unknown")
    ip: str = Field(default="unknown")

    def touch(self) -> None:
        self.last_used = _advance(self.last_used)
