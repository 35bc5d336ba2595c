"""
HireAssist Backend - User Directory.

Registration, lookup, profile/settings updates, session validation and
deletion for extension users. Composes the key-value store, the session token
service and the field encryption service.

Every operation is a single-key read-modify-write against the store. Two
concurrent updates to the same user race under last-write-wins.

Architecture Layer: Domain
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog

from ..exceptions import SessionNotFound, SettingsValidationFailure, UserNotFound, ValidationFailure
from ..infrastructure.crypto import CryptoProvider
from ..infrastructure.encryption_service import FieldEncryptionService
from ..infrastructure.repository import SESSIONS, USERS, KeyValueStore
from ..infrastructure.token_service import SESSION_TOKEN_LIFETIME, SessionTokenService
from .entities import RegistrationMetadata, SessionRecord, UserRecord
from .validation import sanitize_text_input, validate_user_profile, validate_user_settings
from .value_objects import RequestContext, default_user_settings, utcnow

logger = structlog.get_logger(__name__)

ACTIVE_SESSION_WINDOW = timedelta(hours=1)
ACTIVE_USER_WINDOW = timedelta(days=1)


# --- Result Types ---

@dataclass
class RegistrationResult:
    """Result of a successful registration."""
    user_id: str
    session_token: str
    profile: dict[str, Any]
    expires_in: timedelta = SESSION_TOKEN_LIFETIME


@dataclass
class SessionValidation:
    """A verified token together with its session and decrypted user."""
    user: UserRecord
    session: SessionRecord
    remaining: timedelta = field(default_factory=timedelta)
    expires_at: datetime | None = None


class UserDirectory:
    """
    User directory coordinating user and session records.

    Responsibilities:
    - Sanitize profile/settings input before anything is persisted
    - Encrypt sensitive profile fields at rest, decrypt on the way out
    - Mint a session token on registration and track it server-side
    - Cascade session removal when a user is deleted
    """

    def __init__(
        self,
        store: KeyValueStore,
        crypto: CryptoProvider,
        token_service: SessionTokenService,
        encryption_service: FieldEncryptionService,
    ) -> None:
        self._store = store
        self._crypto = crypto
        self._tokens = token_service
        self._encryption = encryption_service

    # --- Persistence helpers ---

    async def _load_user(self, user_id: str) -> UserRecord:
        raw = await self._store.get(USERS, user_id)
        if raw is None:
            raise UserNotFound(user_id)
        return UserRecord.model_validate(raw)

    async def _save_user(self, user: UserRecord) -> None:
        await self._store.set(USERS, user.id, user.model_dump(mode="json"))

    async def _save_session(self, session: SessionRecord) -> None:
        await self._store.set(SESSIONS, session.token, session.model_dump(mode="json"))

    def _decrypted(self, user: UserRecord) -> UserRecord:
        return user.model_copy(update={"profile": self._encryption.decrypt_user_fields(user.profile)})

    # --- Operations ---

    async def register(
        self,
        profile: dict[str, Any],
        settings: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> RegistrationResult:
        """
        Register a new user and open their first session.

        Args:
            profile: Raw profile input (fullName, email, phone, linkedin)
            settings: Optional settings overriding the defaults
            context: Provenance of the registering request

        Returns:
            RegistrationResult with the new id, a session token and the
            sanitized plaintext profile

        Raises:
            ValidationFailure: If profile or settings input is invalid
        """
        context = context or RequestContext()

        profile_check = validate_user_profile(profile)
        if not profile_check.is_valid:
            raise ValidationFailure("Profile validation failed", errors=profile_check.errors)

        user_settings = default_user_settings()
        if settings:
            settings_check = validate_user_settings(settings)
            if not settings_check.is_valid:
                raise SettingsValidationFailure("Settings validation failed", errors=settings_check.errors)
            user_settings.update(settings_check.sanitized)

        user = UserRecord(
            id=self._crypto.secure_random_id(),
            profile=self._encryption.encrypt_user_fields(profile_check.sanitized),
            settings=user_settings,
            metadata=RegistrationMetadata(
                registration_ip=context.ip,
                user_agent=context.user_agent,
                registration_fingerprint=context.fingerprint,
            ),
        )
        await self._save_user(user)

        token = self._tokens.mint(user.id)
        await self._save_session(
            SessionRecord(user_id=user.id, token=token, fingerprint=context.fingerprint, ip=context.ip)
        )

        logger.info("user_registered", user_id=user.id, fingerprint=context.fingerprint)

        return RegistrationResult(
            user_id=user.id,
            session_token=token,
            profile=self._encryption.decrypt_user_fields(user.profile),
        )

    async def get_by_id(self, user_id: str) -> UserRecord:
        """
        Get a user with sensitive fields decrypted.

        Touches last_active; the stored copy stays encrypted.

        Raises:
            UserNotFound: If no user has this id
        """
        user = await self._load_user(user_id)
        user.touch()
        await self._save_user(user)
        return self._decrypted(user)

    async def update_profile(self, user_id: str, partial: dict[str, Any]) -> UserRecord:
        """
        Merge a partial profile into the stored one.

        Keys present in ``partial`` replace stored values; the rest are kept.
        Sensitive fields are encrypted before they are merged.
        """
        check = validate_user_profile(partial)
        if not check.is_valid:
            raise ValidationFailure("Profile validation failed", errors=check.errors)

        user = await self._load_user(user_id)
        user.profile = {
            **user.profile,
            **self._encryption.encrypt_user_fields(check.sanitized),
            "updatedAt": utcnow().isoformat(),
        }
        user.touch()
        await self._save_user(user)

        logger.info("user_profile_updated", user_id=user_id, fields=sorted(check.sanitized))
        return self._decrypted(user)

    async def update_settings(self, user_id: str, partial: dict[str, Any]) -> UserRecord:
        """Merge a partial settings mapping into the stored settings."""
        check = validate_user_settings(partial)
        if not check.is_valid:
            raise SettingsValidationFailure("Settings validation failed", errors=check.errors)

        user = await self._load_user(user_id)
        user.settings = {**user.settings, **check.sanitized, "updatedAt": utcnow().isoformat()}
        user.touch()
        await self._save_user(user)

        logger.info("user_settings_updated", user_id=user_id, fields=sorted(check.sanitized))
        return self._decrypted(user)

    async def validate_session(self, token: str, expected_user_id: str | None = None) -> SessionValidation:
        """
        Verify a session token and load its session and user.

        The token is checked first (format, signature, expiry, owner). A
        well-signed token whose session record was deleted is rejected.

        Raises:
            TokenError: On any token or session failure
        """
        verified = self._tokens.verify(token, expected_user_id)

        raw_session = await self._store.get(SESSIONS, token)
        if raw_session is None:
            raise SessionNotFound("Session record not found", details={"user_id": verified.user_id[:12]})
        session = SessionRecord.model_validate(raw_session)

        try:
            user = await self.get_by_id(verified.user_id)
        except UserNotFound as e:
            raise SessionNotFound("Session owner no longer exists") from e

        session.touch()
        await self._save_session(session)

        logger.debug("session_validated", user_id=verified.user_id[:12], remaining=str(verified.remaining))
        return SessionValidation(
            user=user,
            session=session,
            remaining=verified.remaining,
            expires_at=verified.expires_at,
        )

    async def delete_user(self, user_id: str) -> int:
        """
        Delete a user and every session that references them.

        Returns:
            Number of sessions removed

        Raises:
            UserNotFound: If no user has this id
        """
        if await self._store.get(USERS, user_id) is None:
            raise UserNotFound(user_id)

        removed = 0
        for token, raw in await self._store.items(SESSIONS):
            if raw.get("user_id") == user_id and await self._store.delete(SESSIONS, token):
                removed += 1

        await self._store.delete(USERS, user_id)

        logger.info("user_deleted", user_id=user_id, sessions_removed=removed)
        return removed

    async def add_resume(self, user_id: str, resume_ref: str) -> list[str]:
        """Append a resume reference to the user's list."""
        ref = sanitize_text_input(resume_ref, max_length=500)
        if not ref:
            raise ValidationFailure("Resume reference is empty", errors=["Resume reference is required"])

        user = await self._load_user(user_id)
        user.resumes.append(ref)
        user.touch()
        await self._save_user(user)

        logger.info("user_resume_added", user_id=user_id, resume_count=len(user.resumes))
        return list(user.resumes)

    async def get_stats(self) -> dict[str, Any]:
        """Get user and session counts."""
        now = utcnow()
        sessions = [SessionRecord.model_validate(raw) for _, raw in await self._store.items(SESSIONS)]
        users = [UserRecord.model_validate(raw) for _, raw in await self._store.items(USERS)]

        return {
            "total_users": len(users),
            "total_sessions": len(sessions),
            "active_sessions": sum(1 for s in sessions if now - s.last_used < ACTIVE_SESSION_WINDOW),
            "active_users": sum(1 for u in users if now - u.last_active < ACTIVE_USER_WINDOW),
            "timestamp": now.isoformat(),
        }
