"""
HireAssist Backend - REST API Endpoints.

User registration, profile management, session validation and account
deletion for the browser extension. The extension holds the session token
returned at registration and sends it back with every mutating request.

Architecture Layer: Presentation
Principles: Clean API Design, Dependency Injection, DTOs
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field
import structlog

from .domain.entities import UserRecord
from .domain.service import UserDirectory
from .domain.validation import validate_user_profile, validate_user_settings
from .domain.value_objects import RequestContext
from .exceptions import BadRequest, SettingsValidationFailure, TokenError, ValidationFailure
from .infrastructure.crypto import CryptoProvider

logger = structlog.get_logger(__name__)
router = APIRouter()


# --- Request/Response Models ---


class RegisterRequest(BaseModel):
    """User registration request."""
    profile: dict[str, Any] | None = Field(default=None, description="Profile fields")
    settings: dict[str, Any] | None = Field(default=None, description="Settings overriding defaults")


class UpdateProfileRequest(BaseModel):
    """Profile and/or settings update, authorized by a session token."""
    profile: dict[str, Any] | None = Field(default=None)
    settings: dict[str, Any] | None = Field(default=None)
    session_token: str | None = Field(default=None, alias="sessionToken")

    model_config = ConfigDict(populate_by_name=True)


class DeleteUserRequest(BaseModel):
    """Account deletion request."""
    session_token: str | None = Field(default=None, alias="sessionToken")
    confirm_deletion: bool = Field(default=False, alias="confirmDeletion")

    model_config = ConfigDict(populate_by_name=True)


class AddResumeRequest(BaseModel):
    """Append a resume reference to the user's list."""
    resume_ref: str = Field(..., alias="resumeRef", min_length=1, max_length=500)
    session_token: str | None = Field(default=None, alias="sessionToken")

    model_config = ConfigDict(populate_by_name=True)


# --- Dependencies ---


def get_user_directory(request: Request) -> UserDirectory:
    """Get user directory from app state."""
    state = request.app.state.service
    if not state.user_directory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="User directory not available",
        )
    return state.user_directory


def get_request_context(request: Request) -> RequestContext:
    """Provenance of the current request, used to tag registrations and sessions."""
    user_agent = request.headers.get("user-agent")
    ip = request.client.host if request.client else None
    return RequestContext(
        ip=ip or "unknown",
        user_agent=user_agent or "unknown",
        fingerprint=CryptoProvider.request_fingerprint(
            user_agent=user_agent,
            ip=ip,
            accept_language=request.headers.get("accept-language"),
        ),
    )


# --- Helper Functions ---


def _clean_user_id(user_id: str) -> str:
    cleaned = user_id.strip()
    if not cleaned:
        raise BadRequest("Valid user ID is required", code="INVALID_USER_ID")
    return cleaned


def _require_token(session_token: str | None) -> str:
    if not session_token:
        raise BadRequest(
            "Session token is required",
            code="MISSING_SESSION_TOKEN",
            http_status=status.HTTP_401_UNAUTHORIZED,
        )
    return session_token


def user_to_response(user: UserRecord) -> dict[str, Any]:
    """Profile view returned to the extension."""
    return {
        "profile": user.profile,
        "settings": user.settings,
        "resumes": list(user.resumes),
        "lastUpdated": user.last_active.isoformat(),
    }


# --- User Endpoints ---


@router.post("/register", status_code=status.HTTP_201_CREATED, tags=["Users"])
async def register(
    request_data: RegisterRequest,
    directory: UserDirectory = Depends(get_user_directory),
    context: RequestContext = Depends(get_request_context),
) -> dict[str, Any]:
    """
    Register a new user.

    Returns the new user id together with the first session token. Sensitive
    profile fields are stored encrypted; the response carries them in plain
    text for the extension's local copy.
    """
    if request_data.profile is None:
        raise BadRequest("Profile data is required", code="MISSING_PROFILE")

    result = await directory.register(request_data.profile, request_data.settings, context)

    logger.info(
        "user_registration_completed",
        user_id=result.user_id,
        ip=context.ip,
        has_settings=request_data.settings is not None,
    )

    return {
        "success": True,
        "message": "User registered successfully",
        "data": {
            "userId": result.user_id,
            "sessionToken": result.session_token,
            "profile": result.profile,
            "expiresIn": int(result.expires_in.total_seconds() * 1000),
        },
    }


@router.get("/profile/{user_id}", tags=["Users"])
async def get_profile(
    user_id: str,
    directory: UserDirectory = Depends(get_user_directory),
) -> dict[str, Any]:
    """Get a user's decrypted profile and settings."""
    user = await directory.get_by_id(_clean_user_id(user_id))
    return {"success": True, "data": user_to_response(user)}


@router.put("/profile/{user_id}", tags=["Users"])
async def update_profile(
    user_id: str,
    request_data: UpdateProfileRequest,
    directory: UserDirectory = Depends(get_user_directory),
) -> dict[str, Any]:
    """
    Update profile and/or settings.

    Both parts are validated before either is applied, so a bad settings
    payload never leaves a half-applied profile change behind.
    """
    user_id = _clean_user_id(user_id)
    await directory.validate_session(_require_token(request_data.session_token), user_id)

    if request_data.profile:
        check = validate_user_profile(request_data.profile)
        if not check.is_valid:
            raise ValidationFailure("Profile validation failed", errors=check.errors)
    if request_data.settings:
        check = validate_user_settings(request_data.settings)
        if not check.is_valid:
            raise SettingsValidationFailure("Settings validation failed", errors=check.errors)
    if not request_data.profile and not request_data.settings:
        raise BadRequest("No valid update data provided", code="NO_UPDATE_DATA")

    user: UserRecord | None = None
    if request_data.profile:
        user = await directory.update_profile(user_id, request_data.profile)
    if request_data.settings:
        user = await directory.update_settings(user_id, request_data.settings)

    logger.info(
        "user_update_completed",
        user_id=user_id,
        updated=[part for part in ("profile", "settings") if getattr(request_data, part)],
    )

    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": user_to_response(user),
    }


@router.post("/resumes/{user_id}", status_code=status.HTTP_201_CREATED, tags=["Users"])
async def add_resume(
    user_id: str,
    request_data: AddResumeRequest,
    directory: UserDirectory = Depends(get_user_directory),
) -> dict[str, Any]:
    """Append a resume reference."""
    user_id = _clean_user_id(user_id)
    await directory.validate_session(_require_token(request_data.session_token), user_id)
    resumes = await directory.add_resume(user_id, request_data.resume_ref)
    return {"success": True, "data": {"resumes": resumes}}


@router.delete("/{user_id}", tags=["Users"])
async def delete_user(
    user_id: str,
    request_data: DeleteUserRequest,
    directory: UserDirectory = Depends(get_user_directory),
) -> dict[str, Any]:
    """Delete a user account and all of its sessions."""
    user_id = _clean_user_id(user_id)
    token = _require_token(request_data.session_token)
    if not request_data.confirm_deletion:
        raise BadRequest("Deletion confirmation is required", code="MISSING_CONFIRMATION")

    await directory.validate_session(token, user_id)
    sessions_removed = await directory.delete_user(user_id)

    logger.info("user_deletion_completed", user_id=user_id, sessions_removed=sessions_removed)
    return {"success": True, "message": "User account deleted successfully"}


@router.get("/validate/{user_id}", tags=["Sessions"])
async def validate_session(
    user_id: str,
    session_token: str | None = Query(default=None, alias="sessionToken"),
    directory: UserDirectory = Depends(get_user_directory),
) -> dict[str, Any]:
    """
    Report whether a session token is valid for a user.

    Always answers 200 once both parameters are present; an invalid token
    yields ``valid: false`` without saying why.
    """
    if not user_id.strip() or not session_token:
        raise BadRequest("User ID and session token are required", code="MISSING_PARAMETERS")

    try:
        result = await directory.validate_session(session_token, user_id.strip())
    except TokenError as e:
        logger.info("session_validation_rejected", reason=e.reason)
        return {"success": True, "data": {"valid": False, "expiresAt": None}}

    return {
        "success": True,
        "data": {"valid": True, "expiresAt": result.expires_at.isoformat()},
    }
