"""
HireAssist Backend - Session Token Service.

Mints and verifies the session tokens handed to the browser extension.

Wire format::

    <base64(json payload)>.<base64url(hmac-sha256(json payload))>

The payload carries the user id, issue and expiry times (epoch milliseconds)
and a random nonce. Tokens are not stored as mutable objects: validity is
recomputed from the token's own content on every call. There is no revocation
list; server-side session records are the only revocation mechanism.
"""
from __future__ import annotations

import base64
import binascii
import json
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import InvalidSignature, MalformedToken, TokenExpired, UserMismatch
from .crypto import CryptoProvider

logger = structlog.get_logger(__name__)

SESSION_TOKEN_LIFETIME = timedelta(hours=24)
TOKEN_SEPARATOR = "."
NONCE_BYTES = 16


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class TokenPayload(BaseModel):
    """Decoded session token payload."""

    user_id: str = Field(..., alias="userId", min_length=1)
    issued: int = Field(..., description="Issue time, epoch milliseconds")
    expires: int = Field(..., description="Expiry time, epoch milliseconds")
    nonce: str = Field(..., alias="random")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def serialize(self) -> str:
        return json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))


@dataclass(frozen=True)
class VerifiedToken:
    """Result of a successful verification."""
    payload: TokenPayload
    remaining: timedelta

    @property
    def user_id(self) -> str:
        return self.payload.user_id

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.payload.expires / 1000, tz=timezone.utc)


class SessionTokenService:
    """
    Session token service.

    Features:
    - HMAC-SHA256 signatures with the server secret
    - Fixed 24 hour lifetime
    - Random nonce so two tokens minted in the same millisecond differ
    - Constant-time signature comparison
    """

    def __init__(self, crypto: CryptoProvider, clock: Callable[[], int] | None = None) -> None:
        """
        Initialize token service.

        Args:
            crypto: Crypto primitives provider holding the server secret
            clock: Millisecond clock, injectable for tests
        """
        self.crypto = crypto
        self._clock = clock or _now_ms
        self.lifetime_ms = int(SESSION_TOKEN_LIFETIME.total_seconds() * 1000)

    def mint(self, user_id: str) -> str:
        """
        Mint a session token for ``user_id``.

        Returns:
            Token string in the wire format described above
        """
        issued = self._clock()
        payload = TokenPayload(
            user_id=user_id,
            issued=issued,
            expires=issued + self.lifetime_ms,
            nonce=self.crypto.secure_random_hex(NONCE_BYTES),
        )
        serialized = payload.serialize().encode("utf-8")
        signature = self.crypto.hmac_sign(serialized)
        token = f"{base64.b64encode(serialized).decode('ascii')}{TOKEN_SEPARATOR}{signature}"

        logger.debug("session_token_minted", user_id_prefix=user_id[:20], expires=payload.expires)
        return token

    def verify(self, token: str, expected_user_id: str | None = None) -> VerifiedToken:
        """
        Verify a session token.

        Args:
            token: Token string
            expected_user_id: When given, the token must belong to this user

        Returns:
            VerifiedToken with the decoded payload and remaining validity

        Raises:
            MalformedToken: Wrong structure or undecodable payload
            InvalidSignature: Signature does not match the payload
            TokenExpired: Expiry time has passed
            UserMismatch: Token belongs to a different user
        """
        if not isinstance(token, str) or token.count(TOKEN_SEPARATOR) != 1:
            raise MalformedToken("Token is not of the form <payload>.<signature>")

        payload_part, signature_part = token.split(TOKEN_SEPARATOR)
        if not payload_part or not signature_part:
            raise MalformedToken("Token has an empty segment")

        try:
            raw_payload = base64.b64decode(payload_part, validate=True)
            payload = TokenPayload.model_validate(json.loads(raw_payload))
        except (binascii.Error, ValueError, ValidationError) as e:
            raise MalformedToken(f"Token payload could not be decoded: {type(e).__name__}") from e

        expected_signature = self.crypto.hmac_sign(raw_payload)
        if not self.crypto.signatures_match(expected_signature, signature_part):
            logger.warning("session_token_bad_signature", user_id_prefix=payload.user_id[:20])
            raise InvalidSignature("Token signature does not match payload")

        now = self._clock()
        if now > payload.expires:
            logger.info("session_token_expired", user_id_prefix=payload.user_id[:20], expires=payload.expires)
            raise TokenExpired("Token has expired")

        if expected_user_id is not None and payload.user_id != expected_user_id:
            logger.warning(
                "session_token_user_mismatch",
                token_user=payload.user_id[:20],
                expected_user=expected_user_id[:20],
            )
            raise UserMismatch("Token belongs to a different user")

        return VerifiedToken(payload=payload, remaining=timedelta(milliseconds=payload.expires - now))


def create_token_service(crypto: CryptoProvider) -> SessionTokenService:
    """Factory function to create the session token service."""
    return SessionTokenService(crypto)
