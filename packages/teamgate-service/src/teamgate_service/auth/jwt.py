"""Bearer token verification against the identity provider's signing secret.

The identity provider issues HS256 JWTs: ``sub`` is the user id, ``email`` the
address and ``user_metadata.role`` an advisory account type. Minting helpers
exist for tests and local tooling only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from teamgate_service.settings import settings

DEFAULT_ROLE_HINT = "employee"


class TokenInvalid(Exception):
    """Token is malformed, expired, or carries a bad signature."""


@dataclass
class VerifiedPrincipal:
    id: UUID
    email: str
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def role_hint(self) -> str:
        metadata = self.claims.get("user_metadata") or {}
        role = metadata.get("role") if isinstance(metadata, dict) else None
        return role or DEFAULT_ROLE_HINT


def _now_utc() -> datetime:
    return datetime.now(UTC)


def create_access_token(
    user_id: UUID,
    email: str,
    role_hint: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token shaped like the identity provider's."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = _now_utc()
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + expires_delta,
        "type": "access",
        "user_metadata": {"role": role_hint} if role_hint else {},
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_refresh_token(user_id: UUID, expires_delta: timedelta | None = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(days=settings.refresh_token_expire_days)
    now = _now_utc()
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + expires_delta,
        "type": "refresh",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token. Raises jwt.PyJWTError on failure."""
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )


def verify_token(token: str) -> VerifiedPrincipal:
    """Verify an access token and return the principal it names."""
    try:
        payload = decode_token(token)
    except jwt.PyJWTError as exc:
        raise TokenInvalid(str(exc)) from exc

    if payload.get("type", "access") != "access":
        raise TokenInvalid("Not an access token")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError, TypeError) as exc:
        raise TokenInvalid("Malformed token payload") from exc

    return VerifiedPrincipal(id=user_id, email=payload.get("email") or "", claims=payload)
