"""Request authentication: bearer credential -> ``AuthenticatedUser``."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, Request

from teamgate_service.auth.jwt import TokenInvalid, verify_token
from teamgate_service.auth.models import AuthenticatedUser
from teamgate_service.errors import AuthInvalid, AuthRequired

log = structlog.get_logger(__name__)

PRINCIPAL_STATE_KEY = "principal"


def extract_bearer(request: Request) -> str:
    """Return the bearer credential, or raise if absent or malformed."""
    header = request.headers.get("Authorization", "").strip()
    if not header:
        raise AuthRequired()

    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthInvalid("Authorization header must use the Bearer scheme")
    return token


def principal_from_token(token: str) -> AuthenticatedUser:
    """Verify ``token`` and build the principal from its claims.

    The role hint comes from profile metadata only; team roles are never read
    here.
    """
    try:
        verified = verify_token(token)
    except TokenInvalid as exc:
        log.info("token_rejected", error=str(exc))
        raise AuthInvalid() from exc

    return AuthenticatedUser(id=verified.id, email=verified.email, role_hint=verified.role_hint)


async def get_current_user(request: Request) -> AuthenticatedUser:
    """Resolve the current authenticated user.

    Uses the principal pre-populated by ``AuthenticationMiddleware`` when
    present, otherwise verifies the credential directly. Both paths require
    the bearer header and return the same shape.
    """
    token = extract_bearer(request)

    principal = getattr(request.state, PRINCIPAL_STATE_KEY, None)
    if isinstance(principal, AuthenticatedUser):
        return principal

    return principal_from_token(token)


CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]
