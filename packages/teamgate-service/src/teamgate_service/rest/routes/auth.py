"""Auth endpoints: token refresh for local tooling and /me."""

from __future__ import annotations

from uuid import UUID

import jwt
import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from teamgate_service.auth.deps import CurrentUserDep
from teamgate_service.auth.jwt import create_access_token, create_refresh_token, decode_token
from teamgate_service.db.deps import MembershipRepoDep, TeamsRepoDep
from teamgate_service.errors import AuthInvalid
from teamgate_service.rest.routes.teams import membership_to_schema
from teamgate_service.rest.schemas import MeResponse

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(request: RefreshRequest, teams: TeamsRepoDep) -> TokenResponse:
    """Exchange a refresh token for a new access token."""
    try:
        payload = decode_token(request.refresh_token)
    except jwt.PyJWTError as exc:
        raise AuthInvalid("Invalid or expired refresh token") from exc

    if payload.get("type") != "refresh":
        raise AuthInvalid("Not a refresh token")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError, TypeError) as exc:
        raise AuthInvalid("Malformed token payload") from exc

    user = await teams.get_user(user_id)
    if user is None:
        raise AuthInvalid("User not found")

    log.info("token_refreshed", user_id=str(user.id))
    return TokenResponse(
        access_token=create_access_token(user.id, user.email, role_hint=user.role),
        refresh_token=create_refresh_token(user.id),
    )


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: CurrentUserDep, memberships: MembershipRepoDep, teams: TeamsRepoDep
) -> MeResponse:
    await teams.ensure_profile(current_user)
    rows = await memberships.list_for_user(current_user.id)
    return MeResponse(
        user_id=str(current_user.id),
        email=current_user.email,
        role_hint=current_user.role_hint,
        teams=[membership_to_schema(member, team) for member, team in rows],
    )
