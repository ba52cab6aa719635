"""Team membership endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from teamgate_service.auth.models import TeamContext, TeamRole
from teamgate_service.auth.policies import Operation, gate, require_admin, require_member
from teamgate_service.db.deps import MembershipRepoDep, TeamsRepoDep
from teamgate_service.errors import ResourceNotFound
from teamgate_service.rest.schemas import (
    AddMemberRequest,
    MemberListResponse,
    MemberSchema,
    MembershipResponse,
)
from teamgate_service.validation import parse_uuid

router = APIRouter()


@router.get("/teams/{team_id}/members", response_model=MemberListResponse)
async def list_members(
    memberships: MembershipRepoDep,
    ctx: TeamContext = require_member(),
) -> MemberListResponse:
    rows = await memberships.list_members(ctx.team_id)
    members = [
        MemberSchema(
            user_id=str(user.id),
            email=user.email,
            name=user.name,
            role=TeamRole(member.role),
            joined_at=member.joined_at,
        )
        for member, user in rows
    ]
    return MemberListResponse(team_id=str(ctx.team_id), members=members, total=len(members))


@router.post("/teams/{team_id}/members", response_model=MembershipResponse, status_code=201)
async def add_member(
    request: AddMemberRequest,
    memberships: MembershipRepoDep,
    teams: TeamsRepoDep,
    ctx: TeamContext = require_admin(),
) -> MembershipResponse:
    user_id = parse_uuid(request.user_id, "user_id")
    if await teams.get_user(user_id) is None:
        raise ResourceNotFound("User", str(user_id))

    member = await memberships.add_membership(ctx.user.id, user_id, ctx.team_id, request.role)
    return MembershipResponse(
        team_id=str(ctx.team_id),
        user_id=str(user_id),
        role=TeamRole(member.role),
        joined_at=member.joined_at,
    )


@router.delete("/teams/{team_id}/members")
async def remove_member(
    memberships: MembershipRepoDep,
    user_id: str | None = Query(default=None),
    ctx: TeamContext = require_member(),
) -> dict[str, str]:
    """Admins may remove anyone; members may only remove themselves."""
    target_id = parse_uuid(user_id, "user_id")
    gate.check(Operation.REMOVE_MEMBER, ctx.role, is_self=target_id == ctx.user.id)
    await memberships.remove_membership(ctx.user.id, target_id, ctx.team_id)
    return {"status": "removed", "team_id": str(ctx.team_id), "user_id": str(target_id)}
