"""Team endpoints: the caller's memberships and team creation."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from teamgate_service.auth.deps import CurrentUserDep
from teamgate_service.auth.models import TeamRole
from teamgate_service.db.deps import MembershipRepoDep, TeamsRepoDep
from teamgate_service.rest.schemas import CreateTeamRequest, TeamListResponse, TeamSchema

log = structlog.get_logger(__name__)

router = APIRouter()


def membership_to_schema(member, team) -> TeamSchema:
    """Join a TeamMemberModel with its TeamModel into the REST TeamSchema."""
    return TeamSchema(
        id=str(team.id),
        name=team.name,
        description=team.description,
        created_at=team.created_at,
        user_role=TeamRole(member.role),
        joined_at=member.joined_at,
    )


@router.get("/teams", response_model=TeamListResponse)
async def list_teams(
    current_user: CurrentUserDep,
    memberships: MembershipRepoDep,
    teams_repo: TeamsRepoDep,
) -> TeamListResponse:
    """The caller's memberships. Signing in and listing teams provisions the profile."""
    await teams_repo.ensure_profile(current_user)
    rows = await memberships.list_for_user(current_user.id)
    teams = [membership_to_schema(member, team) for member, team in rows]
    return TeamListResponse(teams=teams, total_teams=len(teams))


@router.post("/teams", response_model=TeamSchema, status_code=201)
async def create_team(
    request: CreateTeamRequest,
    current_user: CurrentUserDep,
    teams: TeamsRepoDep,
) -> TeamSchema:
    await teams.ensure_profile(current_user)
    team = await teams.create_team(request.name, request.description, current_user.id)
    log.info("team_created", team_id=str(team.id), creator_id=str(current_user.id))
    return TeamSchema(
        id=str(team.id),
        name=team.name,
        description=team.description,
        created_at=team.created_at,
        user_role=TeamRole.ADMIN,
        joined_at=team.created_at,
    )
