"""Authorization policy on top of team membership.

``PermissionGate`` says which operations need admin, plain membership, or
self-action. The ``require*`` factories return FastAPI dependencies that run
the membership check exactly once and hand the route a ``TeamContext``::

    @router.get("/teams/{team_id}/dashboard-widgets")
    async def list_widgets(repo: WidgetsRepoDep, ctx: TeamContext = require(Operation.READ)):
        return await repo.list_active(ctx.team_id)

The team id is read from the ``team_id`` path parameter, falling back to the
``team_id`` query parameter.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from uuid import UUID

import structlog
from fastapi import Depends, Request

from teamgate_service.auth.access import TeamAccessValidator
from teamgate_service.auth.deps import CurrentUserDep
from teamgate_service.auth.models import TeamContext, TeamRole
from teamgate_service.db.deps import MembershipRepoDep
from teamgate_service.errors import PermissionDenied
from teamgate_service.validation import parse_uuid

log = structlog.get_logger(__name__)


class Operation(str, Enum):
    READ = "resource.read"
    CREATE = "resource.create"
    CREATE_STRUCTURAL = "resource.create_structural"
    UPDATE = "resource.update"
    UPDATE_STRUCTURAL = "resource.update_structural"
    DELETE = "resource.delete"
    ADD_MEMBER = "team.members.add"
    REMOVE_MEMBER = "team.members.remove"


class Requirement(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    ADMIN_OR_SELF = "admin_or_self"


POLICY: dict[Operation, Requirement] = {
    Operation.READ: Requirement.MEMBER,
    Operation.CREATE: Requirement.MEMBER,
    Operation.CREATE_STRUCTURAL: Requirement.ADMIN,
    Operation.UPDATE: Requirement.MEMBER,
    Operation.UPDATE_STRUCTURAL: Requirement.ADMIN,
    Operation.DELETE: Requirement.ADMIN,
    Operation.ADD_MEMBER: Requirement.ADMIN,
    Operation.REMOVE_MEMBER: Requirement.ADMIN_OR_SELF,
}

# Fields whose change is a structural (admin-only) update.
STRUCTURAL_FIELDS = frozenset({"widget_type", "title", "position", "is_active"})


class PermissionGate:
    def __init__(self, policy: dict[Operation, Requirement] | None = None) -> None:
        self._policy = policy or POLICY

    def allows(self, operation: Operation, role: TeamRole, *, is_self: bool = False) -> bool:
        requirement = self._policy[operation]
        if requirement == Requirement.MEMBER:
            return True
        if requirement == Requirement.ADMIN_OR_SELF and is_self:
            return True
        return role == TeamRole.ADMIN

    def check(self, operation: Operation, role: TeamRole, *, is_self: bool = False) -> None:
        """Raise ``PermissionDenied`` naming the missing capability."""
        if not self.allows(operation, role, is_self=is_self):
            log.info(
                "permission_denied",
                operation=operation.value,
                role=role.value,
                is_self=is_self,
            )
            raise PermissionDenied(
                f"Team admin role required for {operation.value}",
                required_permission=operation.value,
            )

    @staticmethod
    def update_operation(changed_fields: Iterable[str]) -> Operation:
        """Classify an update by the fields it touches."""
        if STRUCTURAL_FIELDS.intersection(changed_fields):
            return Operation.UPDATE_STRUCTURAL
        return Operation.UPDATE


gate = PermissionGate()


def _team_id_from(request: Request) -> UUID:
    raw = request.path_params.get("team_id") or request.query_params.get("team_id")
    return parse_uuid(raw, "team_id")


async def team_context(
    request: Request,
    user: CurrentUserDep,
    memberships: MembershipRepoDep,
) -> TeamContext:
    """Authenticate, parse ``team_id`` and validate membership (no role check)."""
    team_id = _team_id_from(request)
    role = await TeamAccessValidator(memberships).validate_membership(user, team_id)
    return TeamContext(user=user, team_id=team_id, role=role)


def require(operation: Operation):
    """Dependency: membership plus whatever ``operation`` demands of the role."""

    async def _check(ctx: TeamContext = Depends(team_context)) -> TeamContext:
        gate.check(operation, ctx.role)
        return ctx

    return Depends(_check)


def require_member():
    return Depends(team_context)


def require_admin():
    """Dependency: admin membership, denied with TEAM_ADMIN_REQUIRED."""

    async def _check(
        request: Request,
        user: CurrentUserDep,
        memberships: MembershipRepoDep,
    ) -> TeamContext:
        team_id = _team_id_from(request)
        role = await TeamAccessValidator(memberships).validate_admin(user, team_id)
        return TeamContext(user=user, team_id=team_id, role=role)

    return Depends(_check)
