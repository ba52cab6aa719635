"""Team access validation: does the principal hold a membership for the team?

The validator proves only that the caller may act on ``team_id``. Every query
issued afterwards must itself be constrained by that same ``team_id``.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError

from teamgate_service.auth.models import AuthenticatedUser, TeamRole
from teamgate_service.db.repositories.memberships import MembershipRepo
from teamgate_service.errors import AccessDenied

log = structlog.get_logger(__name__)


class TeamAccessValidator:
    def __init__(self, memberships: MembershipRepo) -> None:
        self._memberships = memberships

    async def validate_membership(self, user: AuthenticatedUser, team_id: UUID) -> TeamRole:
        """Return the caller's role in ``team_id`` or raise ``AccessDenied``.

        A missing team, a missing membership and a failed lookup are
        indistinguishable to the caller.
        """
        try:
            member = await self._memberships.get_membership(user.id, team_id)
        except SQLAlchemyError as exc:
            log.error(
                "membership_lookup_failed",
                user_id=str(user.id),
                team_id=str(team_id),
                error=str(exc),
            )
            raise AccessDenied() from exc

        if member is None:
            log.info(
                "membership_denied",
                reason="not_member",
                user_id=str(user.id),
                team_id=str(team_id),
            )
            raise AccessDenied()

        return TeamRole(member.role)

    async def validate_admin(self, user: AuthenticatedUser, team_id: UUID) -> TeamRole:
        role = await self.validate_membership(user, team_id)
        if role != TeamRole.ADMIN:
            log.info(
                "membership_denied",
                reason="not_admin",
                user_id=str(user.id),
                team_id=str(team_id),
                role=role.value,
            )
            raise AccessDenied.admin_required()
        return role
