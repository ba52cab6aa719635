"""Membership store: the (user, team) -> role relation.

The two mutation procedures run as one transaction each: they lock the team
row, re-check the acting user's authority and only then write. This closes
the window between a route's authorization check and the write when another
admin changes roles concurrently.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from teamgate_service.auth.models import TeamRole
from teamgate_service.db.models import TeamMemberModel, TeamModel, UserModel
from teamgate_service.errors import (
    AccessDenied,
    PermissionDenied,
    ResourceConflict,
    ResourceNotFound,
)

log = structlog.get_logger(__name__)


class MembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_membership(self, user_id: UUID, team_id: UUID) -> TeamMemberModel | None:
        result = await self._session.execute(
            select(TeamMemberModel).where(
                TeamMemberModel.user_id == user_id,
                TeamMemberModel.team_id == team_id,
            )
        )
        return result.scalars().first()

    async def list_for_user(self, user_id: UUID) -> list[tuple[TeamMemberModel, TeamModel]]:
        """All of a user's memberships joined with their teams, oldest first."""
        result = await self._session.execute(
            select(TeamMemberModel, TeamModel)
            .join(TeamModel, TeamModel.id == TeamMemberModel.team_id)
            .where(TeamMemberModel.user_id == user_id)
            .order_by(TeamMemberModel.joined_at.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def list_members(self, team_id: UUID) -> list[tuple[TeamMemberModel, UserModel]]:
        result = await self._session.execute(
            select(TeamMemberModel, UserModel)
            .join(UserModel, UserModel.id == TeamMemberModel.user_id)
            .where(TeamMemberModel.team_id == team_id)
            .order_by(TeamMemberModel.joined_at.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def count_members(self, team_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(TeamMemberModel).where(
                TeamMemberModel.team_id == team_id
            )
        )
        return result.scalar_one()

    # ------------------------------------------------------------------
    # Atomic procedures
    # ------------------------------------------------------------------

    async def add_membership(
        self, actor_id: UUID, user_id: UUID, team_id: UUID, role: TeamRole
    ) -> TeamMemberModel:
        """Insert or update the (user, team) membership. Re-running is harmless."""
        async with self._atomic():
            await self._lock_team(team_id)
            if await self._role_of(actor_id, team_id) != TeamRole.ADMIN:
                raise AccessDenied.admin_required()
            if (
                role != TeamRole.ADMIN
                and await self._role_of(user_id, team_id) == TeamRole.ADMIN
                and await self._admin_count(team_id) <= 1
            ):
                raise ResourceConflict("Cannot demote the last admin of a team")

            stmt = (
                pg_insert(TeamMemberModel)
                .values(user_id=user_id, team_id=team_id, role=role.value)
                .on_conflict_do_update(
                    constraint="team_members_user_team_key",
                    set_={"role": role.value},
                )
                .returning(TeamMemberModel)
            )
            result = await self._session.execute(stmt)
            member = result.scalars().one()

        log.info(
            "membership_added",
            team_id=str(team_id),
            user_id=str(user_id),
            role=role.value,
            actor_id=str(actor_id),
        )
        return member

    async def remove_membership(self, actor_id: UUID, user_id: UUID, team_id: UUID) -> None:
        """Delete the (user, team) membership.

        Admins may remove anyone; members may remove only themselves. The last
        admin of a team cannot be removed.
        """
        async with self._atomic():
            await self._lock_team(team_id)
            actor_role = await self._role_of(actor_id, team_id)
            if actor_role is None:
                raise AccessDenied()
            if actor_id != user_id and actor_role != TeamRole.ADMIN:
                raise PermissionDenied(
                    "Only team admins can remove other members",
                    required_permission="team.members.remove",
                )

            target_role = await self._role_of(user_id, team_id)
            if target_role is None:
                raise ResourceNotFound("Membership", str(user_id))
            if target_role == TeamRole.ADMIN and await self._admin_count(team_id) <= 1:
                raise ResourceConflict("Cannot remove the last admin from a team")

            await self._session.execute(
                delete(TeamMemberModel).where(
                    TeamMemberModel.user_id == user_id,
                    TeamMemberModel.team_id == team_id,
                )
            )

        log.info(
            "membership_removed",
            team_id=str(team_id),
            user_id=str(user_id),
            actor_id=str(actor_id),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _atomic(self) -> AsyncIterator[None]:
        try:
            yield
        except BaseException:
            await self._session.rollback()
            raise
        await self._session.commit()

    async def _lock_team(self, team_id: UUID) -> None:
        result = await self._session.execute(
            select(TeamModel.id).where(TeamModel.id == team_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            # Same answer as "not a member" so team existence is not revealed.
            raise AccessDenied()

    async def _role_of(self, user_id: UUID, team_id: UUID) -> TeamRole | None:
        result = await self._session.execute(
            select(TeamMemberModel.role).where(
                TeamMemberModel.user_id == user_id,
                TeamMemberModel.team_id == team_id,
            )
        )
        role = result.scalar_one_or_none()
        return TeamRole(role) if role else None

    async def _admin_count(self, team_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(TeamMemberModel).where(
                TeamMemberModel.team_id == team_id,
                TeamMemberModel.role == TeamRole.ADMIN.value,
            )
        )
        return result.scalar_one()
