"""Repository for teams and the user profiles that join them."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from teamgate_service.auth.models import AuthenticatedUser, TeamRole
from teamgate_service.db.models import TeamMemberModel, TeamModel, UserModel


class TeamsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_team(
        self, name: str, description: str | None, creator_id: UUID
    ) -> TeamModel:
        """Create a team with the creator as its first admin, in one transaction."""
        team = TeamModel(name=name, description=description)
        self._session.add(team)
        try:
            await self._session.flush()
            self._session.add(
                TeamMemberModel(user_id=creator_id, team_id=team.id, role=TeamRole.ADMIN.value)
            )
            await self._session.commit()
        except BaseException:
            await self._session.rollback()
            raise
        await self._session.refresh(team)
        return team

    async def get_user(self, user_id: UUID) -> UserModel | None:
        return await self._session.get(UserModel, user_id)

    async def ensure_profile(self, user: AuthenticatedUser) -> None:
        """Mirror the identity provider's principal into ``users`` if missing."""
        stmt = (
            pg_insert(UserModel)
            .values(
                id=user.id,
                email=user.email,
                name=user.email.split("@")[0] or user.email,
                role=user.role_hint,
            )
            .on_conflict_do_nothing(index_elements=[UserModel.id])
        )
        await self._session.execute(stmt)
        await self._session.commit()
