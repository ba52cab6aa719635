"""FastAPI dependency injection for database sessions and repositories."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from teamgate_service.db.engine import get_session_factory
from teamgate_service.db.repositories.memberships import MembershipRepo
from teamgate_service.db.repositories.reviews import ReviewsRepo
from teamgate_service.db.repositories.teams import TeamsRepo
from teamgate_service.db.repositories.widgets import WidgetsRepo


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


def get_membership_repo(session: SessionDep) -> MembershipRepo:
    return MembershipRepo(session)


def get_teams_repo(session: SessionDep) -> TeamsRepo:
    return TeamsRepo(session)


def get_widgets_repo(session: SessionDep) -> WidgetsRepo:
    return WidgetsRepo(session)


def get_reviews_repo(session: SessionDep) -> ReviewsRepo:
    return ReviewsRepo(session)


MembershipRepoDep = Annotated[MembershipRepo, Depends(get_membership_repo)]
TeamsRepoDep = Annotated[TeamsRepo, Depends(get_teams_repo)]
WidgetsRepoDep = Annotated[WidgetsRepo, Depends(get_widgets_repo)]
ReviewsRepoDep = Annotated[ReviewsRepo, Depends(get_reviews_repo)]
