"""Service test fixtures with in-memory fake repos (no database needed).

The app under test is the real one from ``create_app``: authentication
middleware, error handlers and policy dependencies all run. Only the
repositories are swapped for in-memory fakes.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from teamgate_service.auth.jwt import create_access_token
from teamgate_service.auth.models import TeamRole
from teamgate_service.db.deps import (
    get_membership_repo,
    get_reviews_repo,
    get_teams_repo,
    get_widgets_repo,
)
from teamgate_service.errors import (
    AccessDenied,
    PermissionDenied,
    ResourceConflict,
    ResourceNotFound,
)
from teamgate_service.rest.app import create_app

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


class FakeStore:
    """Shared in-memory tables backing every fake repository."""

    def __init__(self):
        self.users: dict[uuid.UUID, Any] = {}
        self.teams: dict[uuid.UUID, Any] = {}
        self.members: dict[tuple[uuid.UUID, uuid.UUID], Any] = {}
        self.widgets: dict[uuid.UUID, Any] = {}
        self.reviews: list[Any] = []
        self.points: dict[tuple[uuid.UUID, uuid.UUID], int] = {}
        self._tick = 0

    def _next_time(self) -> datetime:
        self._tick += 1
        return _EPOCH + timedelta(seconds=self._tick)

    def add_user(self, email: str, role: str = "employee"):
        user = MagicMock()
        user.id = uuid.uuid4()
        user.email = email
        user.name = email.split("@")[0]
        user.role = role
        user.created_at = self._next_time()
        self.users[user.id] = user
        return user

    def add_team(self, name: str, description: str | None = None):
        team = MagicMock()
        team.id = uuid.uuid4()
        team.name = name
        team.description = description
        team.created_at = self._next_time()
        self.teams[team.id] = team
        return team

    def add_member(self, user_id, team_id, role: TeamRole | str = TeamRole.MEMBER):
        member = MagicMock()
        member.id = uuid.uuid4()
        member.user_id = user_id
        member.team_id = team_id
        member.role = TeamRole(role).value
        member.joined_at = self._next_time()
        self.members[(user_id, team_id)] = member
        return member

    def add_widget(self, team_id, title: str, widget_type: str = "kpi", position: int = 0,
                   is_active: bool = True, data: dict | None = None):
        widget = MagicMock()
        widget.id = uuid.uuid4()
        widget.team_id = team_id
        widget.widget_type = widget_type
        widget.title = title
        widget.data = data or {}
        widget.position = position
        widget.is_active = is_active
        widget.created_at = self._next_time()
        widget.last_updated = widget.created_at
        self.widgets[widget.id] = widget
        return widget


class FakeMembershipRepo:
    """In-memory membership store mirroring the locked-transaction checks."""

    def __init__(self, store: FakeStore):
        self._store = store
        self.fail_with: Exception | None = None

    async def get_membership(self, user_id, team_id):
        if self.fail_with is not None:
            raise self.fail_with
        return self._store.members.get((user_id, team_id))

    async def list_for_user(self, user_id):
        rows = [
            (m, self._store.teams[m.team_id])
            for (uid, _), m in self._store.members.items()
            if uid == user_id
        ]
        return sorted(rows, key=lambda row: row[0].joined_at)

    async def list_members(self, team_id):
        rows = [
            (m, self._store.users[uid])
            for (uid, tid), m in self._store.members.items()
            if tid == team_id
        ]
        return sorted(rows, key=lambda row: row[0].joined_at)

    async def count_members(self, team_id):
        return sum(1 for (_, tid) in self._store.members if tid == team_id)

    def _role_of(self, user_id, team_id):
        member = self._store.members.get((user_id, team_id))
        return TeamRole(member.role) if member else None

    def _admin_count(self, team_id):
        return sum(
            1
            for (_, tid), m in self._store.members.items()
            if tid == team_id and m.role == TeamRole.ADMIN.value
        )

    async def add_membership(self, actor_id, user_id, team_id, role):
        if team_id not in self._store.teams:
            raise AccessDenied()
        if self._role_of(actor_id, team_id) != TeamRole.ADMIN:
            raise AccessDenied.admin_required()
        if (
            role != TeamRole.ADMIN
            and self._role_of(user_id, team_id) == TeamRole.ADMIN
            and self._admin_count(team_id) <= 1
        ):
            raise ResourceConflict("Cannot demote the last admin of a team")
        existing = self._store.members.get((user_id, team_id))
        if existing is not None:
            existing.role = role.value
            return existing
        return self._store.add_member(user_id, team_id, role)

    async def remove_membership(self, actor_id, user_id, team_id):
        if team_id not in self._store.teams:
            raise AccessDenied()
        actor_role = self._role_of(actor_id, team_id)
        if actor_role is None:
            raise AccessDenied()
        if actor_id != user_id and actor_role != TeamRole.ADMIN:
            raise PermissionDenied(required_permission="team.members.remove")
        target_role = self._role_of(user_id, team_id)
        if target_role is None:
            raise ResourceNotFound("Membership", str(user_id))
        if target_role == TeamRole.ADMIN and self._admin_count(team_id) <= 1:
            raise ResourceConflict("Cannot remove the last admin from a team")
        del self._store.members[(user_id, team_id)]


class FakeTeamsRepo:
    def __init__(self, store: FakeStore):
        self._store = store

    async def create_team(self, name, description, creator_id):
        team = self._store.add_team(name, description)
        self._store.add_member(creator_id, team.id, TeamRole.ADMIN)
        return team

    async def get_user(self, user_id):
        return self._store.users.get(user_id)

    async def ensure_profile(self, user):
        if user.id not in self._store.users:
            profile = self._store.add_user(user.email, user.role_hint)
            del self._store.users[profile.id]
            profile.id = user.id
            self._store.users[user.id] = profile


class FakeWidgetsRepo:
    def __init__(self, store: FakeStore):
        self._store = store

    async def list_active(self, team_id):
        widgets = [w for w in self._store.widgets.values() if w.team_id == team_id and w.is_active]
        return sorted(widgets, key=lambda w: w.position)

    async def count_active(self, team_id):
        return len(await self.list_active(team_id))

    async def get(self, team_id, widget_id):
        widget = self._store.widgets.get(widget_id)
        return widget if widget is not None and widget.team_id == team_id else None

    async def create(self, team_id, widget_type, title, data, position=0):
        return self._store.add_widget(team_id, title, widget_type, position, data=data)

    async def update(self, team_id, widget_id, changes):
        widget = await self.get(team_id, widget_id)
        if widget is None:
            return None
        for key, value in changes.items():
            setattr(widget, key, value)
        return widget

    async def delete(self, team_id, widget_id):
        if await self.get(team_id, widget_id) is None:
            return False
        del self._store.widgets[widget_id]
        return True


class FakeReviewsRepo:
    def __init__(self, store: FakeStore):
        self._store = store

    async def list(self, team_id, limit=20, offset=0):
        reviews = [r for r in self._store.reviews if r.team_id == team_id]
        reviews.sort(key=lambda r: r.created_at, reverse=True)
        return reviews[offset : offset + limit], len(reviews)

    async def create(self, team_id, employee_id, customer_name, job_type, keywords, has_photo,
                     points):
        review = MagicMock()
        review.id = uuid.uuid4()
        review.team_id = team_id
        review.employee_id = employee_id
        review.customer_name = customer_name
        review.job_type = job_type
        review.keywords = keywords
        review.has_photo = has_photo
        review.created_at = self._store._next_time()
        self._store.reviews.append(review)
        key = (employee_id, team_id)
        self._store.points[key] = self._store.points.get(key, 0) + points
        return review

    async def stats(self, team_id):
        return {
            "total_reviews": sum(1 for r in self._store.reviews if r.team_id == team_id),
            "total_points": sum(p for (_, tid), p in self._store.points.items() if tid == team_id),
        }


@asynccontextmanager
async def _no_db_lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def memberships(store) -> FakeMembershipRepo:
    return FakeMembershipRepo(store)


@pytest.fixture
def app(store, memberships) -> FastAPI:
    app = create_app(lifespan_handler=_no_db_lifespan)
    teams_repo = FakeTeamsRepo(store)
    widgets_repo = FakeWidgetsRepo(store)
    reviews_repo = FakeReviewsRepo(store)

    app.dependency_overrides[get_membership_repo] = lambda: memberships
    app.dependency_overrides[get_teams_repo] = lambda: teams_repo
    app.dependency_overrides[get_widgets_repo] = lambda: widgets_repo
    app.dependency_overrides[get_reviews_repo] = lambda: reviews_repo
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Build bearer headers carrying a freshly minted access token for ``user``."""

    def _headers(user, role_hint: str | None = None) -> dict[str, str]:
        token = create_access_token(user.id, user.email, role_hint=role_hint)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def team_with_admin(store):
    """A team T with admin A and member M, plus an unrelated team T2."""
    admin = store.add_user("alice@example.com", role="manager")
    member = store.add_user("bob@example.com")
    outsider = store.add_user("carol@example.com")
    team = store.add_team("Team One")
    other_team = store.add_team("Team Two")
    store.add_member(admin.id, team.id, TeamRole.ADMIN)
    store.add_member(member.id, team.id, TeamRole.MEMBER)
    store.add_member(outsider.id, other_team.id, TeamRole.ADMIN)
    return MagicMock(
        admin=admin, member=member, outsider=outsider, team=team, other_team=other_team
    )
