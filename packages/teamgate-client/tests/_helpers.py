"""Shared test helpers - importable from test modules."""

from __future__ import annotations

import uuid
from typing import Any

import httpx

from teamgate_client.auth_context import Session


class FakeIdentityProvider:
    """Scripted identity provider.

    ``sessions`` is consumed one item per ``get_session`` call; the last item
    repeats once the script runs out.
    """

    def __init__(
        self,
        sessions: list[Session | None] | None = None,
        refreshed: list[Session | None] | None = None,
    ) -> None:
        self._sessions = list(sessions if sessions is not None else [Session("token-1")])
        self._refreshed = list(refreshed or [])
        self.get_calls = 0
        self.refresh_calls = 0
        self.signed_out = False

    async def get_session(self) -> Session | None:
        self.get_calls += 1
        if len(self._sessions) > 1:
            return self._sessions.pop(0)
        return self._sessions[0] if self._sessions else None

    async def refresh_session(self) -> Session | None:
        self.refresh_calls += 1
        session = self._refreshed.pop(0) if self._refreshed else None
        if session is not None:
            self._sessions = [session]
        return session

    async def sign_out(self) -> None:
        self.signed_out = True
        self._sessions = [None]


class RecordingSleep:
    """Drop-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def team_payload(name: str, role: str = "member", team_id: str | None = None) -> dict[str, Any]:
    return {
        "id": team_id or str(uuid.uuid4()),
        "name": name,
        "description": None,
        "created_at": "2024-01-01T00:00:00+00:00",
        "user_role": role,
        "joined_at": "2024-01-02T00:00:00+00:00",
    }


def teams_response(*teams: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json={"teams": list(teams), "total_teams": len(teams)})
