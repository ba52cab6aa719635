"""The client's single "current team" value.

Written only here; read by every outbound authenticated call. A persisted id
is never trusted on its own: ``reconcile`` checks it against the freshly
fetched memberships after every successful fetch.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from teamgate_client.api import TeamSummary
from teamgate_client.storage import SelectionStorage

log = structlog.get_logger(__name__)


class TeamSelectionStore:
    def __init__(self, storage: SelectionStorage, key: str = "currentTeamId") -> None:
        self._storage = storage
        self._key = key
        self._current: TeamSummary | None = None
        self._teams: list[TeamSummary] = []

    @property
    def current(self) -> TeamSummary | None:
        return self._current

    @property
    def current_team_id(self) -> str | None:
        return self._current.id if self._current else None

    @property
    def teams(self) -> list[TeamSummary]:
        return list(self._teams)

    async def persisted_team_id(self) -> str | None:
        value = await self._storage.get(self._key)
        return value.strip() if value and value.strip() else None

    async def select_team(self, team: TeamSummary) -> None:
        """Make ``team`` current and persist its id."""
        self._current = team
        await self._storage.set(self._key, team.id)
        log.info("team_selected", team_id=team.id)

    async def reconcile(self, fetched: Sequence[TeamSummary]) -> TeamSummary | None:
        """Re-derive the selection from the latest membership list.

        Keeps the persisted team when it is still a membership, otherwise
        falls back to the first fetched team. An empty list clears both the
        in-memory and the persisted selection.
        """
        self._teams = list(fetched)
        if not self._teams:
            await self.clear()
            return None

        persisted = await self.persisted_team_id()
        chosen = next((t for t in self._teams if t.id == persisted), None)
        if chosen is None:
            if persisted is not None:
                log.info("persisted_team_stale", team_id=persisted)
            chosen = self._teams[0]

        await self.select_team(chosen)
        return chosen

    async def clear(self) -> None:
        self._current = None
        self._teams = []
        await self._storage.delete(self._key)
        log.info("team_selection_cleared")
