"""Membership list endpoint: ``GET /api/v1/teams``."""

from __future__ import annotations

from datetime import datetime

import httpx
import structlog
from pydantic import BaseModel

from teamgate_client.config import ClientConfig
from teamgate_client.errors import TeamFetchError

log = structlog.get_logger(__name__)


class TeamSummary(BaseModel):
    """One of the principal's memberships joined with its team."""

    id: str
    name: str
    description: str | None = None
    created_at: datetime | None = None
    user_role: str = "member"
    joined_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.user_role == "admin"


class TeamsApi:
    def __init__(self, config: ClientConfig, http: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http = http

    async def fetch_teams(self, access_token: str) -> list[TeamSummary]:
        """One fetch attempt. Raises ``TeamFetchError`` on any failure."""
        url = f"{self._config.base_url.rstrip('/')}{self._config.teams_path}"
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            if self._http is not None:
                resp = await self._http.get(url, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._config.request_timeout_s) as client:
                    resp = await client.get(url, headers=headers)
        except httpx.TransportError as exc:
            raise TeamFetchError(f"Network error fetching teams: {exc}") from exc

        if resp.status_code != 200:
            raise TeamFetchError(
                f"Team fetch failed with HTTP {resp.status_code}", status_code=resp.status_code
            )

        # pydantic.ValidationError is a ValueError
        try:
            teams = [TeamSummary.model_validate(item) for item in resp.json()["teams"]]
        except (ValueError, KeyError, TypeError) as exc:
            raise TeamFetchError(f"Malformed team list: {exc}", status_code=resp.status_code) from exc

        log.debug("teams_fetched", count=len(teams))
        return teams
