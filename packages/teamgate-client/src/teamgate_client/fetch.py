"""Authenticated HTTP calls against the Teamgate API.

Every call carries the current bearer token. Calls to team-scoped endpoints
also carry ``team_id`` taken from the ``TeamSelectionStore``, in the query
string or in the ``/teams/<team_id>/...`` path segment, overriding whatever
the caller passed, so a stale view can never address another team.

Two independent retry policies apply:

* a 401 triggers exactly one session refresh and one replay; a second 401
  raises ``AuthenticationFailed``;
* network-level failures are retried with linear backoff up to
  ``network_max_retries`` and then raise ``TransientFailure``. HTTP error
  statuses other than 401 are returned to the caller as-is.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from teamgate_client.auth_context import AuthContext, Session
from teamgate_client.backoff import linear_delay
from teamgate_client.config import ClientConfig
from teamgate_client.errors import (
    AuthenticationFailed,
    SessionUnavailable,
    TeamgateClientError,
    TransientFailure,
)
from teamgate_client.team_selection import TeamSelectionStore

log = structlog.get_logger(__name__)


class AuthenticatedFetch:
    def __init__(
        self,
        auth: AuthContext,
        selection: TeamSelectionStore,
        config: ClientConfig | None = None,
        http: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._auth = auth
        self._selection = selection
        self._config = config or ClientConfig()
        self._http = http
        self._sleep = sleep
        teams_path = re.escape(self._config.teams_path.rstrip("/"))
        self._team_path_re = re.compile(
            rf"^(?P<base>{teams_path}/)(?P<team_id>[^/]+)(?P<rest>/.*)?$"
        )

    def is_team_scoped(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._config.team_scoped_paths)

    def team_path(self, suffix: str = "") -> str:
        """``/api/v1/teams/<selected team id><suffix>`` for path-scoped endpoints."""
        team_id = self._require_team_id()
        return f"{self._config.teams_path.rstrip('/')}/{team_id}{suffix}"

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.call("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.call("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.call("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.call("DELETE", path, **kwargs)

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        path = self._scoped_path(path)
        params = self._scoped_params(path, params)
        session = await self._current_session()

        if self._http is not None:
            return await self._call_with_auth_retry(
                self._http, method, path, params, json, headers, session
            )
        async with httpx.AsyncClient(timeout=self._config.request_timeout_s) as client:
            return await self._call_with_auth_retry(
                client, method, path, params, json, headers, session
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_team_id(self) -> str:
        team_id = self._selection.current_team_id
        if team_id is None:
            raise TeamgateClientError("No team selected")
        return team_id

    def _scoped_path(self, path: str) -> str:
        """Force the team segment of ``/teams/<team_id>/...`` paths to the selection."""
        match = self._team_path_re.match(path)
        if match is None:
            return path

        team_id = self._require_team_id()
        if match["team_id"] != team_id:
            log.warning(
                "team_id_overridden", path=path, supplied=match["team_id"], team_id=team_id
            )
        return f"{match['base']}{team_id}{match['rest'] or ''}"

    def _scoped_params(self, path: str, params: dict[str, Any] | None) -> dict[str, Any]:
        merged = dict(params or {})
        if not self.is_team_scoped(path):
            return merged

        team_id = self._require_team_id()
        supplied = merged.get("team_id")
        if supplied is not None and str(supplied) != team_id:
            log.warning("team_id_overridden", path=path, supplied=str(supplied), team_id=team_id)
        merged["team_id"] = team_id
        return merged

    async def _current_session(self) -> Session:
        session = await self._auth.get_session()
        if session is None:
            session = await self._auth.refresh_session()
        if session is None:
            raise SessionUnavailable("No active session")
        return session

    async def _call_with_auth_retry(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: dict[str, Any],
        json: Any,
        headers: dict[str, str] | None,
        session: Session,
    ) -> httpx.Response:
        resp = await self._send(client, method, path, params, json, headers, session)
        if resp.status_code != 401:
            return resp

        log.info("auth_retry", path=path)
        refreshed = await self._auth.refresh_session()
        if refreshed is None:
            raise AuthenticationFailed("Session refresh failed after 401")

        resp = await self._send(client, method, path, params, json, headers, refreshed)
        if resp.status_code == 401:
            log.warning("auth_failed_after_refresh", path=path)
            raise AuthenticationFailed()
        return resp

    async def _send(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        params: dict[str, Any],
        json: Any,
        headers: dict[str, str] | None,
        session: Session,
    ) -> httpx.Response:
        url = f"{self._config.base_url.rstrip('/')}{path}"
        request_headers = {**(headers or {}), "Authorization": f"Bearer {session.access_token}"}
        max_retries = self._config.network_max_retries

        attempt = 0
        while True:
            try:
                return await client.request(
                    method, url, params=params or None, json=json, headers=request_headers
                )
            except httpx.TransportError as exc:
                if attempt >= max_retries:
                    raise TransientFailure(
                        f"{method} {path} failed after {attempt + 1} attempts: {exc}",
                        attempts=attempt + 1,
                    ) from exc
                delay = linear_delay(attempt, self._config.network_backoff_s)
                log.warning(
                    "network_retry",
                    path=path,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    delay_s=delay,
                    error=str(exc),
                )
                await self._sleep(delay)
                attempt += 1
