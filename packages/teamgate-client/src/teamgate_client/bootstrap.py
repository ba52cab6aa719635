"""Session bootstrap: sign-in -> usable session -> membership list -> team selection.

States::

    INIT -> AWAITING_SESSION -> FETCHING_TEAMS -> READY
                    |                  |
                    +------> ERROR <---+

Sign-out cancels whatever is running and returns to INIT. READY with zero
teams is a valid outcome, but right after a sign-in it is retried once in
case the membership fetch raced ahead of server-side provisioning.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum

import structlog

from teamgate_client.api import TeamsApi, TeamSummary
from teamgate_client.auth_context import AuthContext, AuthEvent, Session
from teamgate_client.backoff import exponential_delay, fixed_delay
from teamgate_client.config import ClientConfig
from teamgate_client.errors import (
    SelectionUpdateFailed,
    SessionUnavailable,
    TeamFetchError,
    TeamgateClientError,
)
from teamgate_client.team_selection import TeamSelectionStore

log = structlog.get_logger(__name__)


class BootstrapState(str, Enum):
    INIT = "init"
    AWAITING_SESSION = "awaiting_session"
    FETCHING_TEAMS = "fetching_teams"
    READY = "ready"
    ERROR = "error"


_TRANSITIONS: dict[BootstrapState, frozenset[BootstrapState]] = {
    BootstrapState.INIT: frozenset({BootstrapState.AWAITING_SESSION}),
    BootstrapState.AWAITING_SESSION: frozenset(
        {BootstrapState.FETCHING_TEAMS, BootstrapState.ERROR}
    ),
    BootstrapState.FETCHING_TEAMS: frozenset({BootstrapState.READY, BootstrapState.ERROR}),
    BootstrapState.READY: frozenset({BootstrapState.FETCHING_TEAMS}),
    BootstrapState.ERROR: frozenset({BootstrapState.FETCHING_TEAMS}),
}

StateListener = Callable[[BootstrapState, BootstrapState], None]


class SessionBootstrap:
    """One instance per client session, driven by ``AuthContext`` events.

    ``attach()`` subscribes to sign-in/sign-out; ``start()`` runs the
    machine directly (e.g. at application start with a restored session).
    """

    def __init__(
        self,
        auth: AuthContext,
        api: TeamsApi,
        selection: TeamSelectionStore,
        config: ClientConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._auth = auth
        self._api = api
        self._selection = selection
        self._config = config or ClientConfig()
        self._sleep = sleep
        self._clock = clock

        self._state = BootstrapState.INIT
        self.error: TeamgateClientError | None = None
        self._listeners: list[StateListener] = []
        self._unsubscribers: list[Callable[[], None]] = []

        self._run_task: asyncio.Task[BootstrapState] | None = None
        self._fetch_task: asyncio.Task[list[TeamSummary] | None] | None = None
        self._signed_in_at: float | None = None
        self._recovery_used = False
        self.fetch_attempts = 0

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> BootstrapState:
        return self._state

    @property
    def teams(self) -> list[TeamSummary]:
        return self._selection.teams

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _transition(self, new_state: BootstrapState) -> None:
        old_state = self._state
        if new_state != BootstrapState.INIT and new_state not in _TRANSITIONS[old_state]:
            raise RuntimeError(f"Illegal bootstrap transition {old_state.value} -> {new_state.value}")
        self._state = new_state
        log.info("bootstrap_transition", from_state=old_state.value, to_state=new_state.value)
        for listener in list(self._listeners):
            listener(old_state, new_state)

    def _fail(self, error: TeamgateClientError) -> BootstrapState:
        self.error = error
        log.warning("bootstrap_failed", state=self._state.value, error=str(error))
        self._transition(BootstrapState.ERROR)
        return self._state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach(self) -> SessionBootstrap:
        """Subscribe to the auth context's sign-in and sign-out events."""
        self._unsubscribers = [
            self._auth.subscribe(AuthEvent.SIGNED_IN, self._on_signed_in),
            self._auth.subscribe(AuthEvent.SIGNED_OUT, self._on_signed_out),
        ]
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    async def _on_signed_in(self, event: AuthEvent, session: Session | None) -> None:
        await self.start(after_sign_in=True)

    async def _on_signed_out(self, event: AuthEvent, session: Session | None) -> None:
        await self.reset()

    async def start(self, *, after_sign_in: bool = False) -> asyncio.Task[BootstrapState]:
        """(Re)start the machine from INIT in a background task."""
        await self._cancel_tasks()
        if self._state != BootstrapState.INIT:
            self._transition(BootstrapState.INIT)
        self.error = None
        self.fetch_attempts = 0
        self._recovery_used = False
        self._signed_in_at = self._clock() if after_sign_in else None
        self._run_task = asyncio.create_task(self._run())
        return self._run_task

    async def wait(self) -> BootstrapState:
        """Wait for the current run (including any recovery fetch) to settle."""
        if self._run_task is not None:
            await self._run_task
        return self._state

    async def reset(self) -> None:
        """Cancel all in-flight work and clear the selection; back to INIT."""
        await self._cancel_tasks()
        self._signed_in_at = None
        self._recovery_used = False
        self.error = None
        await self._selection.clear()
        if self._state != BootstrapState.INIT:
            self._transition(BootstrapState.INIT)

    async def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        pending = [
            task
            for task in (self._fetch_task, self._run_task)
            if task is not None and not task.done() and task is not current
        ]
        for task in pending:
            task.cancel()
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                log.error("bootstrap_task_failed", error=str(result))
        self._fetch_task = None
        self._run_task = None

    # ------------------------------------------------------------------
    # The machine
    # ------------------------------------------------------------------

    async def _run(self) -> BootstrapState:
        self._transition(BootstrapState.AWAITING_SESSION)
        session = await self._await_session()
        if session is None:
            return self._fail(
                SessionUnavailable(
                    f"No session after {self._config.session_poll_attempts} attempts"
                )
            )

        teams = await self._coalesced_fetch()
        if teams == [] and self._should_recover():
            self._recovery_used = True
            log.info("post_login_recovery", delay_s=self._config.post_login_retry_delay_s)
            await self._sleep(self._config.post_login_retry_delay_s)
            await self._coalesced_fetch()
        return self._state

    def _should_recover(self) -> bool:
        if self._recovery_used or self._signed_in_at is None:
            return False
        return self._clock() - self._signed_in_at <= self._config.post_login_window_s

    async def _await_session(self) -> Session | None:
        attempts = self._config.session_poll_attempts
        for attempt in range(attempts):
            session = await self._auth.get_session()
            if session is not None:
                return session
            if attempt + 1 < attempts:
                await self._sleep(fixed_delay(attempt, self._config.session_poll_interval_s))
        return None

    async def refresh_teams(self) -> list[TeamSummary] | None:
        """Fetch memberships now, or join the fetch already in flight.

        Returns the fetched teams, or None when the fetch ended in ERROR or
        was not applicable in the current state.
        """
        if self._state in (BootstrapState.INIT, BootstrapState.AWAITING_SESSION):
            log.debug("team_fetch_ignored", state=self._state.value)
            return None
        return await self._coalesced_fetch()

    async def _coalesced_fetch(self) -> list[TeamSummary] | None:
        if self._fetch_task is not None and not self._fetch_task.done():
            log.debug("team_fetch_coalesced")
            return await asyncio.shield(self._fetch_task)
        self._fetch_task = asyncio.create_task(self._fetch_teams())
        return await asyncio.shield(self._fetch_task)

    async def _fetch_teams(self) -> list[TeamSummary] | None:
        """Run the retry loop; every failure, expected or not, ends in ERROR."""
        self._transition(BootstrapState.FETCHING_TEAMS)
        try:
            return await self._fetch_with_retries()
        except TeamgateClientError as exc:
            return self._fail_fetch(exc)
        except Exception as exc:
            log.exception("team_fetch_crashed")
            error = TeamgateClientError(f"Team fetch failed unexpectedly: {exc}")
            error.__cause__ = exc
            return self._fail_fetch(error)

    async def _fetch_with_retries(self) -> list[TeamSummary]:
        max_retries = self._config.team_fetch_max_retries

        last_error: TeamFetchError | None = None
        for attempt in range(max_retries):
            session = await self._auth.get_session() or self._auth.session
            if session is None:
                raise SessionUnavailable("Session lost during team fetch")

            self.fetch_attempts += 1
            try:
                teams = await self._api.fetch_teams(session.access_token)
            except TeamFetchError as exc:
                last_error = exc
                if exc.is_denial:
                    break
                if attempt + 1 < max_retries:
                    delay = exponential_delay(
                        attempt,
                        self._config.team_fetch_base_delay_s,
                        self._config.team_fetch_max_delay_s,
                    )
                    log.warning(
                        "team_fetch_retry",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay_s=delay,
                        status_code=exc.status_code,
                    )
                    await self._sleep(delay)
                continue

            try:
                await self._selection.reconcile(teams)
            except Exception as exc:
                raise SelectionUpdateFailed(f"Could not apply team list: {exc}") from exc
            self.error = None
            self._transition(BootstrapState.READY)
            return teams

        raise last_error or TeamFetchError("Team fetch failed")

    def _fail_fetch(self, error: TeamgateClientError) -> None:
        self._fail(error)
        return None
