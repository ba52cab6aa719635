"""Session/auth context: the identity provider plus typed lifecycle events.

Constructed once at application start and passed to whatever needs the
session. Subscribers register per event kind and get back an unsubscribe
callable::

    auth = AuthContext(provider)
    unsubscribe = auth.subscribe(AuthEvent.SIGNED_OUT, on_signed_out)
    ...
    unsubscribe()
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

import structlog

log = structlog.get_logger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "signed-in"
    SIGNED_OUT = "signed-out"
    TOKEN_REFRESHED = "token-refreshed"


@dataclass(frozen=True)
class Session:
    """Snapshot of the provider's session; the core never mutates it."""

    access_token: str
    expires_at: datetime | None = None

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and self.expires_at <= datetime.now(UTC)


class IdentityProvider(Protocol):
    """The external identity provider's session surface."""

    async def get_session(self) -> Session | None: ...
    async def refresh_session(self) -> Session | None: ...
    async def sign_out(self) -> None: ...


Listener = Callable[[AuthEvent, Session | None], Awaitable[None] | None]


class AuthContext:
    def __init__(self, provider: IdentityProvider) -> None:
        self._provider = provider
        self._session: Session | None = None
        self._listeners: dict[AuthEvent, list[Listener]] = {event: [] for event in AuthEvent}

    @property
    def session(self) -> Session | None:
        """Last session observed through this context (may be stale)."""
        return self._session

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, event: AuthEvent, listener: Listener) -> Callable[[], None]:
        listeners = self._listeners[event]
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def listener_count(self, event: AuthEvent) -> int:
        return len(self._listeners[event])

    async def emit(self, event: AuthEvent, session: Session | None = None) -> None:
        """Record ``session`` and notify every listener of ``event`` in order.

        Listeners may be plain or async callables.
        """
        if event == AuthEvent.SIGNED_OUT:
            self._session = None
        elif session is not None:
            self._session = session

        log.debug("auth_event", auth_event=event.value, listeners=len(self._listeners[event]))
        for listener in list(self._listeners[event]):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result

    # ------------------------------------------------------------------
    # Provider delegation
    # ------------------------------------------------------------------

    async def get_session(self) -> Session | None:
        """Ask the provider for its current session; empty tokens count as none."""
        session = await self._provider.get_session()
        if session is None or not session.access_token:
            return None
        self._session = session
        return session

    async def refresh_session(self) -> Session | None:
        session = await self._provider.refresh_session()
        if session is None or not session.access_token:
            log.info("session_refresh_failed")
            return None
        await self.emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        await self._provider.sign_out()
        await self.emit(AuthEvent.SIGNED_OUT)
