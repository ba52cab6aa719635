"""Client-side failures.

Denials and transient failures are kept apart so a caller can offer "retry"
for one and "contact an admin" for the other.
"""

from __future__ import annotations


class TeamgateClientError(Exception):
    """Base class for client core errors."""


class SessionUnavailable(TeamgateClientError):
    """The identity provider produced no usable session in time."""


class AuthenticationFailed(TeamgateClientError):
    """The server rejected the credential even after one refresh-and-replay."""

    def __init__(self, message: str = "Authentication failed", status_code: int = 401) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientFailure(TeamgateClientError):
    """Network-level retries were exhausted."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class TeamFetchError(TeamgateClientError):
    """One membership fetch attempt failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_denial(self) -> bool:
        return self.status_code in (401, 403)


class SelectionUpdateFailed(TeamgateClientError):
    """Teams were fetched but the selection could not be applied or persisted."""
