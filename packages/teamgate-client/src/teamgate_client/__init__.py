"""Teamgate client core: session bootstrap, team selection, authenticated calls."""

from teamgate_client.api import TeamsApi, TeamSummary
from teamgate_client.auth_context import AuthContext, AuthEvent, IdentityProvider, Session
from teamgate_client.bootstrap import BootstrapState, SessionBootstrap
from teamgate_client.config import ClientConfig
from teamgate_client.errors import (
    AuthenticationFailed,
    SelectionUpdateFailed,
    SessionUnavailable,
    TeamFetchError,
    TeamgateClientError,
    TransientFailure,
)
from teamgate_client.fetch import AuthenticatedFetch
from teamgate_client.identity import TokenIdentityProvider
from teamgate_client.storage import MemorySelectionStorage, SelectionStorage, SQLiteSelectionStorage
from teamgate_client.team_selection import TeamSelectionStore

__all__ = [
    "AuthContext",
    "AuthEvent",
    "AuthenticatedFetch",
    "AuthenticationFailed",
    "BootstrapState",
    "ClientConfig",
    "IdentityProvider",
    "MemorySelectionStorage",
    "SQLiteSelectionStorage",
    "SelectionStorage",
    "SelectionUpdateFailed",
    "Session",
    "SessionBootstrap",
    "SessionUnavailable",
    "TeamFetchError",
    "TeamSelectionStore",
    "TeamSummary",
    "TeamgateClientError",
    "TeamsApi",
    "TokenIdentityProvider",
    "TransientFailure",
]
__version__ = "0.1.0"
