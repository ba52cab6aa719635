"""Shared test fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make _helpers importable from test files
sys.path.insert(0, str(Path(__file__).parent))

from _helpers import FakeIdentityProvider, RecordingSleep  # noqa: E402

from teamgate_client.auth_context import AuthContext  # noqa: E402
from teamgate_client.config import ClientConfig  # noqa: E402
from teamgate_client.storage import MemorySelectionStorage  # noqa: E402
from teamgate_client.team_selection import TeamSelectionStore  # noqa: E402


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(
        base_url="http://teamgate.test",
        session_poll_interval_s=0.1,
        session_poll_attempts=5,
        team_fetch_max_retries=3,
        team_fetch_base_delay_s=1.0,
        network_max_retries=2,
        network_backoff_s=1.0,
    )


@pytest.fixture
def provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def auth(provider) -> AuthContext:
    return AuthContext(provider)


@pytest.fixture
def storage() -> MemorySelectionStorage:
    return MemorySelectionStorage()


@pytest.fixture
def selection(storage, config) -> TeamSelectionStore:
    return TeamSelectionStore(storage, key=config.selection_key)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
