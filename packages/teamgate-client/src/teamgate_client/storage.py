"""Durable client storage for the selected team id.

Only one key is ever written (``ClientConfig.selection_key``) but the
storage is a plain string key/value store.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

import aiosqlite
import structlog

log = structlog.get_logger(__name__)

_PRAGMA_WAL = "PRAGMA journal_mode = WAL"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS client_state (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class SelectionStorage(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def delete(self, key: str) -> None: ...


class MemorySelectionStorage:
    """Process-local storage; survives nothing. Used in tests and previews."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteSelectionStorage:
    """aiosqlite-backed storage that survives process restarts.

    Usage::

        storage = SQLiteSelectionStorage("~/.teamgate/client.db")
        await storage.initialize()
        await storage.set("currentTeamId", team_id)
        await storage.close()
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._conn: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.execute(_PRAGMA_WAL)
        await self._conn.execute(_SCHEMA)
        await self._conn.commit()
        log.info("selection_storage_initialized", path=str(self._db_path))

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def get(self, key: str) -> str | None:
        conn = self._require_connection()
        async with conn.execute("SELECT value FROM client_state WHERE key = ?", (key,)) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        conn = self._require_connection()
        await conn.execute(
            """
            INSERT INTO client_state (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, value, datetime.now(UTC).isoformat()),
        )
        await conn.commit()

    async def delete(self, key: str) -> None:
        conn = self._require_connection()
        await conn.execute("DELETE FROM client_state WHERE key = ?", (key,))
        await conn.commit()

    def _require_connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(
                "SQLiteSelectionStorage is not initialized. Call await storage.initialize() first."
            )
        return self._conn
