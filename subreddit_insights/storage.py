"""Key-value persistence — aiosqlite-backed store for serialized records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import aiosqlite

from subreddit_insights.config import settings

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class KeyValueStore(Protocol):
    """String keys to opaque string values.

    The credential store, snapshot cache and conversation store each receive
    one of these explicitly instead of reaching into shared global state.
    """

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def keys(self, prefix: str = "") -> list[str]: ...


class SqliteKeyValueStore:
    """Persists key-value records in a single SQLite table.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    # -- CRUD ------------------------------------------------------------------

    async def get(self, key: str) -> str | None:
        """Return the value stored under *key*, or None."""
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return row[0] if row else None
        finally:
            await db.close()

    async def set(self, key: str, value: str) -> None:
        """Insert or overwrite the value under *key*."""
        db = await self._connect()
        try:
            await db.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (key, value),
            )
            await db.commit()
        finally:
            await db.close()

    async def delete(self, key: str) -> bool:
        """Remove *key*. Returns True if a row was deleted."""
        db = await self._connect()
        try:
            cursor = await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()

    async def keys(self, prefix: str = "") -> list[str]:
        """Return all keys starting with *prefix*, sorted."""
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT key FROM kv_store ORDER BY key")
            rows = await cursor.fetchall()
            return [row[0] for row in rows if row[0].startswith(prefix)]
        finally:
            await db.close()
