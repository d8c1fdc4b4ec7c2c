"""Async SQLite store.

Uses ``aiosqlite`` for non-blocking database access with WAL mode. Every
blob lives in a single ``blobs`` table keyed by its store key, so each
write is one ``INSERT ... ON CONFLICT`` statement and either fully lands
or not at all.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

import aiosqlite

from web3_wallet.errors import NotFoundError, PersistenceError

logger = logging.getLogger("web3_wallet.storage.database")


class SqliteStore:
    """Store implementation backed by one SQLite database file.

    Parameters
    ----------
    db_path:
        Filesystem path to the SQLite database file.  The file (and any
        intermediate directories) will be created automatically on
        :meth:`connect` if they do not already exist.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._conn: Optional[aiosqlite.Connection] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the database connection, enable WAL mode, and run migrations."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(str(self.db_path))
            await self._conn.execute("PRAGMA journal_mode=WAL;")
            await self._migrate()
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"Cannot open store {self.db_path}: {exc}") from exc

    async def close(self) -> None:
        """Close the database connection gracefully."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> "SqliteStore":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _db(self) -> aiosqlite.Connection:
        assert self._conn is not None, "Store not connected. Call connect() first."
        return self._conn

    async def _migrate(self) -> None:
        """Create the blob table if it does not already exist."""
        await self._db().executescript(
            """\
            CREATE TABLE IF NOT EXISTS blobs (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        await self._db().commit()

    # ------------------------------------------------------------------
    # Store protocol
    # ------------------------------------------------------------------

    async def read(self, key: str) -> str:
        try:
            cursor = await self._db().execute("SELECT value FROM blobs WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to read '{key}': {exc}") from exc
        if row is None:
            raise NotFoundError(f"No stored entry '{key}'")
        return row[0]

    async def write(self, key: str, text: str) -> None:
        try:
            await self._db().execute(
                "INSERT INTO blobs (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, text),
            )
            await self._db().commit()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to write '{key}': {exc}") from exc
        logger.debug(f"Wrote {key} ({len(text)} chars)")

    async def exists(self, key: str) -> bool:
        try:
            cursor = await self._db().execute("SELECT 1 FROM blobs WHERE key = ?", (key,))
            return await cursor.fetchone() is not None
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to query '{key}': {exc}") from exc

    async def list(self, prefix: str) -> list[str]:
        base = prefix.rstrip("/") + "/" if prefix else ""
        try:
            cursor = await self._db().execute(
                "SELECT key FROM blobs WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(base), base),
            )
            rows = await cursor.fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to list '{prefix}': {exc}") from exc
        names = [row[0][len(base):] for row in rows]
        return [name for name in names if name and "/" not in name]

    async def delete(self, key: str) -> None:
        try:
            cursor = await self._db().execute("DELETE FROM blobs WHERE key = ?", (key,))
            await self._db().commit()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to delete '{key}': {exc}") from exc
        if cursor.rowcount == 0:
            raise NotFoundError(f"No stored entry '{key}'")
        logger.debug(f"Deleted {key}")
