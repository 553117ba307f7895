# src/cache/sqlite_store.py — v1
"""SQLite-based fingerprint cache (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, one row per cached path. The connection is only used
from the event loop thread.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from sweepscan.cache.base_cache_store import BaseFingerprintCache
from sweepscan.cache.models import FingerprintCacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS file_cache (
    path TEXT PRIMARY KEY,
    size INTEGER NOT NULL,
    partial_hash TEXT NOT NULL,
    full_hash TEXT,
    modified_time REAL NOT NULL,
    chunk_size INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_size ON file_cache(size);
CREATE INDEX IF NOT EXISTS idx_partial_hash ON file_cache(partial_hash);
"""

_COLUMNS = "path, size, partial_hash, full_hash, modified_time, chunk_size"


class SqliteFingerprintCache(BaseFingerprintCache):
    """SQLite-backed fingerprint cache, persistent across runs."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, path: str) -> FingerprintCacheEntry | None:
        """Retrieve the row for path."""
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM file_cache WHERE path = ?", (path,)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return FingerprintCacheEntry(
            path=row[0],
            size=row[1],
            partial_hash=row[2],
            full_hash=row[3],
            modified_time=row[4],
            chunk_size=row[5],
        )

    async def put(self, entry: FingerprintCacheEntry) -> None:
        """Store a row (upsert)."""
        self._conn.execute(
            f"INSERT OR REPLACE INTO file_cache ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.path,
                entry.size,
                entry.partial_hash,
                entry.full_hash,
                entry.modified_time,
                entry.chunk_size,
            ),
        )
        self._conn.commit()

    async def clear(self) -> None:
        """Remove every row."""
        self._conn.execute("DELETE FROM file_cache")
        self._conn.commit()

    async def count(self) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM file_cache")
        return int(cursor.fetchone()[0])

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
