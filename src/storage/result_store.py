# src/storage/result_store.py — v1
"""Persistence of the latest duplicate scan, replaced wholesale on each save.

Lets a front end show the previous result immediately on start-up while a
new scan is not yet run.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from sweepscan.core.models import DuplicateGroup

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS duplicate_groups (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    saved_at REAL NOT NULL,
    groups_data TEXT NOT NULL
);
"""

_GROUPS_ADAPTER = TypeAdapter(list[DuplicateGroup])


class ScanResultStore:
    """SQLite store holding one snapshot of duplicate groups."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.executescript(_SCHEMA)

    async def save_duplicate_groups(self, groups: list[DuplicateGroup]) -> None:
        """Replace the stored snapshot with groups (an empty list clears it)."""
        data = _GROUPS_ADAPTER.dump_json(groups).decode("utf-8")
        with self._conn:
            self._conn.execute("DELETE FROM duplicate_groups")
            self._conn.execute(
                "INSERT INTO duplicate_groups (saved_at, groups_data) VALUES (?, ?)",
                (time.time(), data),
            )
        logger.debug("Saved %d duplicate groups", len(groups))

    async def load_duplicate_groups(self) -> list[DuplicateGroup]:
        """Return the latest snapshot, or [] when none or unreadable."""
        cursor = self._conn.execute(
            "SELECT groups_data FROM duplicate_groups ORDER BY saved_at DESC LIMIT 1"
        )
        row = cursor.fetchone()
        if row is None:
            return []
        try:
            return _GROUPS_ADAPTER.validate_json(row[0])
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error("Failed to parse saved duplicate groups: %s", e)
            return []

    async def saved_at(self) -> float | None:
        """Epoch seconds of the stored snapshot."""
        cursor = self._conn.execute("SELECT MAX(saved_at) FROM duplicate_groups")
        row = cursor.fetchone()
        return None if row is None else row[0]

    async def clear_duplicate_groups(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM duplicate_groups")

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
