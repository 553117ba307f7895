# src/cache/json_store.py — v1
"""JSON file-based fingerprint cache (CACHE_BACKEND=json).

Stores one JSON file per cached path under CACHE_ROOT. File names are the
SHA-1 of the path, so arbitrary paths map to safe names.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path

from pydantic import ValidationError

from sweepscan.cache.base_cache_store import BaseFingerprintCache
from sweepscan.cache.models import FingerprintCacheEntry

logger = logging.getLogger(__name__)


class JsonFingerprintCache(BaseFingerprintCache):
    """File-based fingerprint cache using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, path: str) -> FingerprintCacheEntry | None:
        """Retrieve cache entry by path."""
        entry_path = self._entry_path(path)
        if not entry_path.exists():
            return None
        try:
            data = json.loads(entry_path.read_text(encoding="utf-8"))
            return FingerprintCacheEntry(**data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to read cache entry for %s: %s", path, e)
            return None

    async def put(self, entry: FingerprintCacheEntry) -> None:
        """Store a cache entry, replacing any previous one."""
        entry_path = self._entry_path(entry.path)
        tmp_path = entry_path.with_suffix(".tmp")
        tmp_path.write_text(entry.model_dump_json(), encoding="utf-8")
        tmp_path.replace(entry_path)

    async def clear(self) -> None:
        """Remove all cache files."""
        for entry_path in self._root.glob("*.json"):
            entry_path.unlink(missing_ok=True)

    async def count(self) -> int:
        return sum(1 for _ in self._root.glob("*.json"))

    def _entry_path(self, path: str) -> Path:
        """Return the JSON file for a cached path."""
        digest = hashlib.sha1(path.encode("utf-8")).hexdigest()  # noqa: S324
        return self._root / f"{digest}.json"
