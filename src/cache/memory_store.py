# src/cache/memory_store.py — v1
"""In-process fingerprint cache (CACHE_BACKEND=memory).

Lives as long as the host process; used for one-shot runs and tests.
"""

from __future__ import annotations

from sweepscan.cache.base_cache_store import BaseFingerprintCache
from sweepscan.cache.models import FingerprintCacheEntry


class MemoryFingerprintCache(BaseFingerprintCache):
    """Dict-backed fingerprint cache."""

    def __init__(self) -> None:
        self._entries: dict[str, FingerprintCacheEntry] = {}

    async def get(self, path: str) -> FingerprintCacheEntry | None:
        return self._entries.get(path)

    async def put(self, entry: FingerprintCacheEntry) -> None:
        self._entries[entry.path] = entry.model_copy()

    async def clear(self) -> None:
        self._entries.clear()

    async def count(self) -> int:
        return len(self._entries)
