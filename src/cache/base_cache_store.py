# src/cache/base_cache_store.py — v1
"""Abstract fingerprint cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from sweepscan.cache.models import FingerprintCacheEntry


class BaseFingerprintCache(ABC):
    """Key-value store of fingerprints keyed by file path.

    put() is an idempotent upsert. Rows are never removed one by one;
    staleness is detected by the caller comparing size and mtime.
    Implementations must tolerate concurrent calls for disjoint paths.
    """

    @abstractmethod
    async def get(self, path: str) -> FingerprintCacheEntry | None:
        """Retrieve the cached row for path."""

    @abstractmethod
    async def put(self, entry: FingerprintCacheEntry) -> None:
        """Insert or replace the row for entry.path."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every cached row."""

    @abstractmethod
    async def count(self) -> int:
        """Number of cached rows."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""
