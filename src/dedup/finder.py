# src/dedup/finder.py — v1
"""Duplicate detection pipeline: size buckets -> cached fingerprints -> groups.

Decision flow per scan:
  1. Drop empty files, bucket the rest by exact size, discard singletons.
  2. Fingerprint each surviving candidate, reusing a cache row only when
     its size, mtime and chunk size still match the file; write every
     freshly computed fingerprint back before moving on.
  3. Group candidates by (size, fingerprint); discard singletons.

A cancelled run returns no groups at all: an incomplete duplicate set is
not safe to act on for deletion.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from sweepscan.cache.fingerprint import (
    DEFAULT_CHUNK_SIZE,
    compute_fingerprint,
    covers_full_content,
)
from sweepscan.cache.models import FingerprintCacheEntry
from sweepscan.core.cancellation import CancelToken, is_cancelled
from sweepscan.core.models import (
    DuplicateGroup,
    DuplicateScanStats,
    FileEntry,
    HashProgress,
    ProgressCallback,
)
from sweepscan.core.progress import ProgressThrottle
from sweepscan.scanner.traversal import normalize_path

if TYPE_CHECKING:
    from sweepscan.cache.base_cache_store import BaseFingerprintCache
    from sweepscan.config.settings import Settings

logger = logging.getLogger(__name__)

Hasher = Callable[[str, int], str]

DEFAULT_HASH_BATCH_SIZE = 50


@dataclass
class _HashRun:
    """Counters and sinks for one find_duplicates() call."""

    total: int
    throttle: ProgressThrottle
    cancel_token: CancelToken | None
    stats: DuplicateScanStats = field(default_factory=DuplicateScanStats)
    hashed: int = 0

    @property
    def cancelled(self) -> bool:
        return is_cancelled(self.cancel_token)


class DuplicateFinder:
    """Find groups of byte-identical files (under the head/tail strategy).

    The cache is an injected dependency shared across scans; the finder
    only reads and upserts rows, never deletes them.
    """

    def __init__(
        self,
        cache: BaseFingerprintCache,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        hash_batch_size: int = DEFAULT_HASH_BATCH_SIZE,
        progress_interval_ms: int = 200,
        hasher: Hasher = compute_fingerprint,
    ) -> None:
        if chunk_size < 1 or hash_batch_size < 1:
            raise ValueError("chunk_size and hash_batch_size must be >= 1")
        self._cache = cache
        self._chunk_size = chunk_size
        self._hash_batch_size = hash_batch_size
        self._progress_interval_ms = progress_interval_ms
        self._hasher = hasher
        self._reported_failures: set[str] = set()
        self.last_stats = DuplicateScanStats()

    @classmethod
    def from_settings(
        cls, settings: Settings, cache: BaseFingerprintCache
    ) -> DuplicateFinder:
        return cls(
            cache=cache,
            chunk_size=settings.hash_chunk_size,
            hash_batch_size=settings.hash_batch_size,
            progress_interval_ms=settings.scan_progress_interval_ms,
        )

    async def find_duplicates(
        self,
        entries: list[FileEntry],
        on_progress: ProgressCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> list[DuplicateGroup]:
        """Return duplicate groups among entries, largest total size first.

        Returns [] when cancel_token is set at any point of the run.
        """
        candidates = self.size_candidates(entries)
        run = _HashRun(
            total=len(candidates),
            throttle=ProgressThrottle(on_progress, self._progress_interval_ms),
            cancel_token=cancel_token,
        )
        run.stats.files_considered = len(entries)
        run.stats.candidates = len(candidates)
        self.last_stats = run.stats

        if run.cancelled:
            logger.info("Duplicate search cancelled before hashing")
            return []

        run.throttle.emit(HashProgress(candidates_total=run.total), force=True)

        fingerprints: dict[str, str] = {}
        for start in range(0, len(candidates), self._hash_batch_size):
            if run.cancelled:
                break
            batch = candidates[start:start + self._hash_batch_size]
            results = await asyncio.gather(
                *(self._fingerprint_candidate(entry, run) for entry in batch)
            )
            for entry, fingerprint in zip(batch, results):
                if fingerprint is not None:
                    fingerprints[entry.path] = fingerprint
            # Let other tasks on the loop run between batches
            await asyncio.sleep(0)

        if run.cancelled:
            logger.info(
                "Duplicate search cancelled after %d/%d candidates, discarding results",
                run.hashed, run.total,
            )
            return []

        groups = self._group(candidates, fingerprints)
        run.stats.groups = len(groups)

        run.throttle.emit(
            HashProgress(
                candidates_total=run.total,
                candidates_hashed=run.hashed,
                stage="complete",
            ),
            force=True,
        )
        logger.info(
            "Duplicate search complete: %d candidates, %d cache hits, "
            "%d computed, %d skipped, %d groups",
            run.stats.candidates, run.stats.cache_hits, run.stats.computed,
            run.stats.skipped, run.stats.groups,
        )
        return groups

    @staticmethod
    def size_candidates(entries: list[FileEntry]) -> list[FileEntry]:
        """Non-empty files sharing their exact size with at least one other file.

        Entries naming the same file under different spellings count once.
        """
        buckets: dict[int, list[FileEntry]] = defaultdict(list)
        seen: set[str] = set()
        for entry in entries:
            if entry.is_directory or entry.size == 0:
                continue
            key = normalize_path(entry.path)
            if key in seen:
                continue
            seen.add(key)
            buckets[entry.size].append(entry)

        candidates: list[FileEntry] = []
        for bucket in buckets.values():
            if len(bucket) > 1:
                candidates.extend(bucket)
        return candidates

    async def _fingerprint_candidate(
        self, entry: FileEntry, run: _HashRun
    ) -> str | None:
        if run.cancelled:
            return None

        cached = await self._lookup(entry)
        if cached is not None:
            fingerprint = cached.partial_hash
            run.stats.cache_hits += 1
        else:
            if run.cancelled:
                return None
            try:
                fingerprint = await asyncio.to_thread(
                    self._hasher, entry.path, self._chunk_size
                )
            except (OSError, ValueError) as e:
                run.stats.skipped += 1
                self._report_failure(entry.path, e)
                return None
            run.stats.computed += 1
            await self._store(entry, fingerprint)

        run.hashed += 1
        run.throttle.emit(
            HashProgress(
                candidates_total=run.total,
                candidates_hashed=run.hashed,
                last_hashed=entry.path,
            )
        )
        return fingerprint

    async def _lookup(self, entry: FileEntry) -> FingerprintCacheEntry | None:
        """Return a reusable cache row, or None on miss, stale row or cache error."""
        try:
            cached = await self._cache.get(entry.path)
        except Exception:
            logger.warning("Cache lookup failed for %s, recomputing", entry.path, exc_info=True)
            return None
        if cached is None:
            return None
        if not cached.matches(entry, self._chunk_size):
            logger.debug("Stale cache entry for %s, recomputing", entry.path)
            return None
        return cached

    async def _store(self, entry: FileEntry, fingerprint: str) -> None:
        row = FingerprintCacheEntry(
            path=entry.path,
            size=entry.size,
            modified_time=entry.modified_time,
            partial_hash=fingerprint,
            full_hash=fingerprint if covers_full_content(entry.size, self._chunk_size) else None,
            chunk_size=self._chunk_size,
        )
        try:
            await self._cache.put(row)
        except Exception:
            logger.warning("Cache write failed for %s", entry.path, exc_info=True)

    @staticmethod
    def _group(
        candidates: list[FileEntry], fingerprints: dict[str, str]
    ) -> list[DuplicateGroup]:
        # Keyed by size too: head/tail fingerprints of different-size files can coincide.
        by_key: dict[tuple[int, str], list[FileEntry]] = defaultdict(list)
        for entry in candidates:
            fingerprint = fingerprints.get(entry.path)
            if fingerprint is not None:
                by_key[(entry.size, fingerprint)].append(entry)

        groups = [
            DuplicateGroup(
                fingerprint=fingerprint,
                files=sorted(files, key=lambda f: f.path),
            )
            for (_, fingerprint), files in by_key.items()
            if len(files) > 1
        ]
        groups.sort(key=lambda g: (-g.total_size, g.fingerprint))
        return groups

    def _report_failure(self, path: str, error: Exception) -> None:
        if path in self._reported_failures:
            return
        self._reported_failures.add(path)
        logger.warning("Cannot fingerprint %s, skipping: %s", path, error)
