# src/api/facade.py — v1
"""Public API facade: file listing and duplicate search in one call each.

Usage:
    from sweepscan.api.facade import find_duplicate_files
    groups = await find_duplicate_files(["/sdcard"])
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

from sweepscan.config.settings import Settings
from sweepscan.core.cancellation import CancelToken, is_cancelled
from sweepscan.core.models import (
    DuplicateGroup,
    EntryPredicate,
    FileEntry,
    ProgressCallback,
    ScanConfiguration,
    sort_by_size_desc,
)
from sweepscan.dedup.finder import DuplicateFinder
from sweepscan.logging.context import clear_context, set_scan_context, set_stage
from sweepscan.scanner.filters import all_of, non_empty_filter
from sweepscan.scanner.traversal import TraversalEngine

if TYPE_CHECKING:
    from sweepscan.cache.base_cache_store import BaseFingerprintCache

logger = logging.getLogger(__name__)


def new_scan_id() -> str:
    """Short random identifier attached to every log record of one scan."""
    return uuid.uuid4().hex[:8]


async def scan_files(
    root_paths: list[str],
    accept_entry: EntryPredicate | None = None,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> list[FileEntry]:
    """List files under root_paths accepted by accept_entry, largest first.

    A cancelled scan returns what was collected so far.
    """
    settings = settings or Settings()
    set_scan_context(new_scan_id(), "scanning")
    try:
        config = ScanConfiguration.from_settings(settings, root_paths, accept_entry)
        t0 = time.perf_counter()
        entries = await TraversalEngine().scan(config, on_progress, cancel_token)
        logger.info(
            "Listed %d files in %.2fs", len(entries), time.perf_counter() - t0,
        )
        return sort_by_size_desc(entries)
    finally:
        clear_context()


async def find_duplicate_files(
    root_paths: list[str],
    accept_entry: EntryPredicate | None = None,
    settings: Settings | None = None,
    cache_store: BaseFingerprintCache | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> list[DuplicateGroup]:
    """Traverse root_paths then group duplicate files.

    Progress arrives as ScanProgress snapshots, then HashProgress ones.
    Empty files are never considered. Returns [] if cancelled at any stage.

    Args:
        root_paths: Directories to scan; overlaps and missing paths are fine.
        accept_entry: Extra filter (e.g. an extension filter).
        settings: Global settings. Loaded from .env if None.
        cache_store: Fingerprint cache. None = fresh in-memory cache.
        on_progress: Sink for throttled progress snapshots.
        cancel_token: Cooperative cancellation flag.
    """
    settings = settings or Settings()
    if cache_store is None:
        from sweepscan.cache.memory_store import MemoryFingerprintCache
        cache_store = MemoryFingerprintCache()

    set_scan_context(new_scan_id(), "scanning")
    try:
        return await _collect_and_group(
            root_paths, accept_entry, settings, cache_store, on_progress, cancel_token
        )
    finally:
        clear_context()


async def _collect_and_group(
    root_paths: list[str],
    accept_entry: EntryPredicate | None,
    settings: Settings,
    cache_store: BaseFingerprintCache,
    on_progress: ProgressCallback | None,
    cancel_token: CancelToken | None,
) -> list[DuplicateGroup]:
    t0 = time.perf_counter()
    config = ScanConfiguration.from_settings(
        settings, root_paths, all_of(non_empty_filter(), accept_entry)
    )
    entries = await TraversalEngine().scan(config, on_progress, cancel_token)
    collected_at = time.perf_counter()

    if is_cancelled(cancel_token):
        logger.info("Duplicate scan cancelled during traversal")
        return []
    if not entries:
        logger.info("Duplicate scan skipped: no files found")
        return []

    set_stage("hashing")
    finder = DuplicateFinder.from_settings(settings, cache_store)
    groups = await finder.find_duplicates(entries, on_progress, cancel_token)
    finished_at = time.perf_counter()

    logger.info(
        "Duplicate scan: files=%d groups=%d collect=%.2fs hash=%.2fs",
        len(entries), len(groups), collected_at - t0, finished_at - collected_at,
    )
    return groups
