# src/scanner/traversal.py — v1
"""Concurrent, cancelable breadth-first directory traversal.

A bounded pool of asyncio workers drains a shared directory queue. Each
worker lists one directory off the event loop, then processes its entries
in batches whose members run concurrently: sub-directories go back on the
queue, accepted files are collected.

Usage:
    engine = TraversalEngine()
    entries = await engine.scan(ScanConfiguration(root_paths=["/sdcard"]))
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Callable

from sweepscan.core.cancellation import CancelToken, is_cancelled
from sweepscan.core.models import (
    FileEntry,
    ProgressCallback,
    ScanConfiguration,
    ScanProgress,
)
from sweepscan.core.progress import ProgressThrottle

logger = logging.getLogger(__name__)

DirectoryLister = Callable[[str], list[os.DirEntry]]


def normalize_path(path: str) -> str:
    """Canonical visited-set key: absolute, normalised, no trailing separator.

    Relative and absolute spellings of one directory map to the same key.
    """
    return os.path.normpath(os.path.abspath(path))


def list_directory(path: str) -> list[os.DirEntry]:
    """Blocking directory listing; raises OSError on failure."""
    with os.scandir(path) as it:
        return list(it)


@dataclass
class _ScanState:
    """Mutable state shared by the workers of a single scan."""

    config: ScanConfiguration
    skip_patterns: list[re.Pattern[str]]
    throttle: ProgressThrottle
    cancel_token: CancelToken | None
    queue: asyncio.Queue[str] = field(default_factory=asyncio.Queue)
    visited: set[str] = field(default_factory=set)
    seen_files: set[str] = field(default_factory=set)
    results: list[FileEntry] = field(default_factory=list)
    directories_processed: int = 0

    @property
    def cancelled(self) -> bool:
        return is_cancelled(self.cancel_token)


class TraversalEngine:
    """Walk root directories and return the file entries accepted by a predicate.

    The visited set and result list are only mutated between awaits on the
    event loop thread, so workers never interleave inside an update.
    Failed paths are logged once per engine instance.
    """

    def __init__(self, lister: DirectoryLister = list_directory) -> None:
        self._lister = lister
        self._reported_failures: set[str] = set()

    async def scan(
        self,
        config: ScanConfiguration,
        on_progress: ProgressCallback | None = None,
        cancel_token: CancelToken | None = None,
    ) -> list[FileEntry]:
        """Traverse config.root_paths and return matching files.

        Returns the partial result when cancel_token is set mid-scan.
        Result order is unspecified.
        """
        state = _ScanState(
            config=config,
            skip_patterns=[
                re.compile(p, re.IGNORECASE) for p in config.skip_path_patterns
            ],
            throttle=ProgressThrottle(on_progress, config.progress_interval_ms),
            cancel_token=cancel_token,
        )

        roots: list[str] = []
        for root in config.root_paths:
            key = normalize_path(root)
            if key not in roots:
                roots.append(key)

        if not roots:
            logger.debug("No root paths configured, nothing to scan")
        for root in roots:
            state.queue.put_nowait(root)

        workers = [
            asyncio.create_task(self._worker(state))
            for _ in range(config.max_concurrent_directories if roots else 0)
        ]

        try:
            await state.queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        state.throttle.emit(
            ScanProgress(
                directories_processed=state.directories_processed,
                directories_pending=0,
                files_matched=len(state.results),
                stage="complete",
            ),
            force=True,
        )

        if state.cancelled:
            logger.info(
                "Scan cancelled after %d directories, %d files matched",
                state.directories_processed, len(state.results),
            )
        else:
            logger.info(
                "Scan complete: %d directories, %d files matched",
                state.directories_processed, len(state.results),
            )
        return state.results

    async def _worker(self, state: _ScanState) -> None:
        while True:
            directory = await state.queue.get()
            try:
                if not state.cancelled:
                    await self._process_directory(directory, state)
            except Exception:
                logger.exception("Unexpected error while scanning %s", directory)
            finally:
                state.queue.task_done()

    async def _process_directory(self, directory: str, state: _ScanState) -> None:
        if state.cancelled:
            return
        if directory in state.visited:
            return
        if self._should_skip(directory, state):
            logger.debug("Skipping %s (skip pattern)", directory)
            return
        state.visited.add(directory)

        try:
            entries = await asyncio.to_thread(self._lister, directory)
        except OSError as e:
            self._report_failure(directory, e)
            entries = []

        batch_size = state.config.directory_batch_size
        for start in range(0, len(entries), batch_size):
            if state.cancelled:
                break
            batch = entries[start:start + batch_size]
            await asyncio.gather(
                *(self._process_entry(entry, state) for entry in batch)
            )

        state.directories_processed += 1
        state.throttle.emit(
            ScanProgress(
                directories_processed=state.directories_processed,
                directories_pending=state.queue.qsize(),
                files_matched=len(state.results),
                last_visited=directory,
                stage="scanning",
            )
        )

    async def _process_entry(self, dir_entry: os.DirEntry, state: _ScanState) -> None:
        if state.cancelled:
            return

        path = normalize_path(dir_entry.path)
        if self._should_skip(path, state):
            return

        try:
            if dir_entry.is_symlink():
                return
            is_dir = dir_entry.is_dir(follow_symlinks=False)
            if is_dir:
                if path not in state.visited:
                    state.queue.put_nowait(path)
                return
            if not dir_entry.is_file(follow_symlinks=False):
                return
            stat = await asyncio.to_thread(dir_entry.stat, follow_symlinks=False)
        except OSError as e:
            self._report_failure(path, e)
            return

        entry = FileEntry(path=path, size=stat.st_size, modified_time=stat.st_mtime)
        accept = state.config.accept_entry
        if accept is not None:
            try:
                accepted = accept(entry)
            except Exception:
                logger.warning("Entry filter raised for %s, rejecting", path, exc_info=True)
                return
            if not accepted:
                return
        if path in state.seen_files:
            return
        state.seen_files.add(path)
        state.results.append(entry)

    @staticmethod
    def _should_skip(path: str, state: _ScanState) -> bool:
        candidate = path.replace(os.sep, "/")
        return any(p.search(candidate) for p in state.skip_patterns)

    def _report_failure(self, path: str, error: OSError) -> None:
        if path in self._reported_failures:
            return
        self._reported_failures.add(path)
        if isinstance(error, FileNotFoundError):
            logger.debug("%s does not exist, skipping", path)
        else:
            logger.warning("Cannot read %s, treating as empty: %s", path, error)


async def scan(
    config: ScanConfiguration,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> list[FileEntry]:
    """Convenience wrapper around a fresh TraversalEngine."""
    return await TraversalEngine().scan(config, on_progress, cancel_token)
