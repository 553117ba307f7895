# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides filesystem tree builders, settings without .env lookup and
in-memory caches. No external services.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from sweepscan.cache.memory_store import MemoryFingerprintCache
from sweepscan.config.settings import Settings


# === FIXTURES: Filesystem ===


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a file relative to tmp_path, creating parents.

    Pass either text content or a raw bytes payload. mtime pins the
    modification time (epoch seconds).
    """

    def _make(
        relative: str,
        content: bytes | str = b"x",
        mtime: float | None = None,
    ) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        data = content.encode("utf-8") if isinstance(content, str) else content
        path.write_bytes(data)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _make


@pytest.fixture
def media_tree(tmp_path: Path, make_file) -> Path:
    """Small tree with two duplicate pairs, a unique file and an empty file.

    root/
      a/photo.jpg      "AAAA"  (dup of b/photo_copy.jpg)
      a/clip.mp4       "BBBBBBBB"  (dup of c/deep/clip.mp4)
      b/photo_copy.jpg "AAAA"
      b/notes.txt      "CCCC"  (same size as photos, other content)
      c/deep/clip.mp4  "BBBBBBBB"
      c/empty.bin      ""
    """
    make_file("root/a/photo.jpg", b"AAAA")
    make_file("root/a/clip.mp4", b"BBBBBBBB")
    make_file("root/b/photo_copy.jpg", b"AAAA")
    make_file("root/b/notes.txt", b"CCCC")
    make_file("root/c/deep/clip.mp4", b"BBBBBBBB")
    make_file("root/c/empty.bin", b"")
    return tmp_path / "root"


# === FIXTURES: Settings and caches ===


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from any .env file, caching under tmp_path."""
    return Settings(
        _env_file=None,
        cache_backend="memory",
        cache_root=tmp_path / "cache",
        scan_progress_interval_ms=0,
    )


@pytest.fixture
def memory_cache() -> MemoryFingerprintCache:
    return MemoryFingerprintCache()
