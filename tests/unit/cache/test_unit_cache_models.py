# tests/unit/cache/test_unit_cache_models.py — v1
"""Tests for cache/models.py — FingerprintCacheEntry validity."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sweepscan.cache.models import FingerprintCacheEntry
from sweepscan.core.models import FileEntry


def _row(**overrides) -> FingerprintCacheEntry:
    data = {
        "path": "/r/a.jpg",
        "size": 100,
        "modified_time": 1_700_000_000.5,
        "partial_hash": "abc",
        "chunk_size": 1024,
    }
    data.update(overrides)
    return FingerprintCacheEntry(**data)


def _entry(**overrides) -> FileEntry:
    data = {"path": "/r/a.jpg", "size": 100, "modified_time": 1_700_000_000.5}
    data.update(overrides)
    return FileEntry(**data)


class TestFingerprintCacheEntry:
    def test_defaults(self):
        assert _row().full_hash is None

    def test_chunk_size_required_positive(self):
        with pytest.raises(ValidationError):
            _row(chunk_size=0)

    def test_matches(self):
        assert _row().matches(_entry(), 1024)

    @pytest.mark.parametrize(
        "entry_overrides",
        [{"size": 101}, {"modified_time": 1_700_000_001.0}, {"path": "/r/b.jpg"}],
    )
    def test_stale_when_file_changed(self, entry_overrides):
        assert not _row().matches(_entry(**entry_overrides), 1024)

    def test_stale_when_chunk_size_changed(self):
        assert not _row().matches(_entry(), 2048)
