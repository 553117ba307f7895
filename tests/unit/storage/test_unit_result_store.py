# tests/unit/storage/test_unit_result_store.py — v1
"""Tests for storage/result_store.py — latest duplicate snapshot."""

from __future__ import annotations

import pytest

from sweepscan.core.models import DuplicateGroup, FileEntry
from sweepscan.storage.result_store import ScanResultStore


def _group(fingerprint: str, size: int, *paths: str) -> DuplicateGroup:
    return DuplicateGroup(
        fingerprint=fingerprint,
        files=[FileEntry(path=p, size=size, modified_time=1.0) for p in paths],
    )


@pytest.fixture
def store(tmp_path):
    s = ScanResultStore(tmp_path / "results.db")
    yield s
    s.close()


class TestScanResultStore:
    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.load_duplicate_groups() == []
        assert await store.saved_at() is None

    @pytest.mark.asyncio
    async def test_save_and_load(self, store):
        groups = [_group("f1", 10, "/a", "/b"), _group("f2", 3, "/c", "/d", "/e")]
        await store.save_duplicate_groups(groups)
        assert await store.load_duplicate_groups() == groups
        assert await store.saved_at() is not None

    @pytest.mark.asyncio
    async def test_save_replaces_previous(self, store):
        await store.save_duplicate_groups([_group("f1", 10, "/a", "/b")])
        newer = [_group("f9", 4, "/x", "/y")]
        await store.save_duplicate_groups(newer)
        assert await store.load_duplicate_groups() == newer

    @pytest.mark.asyncio
    async def test_save_empty_list(self, store):
        await store.save_duplicate_groups([_group("f1", 10, "/a", "/b")])
        await store.save_duplicate_groups([])
        assert await store.load_duplicate_groups() == []

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.save_duplicate_groups([_group("f1", 10, "/a", "/b")])
        await store.clear_duplicate_groups()
        assert await store.load_duplicate_groups() == []

    @pytest.mark.asyncio
    async def test_corrupt_snapshot(self, store, caplog):
        store._conn.execute(
            "INSERT INTO duplicate_groups (saved_at, groups_data) VALUES (?, ?)",
            (1.0, "not json"),
        )
        store._conn.commit()
        assert await store.load_duplicate_groups() == []
        assert "Failed to parse" in caplog.text

    @pytest.mark.asyncio
    async def test_survives_reopen(self, tmp_path):
        groups = [_group("f1", 10, "/a", "/b")]
        first = ScanResultStore(tmp_path / "r.db")
        await first.save_duplicate_groups(groups)
        first.close()
        second = ScanResultStore(tmp_path / "r.db")
        try:
            assert await second.load_duplicate_groups() == groups
        finally:
            second.close()
