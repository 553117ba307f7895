# tests/unit/dedup/test_unit_finder.py — v1
"""Tests for dedup/finder.py — size bucketing, cached hashing, grouping."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from sweepscan.cache.fingerprint import compute_fingerprint
from sweepscan.cache.memory_store import MemoryFingerprintCache
from sweepscan.cache.models import FingerprintCacheEntry
from sweepscan.config.settings import Settings
from sweepscan.core.cancellation import CancelToken
from sweepscan.core.models import FileEntry, HashProgress
from sweepscan.dedup.finder import DuplicateFinder


def _entry_for(path: Path) -> FileEntry:
    st = os.stat(path)
    return FileEntry(path=str(path), size=st.st_size, modified_time=st.st_mtime)


class SpyHasher:
    """Counts calls while delegating to the real fingerprint function."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, path: str, chunk_size: int) -> str:
        self.calls.append(path)
        return compute_fingerprint(path, chunk_size)


@pytest.fixture
def finder(memory_cache):
    return DuplicateFinder(memory_cache, progress_interval_ms=0)


class TestSizeCandidates:
    def test_singletons_and_empty_dropped(self):
        entries = [
            FileEntry(path="/a", size=5, modified_time=0),
            FileEntry(path="/b", size=5, modified_time=0),
            FileEntry(path="/c", size=7, modified_time=0),
            FileEntry(path="/d", size=0, modified_time=0),
            FileEntry(path="/e", size=0, modified_time=0),
            FileEntry(path="/f", size=5, modified_time=0, is_directory=True),
        ]
        assert {e.path for e in DuplicateFinder.size_candidates(entries)} == {"/a", "/b"}

    def test_repeated_path_counted_once(self):
        a = FileEntry(path="/a", size=5, modified_time=0)
        assert DuplicateFinder.size_candidates([a, a]) == []

    def test_same_file_under_two_spellings_counted_once(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        absolute = FileEntry(path=str(tmp_path / "root" / "a.jpg"), size=5, modified_time=0)
        relative = FileEntry(path="root/./a.jpg", size=5, modified_time=0)
        assert DuplicateFinder.size_candidates([absolute, relative]) == []


class TestFindDuplicates:
    @pytest.mark.asyncio
    async def test_identical_pair_grouped(self, finder, make_file):
        payload = os.urandom(500_000)
        a = make_file("a.jpg", payload)
        b = make_file("b.jpg", payload)
        c = make_file("c.jpg", bytes(reversed(payload)))

        groups = await finder.find_duplicates([_entry_for(p) for p in (a, b, c)])

        assert len(groups) == 1
        assert {e.path for e in groups[0].files} == {str(a), str(b)}
        assert groups[0].total_size == 1_000_000
        assert groups[0].fingerprint == compute_fingerprint(str(a))

    @pytest.mark.asyncio
    async def test_no_duplicates(self, finder, make_file):
        a = make_file("a.txt", b"one")
        b = make_file("b.txt", b"two")
        assert await finder.find_duplicates([_entry_for(a), _entry_for(b)]) == []

    @pytest.mark.asyncio
    async def test_empty_input(self, finder):
        assert await finder.find_duplicates([]) == []

    @pytest.mark.asyncio
    async def test_unique_size_never_hashed(self, memory_cache, make_file):
        spy = SpyHasher()
        finder = DuplicateFinder(memory_cache, hasher=spy)
        a = make_file("a.txt", b"same")
        b = make_file("b.txt", b"same")
        lone = make_file("lone.txt", b"different length")
        await finder.find_duplicates([_entry_for(p) for p in (a, b, lone)])
        assert str(lone) not in spy.calls
        assert len(spy.calls) == 2

    @pytest.mark.asyncio
    async def test_same_fingerprint_different_size_not_grouped(self, memory_cache):
        entries = [
            FileEntry(path="/a", size=10, modified_time=0),
            FileEntry(path="/b", size=10, modified_time=0),
            FileEntry(path="/c", size=20, modified_time=0),
            FileEntry(path="/d", size=20, modified_time=0),
        ]
        finder = DuplicateFinder(memory_cache, hasher=lambda path, chunk: "same")
        groups = await finder.find_duplicates(entries)
        assert len(groups) == 2
        for group in groups:
            assert len({f.size for f in group.files}) == 1

    @pytest.mark.asyncio
    async def test_groups_sorted_by_total_size(self, finder, make_file):
        small = [make_file(f"s{i}.bin", b"s" * 10) for i in range(3)]
        big = [make_file(f"b{i}.bin", b"b" * 100) for i in range(2)]
        groups = await finder.find_duplicates([_entry_for(p) for p in small + big])
        assert [g.total_size for g in groups] == [200, 30]
        assert [f.path for f in groups[1].files] == sorted(str(p) for p in small)

    @pytest.mark.asyncio
    async def test_batches_smaller_than_candidates(self, memory_cache, make_file):
        paths = [make_file(f"d{i}.bin", b"dup") for i in range(7)]
        finder = DuplicateFinder(memory_cache, hash_batch_size=2)
        groups = await finder.find_duplicates([_entry_for(p) for p in paths])
        assert len(groups) == 1
        assert len(groups[0].files) == 7

    def test_invalid_sizes(self, memory_cache):
        with pytest.raises(ValueError):
            DuplicateFinder(memory_cache, chunk_size=0)
        with pytest.raises(ValueError):
            DuplicateFinder(memory_cache, hash_batch_size=0)

    def test_from_settings(self, memory_cache):
        settings = Settings(_env_file=None, hash_chunk_size=4096, hash_batch_size=8)
        finder = DuplicateFinder.from_settings(settings, memory_cache)
        assert finder._chunk_size == 4096
        assert finder._hash_batch_size == 8


class TestFingerprintCacheUse:
    @pytest.mark.asyncio
    async def test_second_run_uses_cache(self, memory_cache, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        entries = [_entry_for(a), _entry_for(b)]

        spy = SpyHasher()
        finder = DuplicateFinder(memory_cache, hasher=spy)
        first = await finder.find_duplicates(entries)
        assert len(spy.calls) == 2
        assert finder.last_stats.computed == 2

        second = await finder.find_duplicates(entries)
        assert len(spy.calls) == 2
        assert finder.last_stats.computed == 0
        assert finder.last_stats.cache_hits == 2
        assert second == first

    @pytest.mark.asyncio
    async def test_rows_written(self, memory_cache, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        await DuplicateFinder(memory_cache, chunk_size=4096).find_duplicates(
            [_entry_for(a), _entry_for(b)]
        )
        row = await memory_cache.get(str(a))
        assert row.size == 7
        assert row.chunk_size == 4096
        assert row.full_hash == row.partial_hash

    @pytest.mark.asyncio
    async def test_large_file_row_has_no_full_hash(self, memory_cache, make_file):
        a = make_file("a.bin", b"0123456789")
        b = make_file("b.bin", b"0123456789")
        await DuplicateFinder(memory_cache, chunk_size=2).find_duplicates(
            [_entry_for(a), _entry_for(b)]
        )
        assert (await memory_cache.get(str(a))).full_hash is None

    @pytest.mark.asyncio
    async def test_stale_row_recomputed(self, memory_cache, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        entry_a = _entry_for(a)
        await memory_cache.put(FingerprintCacheEntry(
            path=str(a),
            size=entry_a.size,
            modified_time=entry_a.modified_time - 100,
            partial_hash="stale",
            chunk_size=1024 * 1024,
        ))

        spy = SpyHasher()
        finder = DuplicateFinder(memory_cache, hasher=spy)
        groups = await finder.find_duplicates([entry_a, _entry_for(b)])

        assert str(a) in spy.calls
        assert len(groups) == 1
        assert (await memory_cache.get(str(a))).partial_hash != "stale"

    @pytest.mark.asyncio
    async def test_chunk_size_change_invalidates(self, memory_cache, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        entries = [_entry_for(a), _entry_for(b)]
        await DuplicateFinder(memory_cache, chunk_size=1024).find_duplicates(entries)

        spy = SpyHasher()
        await DuplicateFinder(memory_cache, chunk_size=2048, hasher=spy).find_duplicates(entries)
        assert len(spy.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_failures_fall_back_to_hashing(self, make_file, caplog):
        class BrokenCache(MemoryFingerprintCache):
            async def get(self, path):
                raise RuntimeError("db locked")

            async def put(self, entry):
                raise RuntimeError("db locked")

        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        with caplog.at_level(logging.WARNING, logger="sweepscan"):
            groups = await DuplicateFinder(BrokenCache()).find_duplicates(
                [_entry_for(a), _entry_for(b)]
            )
        assert len(groups) == 1
        assert "Cache lookup failed" in caplog.text
        assert "Cache write failed" in caplog.text


class TestFailures:
    @pytest.mark.asyncio
    async def test_vanished_file_skipped(self, finder, make_file, caplog):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        c = make_file("c.bin", b"payload")
        entries = [_entry_for(p) for p in (a, b, c)]
        c.unlink()

        with caplog.at_level(logging.WARNING, logger="sweepscan"):
            groups = await finder.find_duplicates(entries)
        assert {e.path for e in groups[0].files} == {str(a), str(b)}
        assert finder.last_stats.skipped == 1
        assert "Cannot fingerprint" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_reported_once(self, memory_cache, caplog):
        def failing(path, chunk):
            raise PermissionError(13, "denied", path)

        finder = DuplicateFinder(memory_cache, hasher=failing)
        entries = [
            FileEntry(path="/a", size=5, modified_time=0),
            FileEntry(path="/b", size=5, modified_time=0),
        ]
        with caplog.at_level(logging.WARNING, logger="sweepscan"):
            assert await finder.find_duplicates(entries) == []
            assert await finder.find_duplicates(entries) == []
        assert caplog.text.count("Cannot fingerprint /a") == 1

    @pytest.mark.asyncio
    async def test_only_one_survivor_means_no_group(self, finder, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        entries = [_entry_for(a), _entry_for(b)]
        b.unlink()
        assert await finder.find_duplicates(entries) == []


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, finder, make_file):
        a = make_file("a.bin", b"payload")
        b = make_file("b.bin", b"payload")
        token = CancelToken()
        token.cancel()
        assert await finder.find_duplicates(
            [_entry_for(a), _entry_for(b)], cancel_token=token
        ) == []

    @pytest.mark.asyncio
    async def test_cancel_mid_run_returns_nothing(self, memory_cache, make_file):
        paths = [make_file(f"d{i}.bin", b"dup") for i in range(10)]
        token = CancelToken()

        def cancel_then_hash(path, chunk):
            token.cancel()
            return compute_fingerprint(path, chunk)

        finder = DuplicateFinder(memory_cache, hash_batch_size=2, hasher=cancel_then_hash)
        groups = await finder.find_duplicates(
            [_entry_for(p) for p in paths], cancel_token=token
        )
        assert groups == []
        assert finder.last_stats.computed < 10


class TestProgress:
    @pytest.mark.asyncio
    async def test_hash_progress_sequence(self, finder, make_file):
        paths = [make_file(f"d{i}.bin", b"dup") for i in range(4)]
        received: list[HashProgress] = []
        await finder.find_duplicates(
            [_entry_for(p) for p in paths], on_progress=received.append
        )
        assert all(isinstance(p, HashProgress) for p in received)
        assert received[0].candidates_hashed == 0
        assert received[0].candidates_total == 4
        assert received[-1].stage == "complete"
        assert received[-1].candidates_hashed == 4
        hashed = [p.candidates_hashed for p in received]
        assert hashed == sorted(hashed)
