# src/cache/models.py — v1
"""Fingerprint cache model: one row per fingerprinted path."""

from __future__ import annotations

from pydantic import BaseModel, Field

from sweepscan.core.models import FileEntry


class FingerprintCacheEntry(BaseModel):
    """Cached fingerprint of one file, valid while size, mtime and chunk size match."""

    path: str
    size: int = Field(ge=0)
    modified_time: float
    partial_hash: str
    full_hash: str | None = None
    chunk_size: int = Field(ge=1)

    def matches(self, entry: FileEntry, chunk_size: int) -> bool:
        """True when this row can be reused for entry without recomputing."""
        return (
            self.path == entry.path
            and self.size == entry.size
            and self.modified_time == entry.modified_time
            and self.chunk_size == chunk_size
        )
