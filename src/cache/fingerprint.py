# src/cache/fingerprint.py — v1
"""Content fingerprints for duplicate detection.

Files up to 2 x chunk_size are hashed whole. Larger files are hashed over
their first and last chunk only: two large files that agree on both ends
but differ in the middle get the same fingerprint. That false-positive risk
is accepted to avoid reading whole media files.

SHA-1 is used for speed and stable hex output, not collision resistance.
"""

from __future__ import annotations

import hashlib
import os

DEFAULT_CHUNK_SIZE = 1024 * 1024
_READ_BLOCK = 64 * 1024


def covers_full_content(size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bool:
    """True when a file of this size is fingerprinted over its whole content."""
    return size <= 2 * chunk_size


def compute_fingerprint(path: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Compute the fingerprint of the file at path.

    Blocking; callers on an event loop should run it in a thread.

    Raises:
        OSError: File missing or unreadable.
        ValueError: File is empty.
    """
    digest = hashlib.sha1()  # noqa: S324
    with open(path, "rb") as fh:
        size = os.fstat(fh.fileno()).st_size
        if size == 0:
            raise ValueError(f"Cannot fingerprint empty file: {path}")

        if covers_full_content(size, chunk_size):
            for block in iter(lambda: fh.read(_READ_BLOCK), b""):
                digest.update(block)
        else:
            digest.update(fh.read(chunk_size))
            fh.seek(size - chunk_size)
            digest.update(fh.read(chunk_size))

    return digest.hexdigest()
