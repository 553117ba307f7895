# src/scanner/filters.py — v1
"""Entry predicates for TraversalEngine and the extension sets used by callers.

Every factory returns a pure function of a FileEntry, safe to call from
concurrent traversal workers.
"""

from __future__ import annotations

import time

from sweepscan.core.models import EntryPredicate, FileEntry

SECONDS_PER_DAY = 24 * 60 * 60

VIDEO_EXTENSIONS: frozenset[str] = frozenset({
    ".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".3gp", ".m4v",
    ".mpg", ".mpeg", ".ts", ".m2ts", ".vob", ".asf", ".rm", ".rmvb", ".divx",
    ".f4v",
})

IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico", ".tiff",
    ".tif", ".heic", ".heif", ".raw", ".cr2", ".nef", ".orf", ".sr2", ".arw",
    ".dng", ".psd", ".tga",
})

AUDIO_EXTENSIONS: frozenset[str] = frozenset({
    ".mp3", ".wav", ".flac", ".aac", ".m4a", ".ogg", ".wma", ".opus", ".amr",
    ".aiff", ".alac", ".ape", ".oga", ".wv",
})

DOCUMENT_EXTENSIONS: frozenset[str] = frozenset({
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt", ".rtf",
    ".odt", ".ods", ".odp", ".csv", ".epub", ".mobi", ".djvu", ".md", ".json",
    ".xml", ".html", ".htm", ".log",
})


EXTENSION_CATEGORIES: dict[str, frozenset[str]] = {
    "video": VIDEO_EXTENSIONS,
    "image": IMAGE_EXTENSIONS,
    "audio": AUDIO_EXTENSIONS,
    "document": DOCUMENT_EXTENSIONS,
}

def extension_filter(extensions: list[str] | set[str] | frozenset[str]) -> EntryPredicate:
    """Accept files whose name ends with one of the extensions (case-insensitive)."""
    suffixes = tuple(
        (ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions
    )

    def predicate(entry: FileEntry) -> bool:
        return not entry.is_directory and entry.name.lower().endswith(suffixes)

    return predicate


def min_size_filter(min_size: int) -> EntryPredicate:
    """Accept files of at least min_size bytes."""

    def predicate(entry: FileEntry) -> bool:
        return not entry.is_directory and entry.size >= min_size

    return predicate


def non_empty_filter() -> EntryPredicate:
    """Reject zero-byte files; duplicate detection never considers them."""
    return min_size_filter(1)


def older_than_filter(days: float, now: float | None = None) -> EntryPredicate:
    """Accept files not modified for at least `days` days.

    `now` is captured once at construction so the predicate stays pure.
    """
    reference = time.time() if now is None else now
    max_age = days * SECONDS_PER_DAY

    def predicate(entry: FileEntry) -> bool:
        return not entry.is_directory and reference - entry.modified_time >= max_age

    return predicate


def all_of(*predicates: EntryPredicate | None) -> EntryPredicate:
    """Combine predicates with logical AND; None entries are ignored."""
    active = [p for p in predicates if p is not None]

    def predicate(entry: FileEntry) -> bool:
        return all(p(entry) for p in active)

    return predicate
