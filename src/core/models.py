# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Case-insensitive regexes matched against full paths with "/" separators.
DEFAULT_SKIP_PATTERNS: list[str] = [
    r"/\.thumbnails(/|$)",
    r"/\.cache(/|$)",
    r"/\.trash(/|$)",
    r"/proc(/|$)",
    r"/system(/|$)",
    r"/dev(/|$)",
    r"/Android/data(/|$)",
    r"/Android/obb(/|$)",
]

DEFAULT_MAX_CONCURRENT_DIRECTORIES = 15
DEFAULT_DIRECTORY_BATCH_SIZE = 150
DEFAULT_PROGRESS_INTERVAL_MS = 200


# === FILESYSTEM ENTRIES ===


class FileEntry(BaseModel):
    """One filesystem object observed during a directory listing."""

    model_config = ConfigDict(frozen=True)

    path: str
    size: int = Field(ge=0)
    modified_time: float
    is_directory: bool = False

    @property
    def name(self) -> str:
        """Final path component."""
        return self.path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


EntryPredicate = Callable[[FileEntry], bool]


class ScanConfiguration(BaseModel):
    """Per-invocation traversal configuration, read-only during a scan."""

    model_config = ConfigDict(frozen=True)

    root_paths: list[str] = Field(default_factory=list)
    accept_entry: EntryPredicate | None = None
    skip_path_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_PATTERNS)
    )
    max_concurrent_directories: int = Field(
        default=DEFAULT_MAX_CONCURRENT_DIRECTORIES, ge=1
    )
    directory_batch_size: int = Field(default=DEFAULT_DIRECTORY_BATCH_SIZE, ge=1)
    progress_interval_ms: int = Field(default=DEFAULT_PROGRESS_INTERVAL_MS, ge=0)

    @classmethod
    def from_settings(
        cls,
        settings: object,
        root_paths: list[str],
        accept_entry: EntryPredicate | None = None,
    ) -> ScanConfiguration:
        """Build a configuration from application Settings."""
        return cls(
            root_paths=list(root_paths),
            accept_entry=accept_entry,
            skip_path_patterns=settings.skip_patterns_list,  # type: ignore[attr-defined]
            max_concurrent_directories=settings.scan_max_concurrent_directories,  # type: ignore[attr-defined]
            directory_batch_size=settings.scan_directory_batch_size,  # type: ignore[attr-defined]
            progress_interval_ms=settings.scan_progress_interval_ms,  # type: ignore[attr-defined]
        )


# === PROGRESS SNAPSHOTS ===


class ScanProgress(BaseModel):
    """Traversal progress. directories_pending is a live estimate only."""

    model_config = ConfigDict(frozen=True)

    directories_processed: int = 0
    directories_pending: int = 0
    files_matched: int = 0
    last_visited: str = ""
    stage: Literal["scanning", "complete"] = "scanning"


class HashProgress(BaseModel):
    """Fingerprinting progress of the duplicate pipeline."""

    model_config = ConfigDict(frozen=True)

    candidates_total: int = 0
    candidates_hashed: int = 0
    last_hashed: str = ""
    stage: Literal["hashing", "complete"] = "hashing"


ProgressSnapshot = ScanProgress | HashProgress
ProgressCallback = Callable[[ProgressSnapshot], None]


# === DUPLICATES ===


class DuplicateGroup(BaseModel):
    """Two or more same-size files sharing one content fingerprint."""

    fingerprint: str
    files: list[FileEntry]
    total_size: int = 0

    @field_validator("files")
    @classmethod
    def validate_files(cls, v: list[FileEntry]) -> list[FileEntry]:
        if len(v) < 2:
            raise ValueError("a duplicate group needs at least 2 files")
        if len({f.size for f in v}) != 1:
            raise ValueError("all files of a duplicate group must share one size")
        return v

    @model_validator(mode="after")
    def fill_total_size(self) -> DuplicateGroup:
        expected = sum(f.size for f in self.files)
        if self.total_size == 0:
            self.total_size = expected
        elif self.total_size != expected:
            raise ValueError("total_size must equal the sum of member sizes")
        return self

    @property
    def size(self) -> int:
        """Size of each member file."""
        return self.files[0].size

    @property
    def reclaimable_size(self) -> int:
        """Bytes freed by keeping a single copy."""
        return self.total_size - self.size


class DuplicateScanStats(BaseModel):
    """Counters of one duplicate search, for logs and the CLI summary."""

    files_considered: int = 0
    candidates: int = 0
    cache_hits: int = 0
    computed: int = 0
    skipped: int = 0
    groups: int = 0


def sort_by_size_desc(entries: list[FileEntry]) -> list[FileEntry]:
    """Return entries ordered largest first, ties broken by path."""
    return sorted(entries, key=lambda e: (-e.size, e.path))
