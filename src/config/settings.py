# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: traversal limits,
fingerprint strategy, cache backend and logging.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sweepscan.core.models import DEFAULT_SKIP_PATTERNS


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Traversal ===
    scan_root_paths: str = ""
    scan_max_concurrent_directories: int = 15
    scan_directory_batch_size: int = 150
    scan_progress_interval_ms: int = 200
    scan_use_default_skip_patterns: bool = True
    scan_extra_skip_patterns: str = ""

    # === Fingerprinting ===
    hash_chunk_size: int = 1024 * 1024
    hash_batch_size: int = 50

    # === Cache ===
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "sqlite"
    cache_root: Path = Path("~/.sweepscan/cache")
    cache_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "scan_max_concurrent_directories",
        "scan_directory_batch_size",
        "hash_chunk_size",
        "hash_batch_size",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("scan_progress_interval_ms")
    @classmethod
    def validate_interval(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("scan_progress_interval_ms must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Cross-field consistency rules."""
        errors: list[str] = []

        if self.hash_batch_size > self.scan_directory_batch_size:
            errors.append(
                "HASH_BATCH_SIZE must not exceed SCAN_DIRECTORY_BATCH_SIZE"
            )

        for pattern in self.skip_patterns_list:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                errors.append(f"Invalid skip pattern {pattern!r}: {e}")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def root_paths_list(self) -> list[str]:
        """Parse comma-separated default root paths."""
        return [p.strip() for p in self.scan_root_paths.split(",") if p.strip()]

    @property
    def skip_patterns_list(self) -> list[str]:
        """Default skip patterns (if enabled) followed by the extra ones."""
        patterns = list(DEFAULT_SKIP_PATTERNS) if self.scan_use_default_skip_patterns else []
        patterns.extend(
            p.strip() for p in self.scan_extra_skip_patterns.split(",") if p.strip()
        )
        return patterns


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
