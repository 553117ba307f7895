# src/logging/handlers.py — v1
"""Size-rotated log file handler built from LOG_ROTATION / LOG_RETENTION."""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(\d+)\s*([KMG]B)$", re.IGNORECASE)
_UNIT_BYTES = {"KB": 1 << 10, "MB": 1 << 20, "GB": 1 << 30}


def parse_size(size_str: str) -> int:
    """Convert '512KB', '10MB' or '1GB' (any case) to bytes."""
    found = _SIZE_PATTERN.match(size_str.strip())
    if found is None:
        raise ValueError(f"Invalid size format: {size_str!r}, expected e.g. '10MB'")
    amount, unit = found.groups()
    return int(amount) * _UNIT_BYTES[unit.upper()]


def create_rotating_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Open log_file for appending, rolling over past `rotation` bytes.

    Parent directories are created. `retention` rotated files are kept.
    """
    target = Path(log_file).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        target,
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
