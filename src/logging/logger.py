# src/logging/logger.py — v1
"""Formatters and setup for the sweepscan logger tree.

Every module logs through logging.getLogger(__name__), which lands under
the "sweepscan" logger configured here. Records carry the current scan_id
and stage from logging.context.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sweepscan.logging.context import get_context

ROOT_LOGGER_NAME = "sweepscan"
_TEXT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        scan_context = get_context().as_dict()
        if scan_context:
            payload["context"] = scan_context

        # Structured extras passed as logger.info(..., extra={"data": {...}})
        extra = getattr(record, "data", None)
        if extra:
            payload["data"] = extra

        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Single-line terminal format: time [LEVEL] logger [scan] (stage) - msg."""

    def format(self, record: logging.LogRecord) -> str:
        scan_context = get_context()
        line = (
            f"{_record_time(record).strftime(_TEXT_TIME_FORMAT)} "
            f"[{record.levelname:8s}] {record.name}"
        )
        if scan_context.scan_id:
            line += f" [{scan_context.scan_id}]"
        if scan_context.stage:
            line += f" ({scan_context.stage})"
        line += f" - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> None:
    """Attach handlers to the sweepscan logger. Safe to call repeatedly.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional log file, rotated by size.
        rotation: Size that triggers rotation, e.g. "10MB".
        retention: Rotated files kept.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = (
        JsonFormatter() if log_format == "json" else TextFormatter()
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from sweepscan.logging.handlers import create_rotating_handler

        handlers.append(
            create_rotating_handler(log_file, rotation=rotation, retention=retention)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
