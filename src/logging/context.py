# src/logging/context.py — v1
"""Contextual logging support: attach scan_id and stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per scan invocation.
# asyncio tasks copy the context at creation, so workers inherit it.
_scan_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scan_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    scan_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(scan_id=_scan_id.get(), stage=_stage.get())


def set_scan_context(scan_id: str, stage: str | None = None) -> None:
    """Set scan-level context (called once per scan invocation)."""
    _scan_id.set(scan_id)
    _stage.set(stage)


def set_stage(stage: str | None) -> None:
    """Set the current stage (scanning, hashing)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _scan_id.set(None)
    _stage.set(None)
