# src/core/progress.py — v1
"""Throttled delivery of progress snapshots to a caller-supplied sink."""

from __future__ import annotations

import logging
import time
from typing import Callable

from sweepscan.core.models import ProgressCallback, ProgressSnapshot

logger = logging.getLogger(__name__)


class ProgressThrottle:
    """Forward at most one snapshot per interval; forced snapshots always pass.

    Progress is advisory: dropped snapshots are not queued. A sink that
    raises is logged and the scan carries on.
    """

    def __init__(
        self,
        callback: ProgressCallback | None,
        interval_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._callback = callback
        self._interval = interval_ms / 1000.0
        self._clock = clock
        self._last_emit: float | None = None
        self.emitted = 0

    def emit(self, snapshot: ProgressSnapshot, force: bool = False) -> bool:
        """Deliver snapshot if the interval has elapsed. Returns True if delivered."""
        if self._callback is None:
            return False
        now = self._clock()
        if (
            not force
            and self._last_emit is not None
            and now - self._last_emit < self._interval
        ):
            return False
        self._last_emit = now
        try:
            self._callback(snapshot)
        except Exception:
            logger.warning("Progress callback raised; ignoring", exc_info=True)
        self.emitted += 1
        return True
