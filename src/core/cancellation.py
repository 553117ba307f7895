# src/core/cancellation.py — v1
"""Cooperative cancellation flag shared between a caller and a running scan."""

from __future__ import annotations

import threading


class CancelToken:
    """Boolean flag, settable from any thread, polled by the scan.

    Setting the flag never interrupts work; the traversal engine and the
    duplicate pipeline check it at their own granularity.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


def is_cancelled(token: CancelToken | None) -> bool:
    """True when a token is given and has been set."""
    return token is not None and token.cancelled
