# astromap/core/deadline.py
# -*- coding: utf-8 -*-
"""
Cooperative cancellation for long solver runs.

A Deadline is checked inside sampling loops (once per latitude sample / line).
When it fires, AnalysisCancelled propagates to the caller; solvers never
return a truncated catalog.
"""

from __future__ import annotations
from typing import Optional
import threading
import time

__all__ = ["AnalysisCancelled", "Deadline", "check_deadline"]


class AnalysisCancelled(RuntimeError):
    """Raised when a Deadline expires or is cancelled mid-computation."""
    def __init__(self, reason: str):
        super().__init__(f"analysis cancelled: {reason}")
        self.reason = reason


class Deadline:
    """Wall-clock budget plus a manual cancel switch; safe to share across threads."""

    def __init__(self, seconds: Optional[float] = None, *, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + float(seconds)
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self._cancelled.is_set() or (self._expires_at is not None and self._clock() >= self._expires_at)

    def check(self) -> None:
        if self._cancelled.is_set():
            raise AnalysisCancelled("cancelled")
        if self._expires_at is not None and self._clock() >= self._expires_at:
            raise AnalysisCancelled("deadline exceeded")


def check_deadline(deadline: Optional[Deadline]) -> None:
    if deadline is not None:
        deadline.check()
