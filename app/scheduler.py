"""Timer interface the scan controller runs on.

The controller never owns threads or timers directly; it asks a scheduler for
periodic and one-shot callbacks and stops them through the returned handle.
All callbacks are expected to run on one event loop (the Qt loop in the app).
"""

from __future__ import annotations

from typing import Callable, Protocol


class TimerHandle(Protocol):
    def stop(self) -> None:
        """Cancel the timer.  No callback may fire after this returns."""


class Scheduler(Protocol):
    def every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Invoke *callback* every *interval_ms*, first call after one interval."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Invoke *callback* once after *delay_ms*."""
