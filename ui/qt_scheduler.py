"""Scheduler backed by QTimer, so scan ticks run on the Qt event loop."""

from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer


class QtTimerHandle:
    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    def stop(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class QtScheduler:
    """Creates QTimers parented to *owner* so they die with the screen."""

    def __init__(self, owner: QObject) -> None:
        self._owner = owner

    def every(self, interval_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._owner)
        timer.setInterval(int(interval_ms))
        timer.timeout.connect(callback)
        timer.start()
        return QtTimerHandle(timer)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer(self._owner)
        timer.setSingleShot(True)
        timer.setInterval(int(delay_ms))
        timer.timeout.connect(callback)
        timer.start()
        return QtTimerHandle(timer)
