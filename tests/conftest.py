"""Shared test doubles: a manual scheduler, a scriptable capture source and
a scripted random source."""

from __future__ import annotations

import os
from typing import Callable, Optional

import numpy as np
import pytest

from app.config import Config
from domain.errors import CaptureUnavailable
from domain.models import Gender, Posture, UserDetails


class ManualTimer:
    def __init__(self, seq: int, due: int, interval: int, callback: Callable[[], None], repeat: bool) -> None:
        self.seq = seq
        self.due = due
        self.interval = interval
        self.callback = callback
        self.repeat = repeat
        self.active = True

    def stop(self) -> None:
        self.active = False


class ManualScheduler:
    """Fires timers only when the test advances the virtual clock."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._timers: list[ManualTimer] = []

    def every(self, interval_ms: int, callback: Callable[[], None]) -> ManualTimer:
        return self._add(interval_ms, callback, repeat=True)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTimer:
        return self._add(delay_ms, callback, repeat=False)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self._timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now_ms = timer.due
            if timer.repeat:
                timer.due += timer.interval
            else:
                timer.active = False
            timer.callback()
        self.now_ms = target

    @property
    def active_timers(self) -> list[ManualTimer]:
        return [t for t in self._timers if t.active]

    def _add(self, interval: int, callback: Callable[[], None], repeat: bool) -> ManualTimer:
        timer = ManualTimer(len(self._timers), self.now_ms + int(interval), int(interval), callback, repeat)
        self._timers.append(timer)
        return timer


class FakeCapture:
    """Returns whatever frame the test sets; counts acquire/release calls."""

    def __init__(self, fail: bool = False, brightness: int = 150) -> None:
        self.fail = fail
        self.acquired = False
        self.acquire_calls = 0
        self.release_calls = 0
        self.frame: Optional[np.ndarray] = np.full((48, 64, 3), brightness, dtype=np.uint8)

    def acquire(self) -> None:
        self.acquire_calls += 1
        if self.fail:
            raise CaptureUnavailable("Camera access denied.")
        self.acquired = True

    def latest_frame(self) -> Optional[np.ndarray]:
        assert self.acquired, "frame requested from a released capture source"
        return None if self.frame is None else self.frame.copy()

    def release(self) -> None:
        self.release_calls += 1
        self.acquired = False

    def set_brightness(self, value: int) -> None:
        self.frame = np.full((48, 64, 3), value, dtype=np.uint8)


class ScriptedRng:
    """Deterministic stand-in for ``numpy.random.Generator``.

    ``random()`` cycles through *randoms*; ``integers()`` through *ints*.
    """

    def __init__(self, randoms: tuple[float, ...] = (0.0,), ints: tuple[int, ...] = (0,)) -> None:
        self._randoms = list(randoms)
        self._ints = list(ints)
        self._ri = 0
        self._ii = 0

    def random(self) -> float:
        value = self._randoms[self._ri % len(self._randoms)]
        self._ri += 1
        return value

    def integers(self, low: int, high: int) -> int:
        value = self._ints[self._ii % len(self._ints)]
        self._ii += 1
        assert low <= value < high
        return value


@pytest.fixture(scope="session")
def qapp():
    """One QApplication for the widget tests, rendered offscreen."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])


@pytest.fixture
def user() -> UserDetails:
    return UserDetails(
        name="Alex",
        age=30,
        gender=Gender.MALE,
        height_cm=170.0,
        weight_kg=70.0,
        posture=Posture.SITTING,
    )


@pytest.fixture
def fast_config() -> Config:
    # 1 s scan: ten 10 % progress ticks
    return Config(
        scan_duration_ms=1000,
        progress_tick_ms=100,
        sample_interval_ms=500,
        tip_interval_ms=300,
        completion_delay_ms=500,
    )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def capture() -> FakeCapture:
    return FakeCapture()
