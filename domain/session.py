"""Scan session state and the tick handlers that mutate it.

Each handler receives the session explicitly; none of them keep state of
their own, so a session can be driven by any scheduler (Qt timers in the app,
a manual clock in tests).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from domain.errors import InternalFault
from domain.models import FrameQualityAnalysis, QualityMessage, ScanState
from domain.state_machine import ScanStateMachine

MAX_PROGRESS = 100.0


@dataclass
class ScanSession:
    machine: ScanStateMachine = field(default_factory=ScanStateMachine)
    progress_percent: float = 0.0
    paused: bool = False
    current_tip_index: int = 0
    elapsed_scan_s: float = 0.0
    latest_analysis: Optional[FrameQualityAnalysis] = None
    previous_frame: Optional[np.ndarray] = None
    completion_fired: bool = False

    @property
    def state(self) -> ScanState:
        return self.machine.state

    @property
    def current_message(self) -> QualityMessage:
        if self.latest_analysis is None:
            return QualityMessage.INITIALIZING
        return self.latest_analysis.message


def progress_increment(scan_duration_ms: float, tick_ms: float) -> float:
    """Percent added by one unpaused progress tick."""
    if scan_duration_ms <= 0 or tick_ms <= 0:
        raise ValueError("scan duration and tick interval must be positive")
    return MAX_PROGRESS / (scan_duration_ms / tick_ms)


def apply_sample(
    session: ScanSession,
    analysis: FrameQualityAnalysis,
    frame: Optional[np.ndarray],
) -> bool:
    """Record a quality sample.  Returns True when the paused flag flipped."""
    session.latest_analysis = analysis
    if frame is not None:
        session.previous_frame = frame

    if session.state != ScanState.SCANNING:
        return False
    paused = analysis.blocks_progress
    changed = paused != session.paused
    session.paused = paused
    return changed


def apply_progress_tick(session: ScanSession, increment: float, tick_s: float) -> bool:
    """Advance progress unless paused.  Returns True when 100 % is reached."""
    if session.state != ScanState.SCANNING:
        raise InternalFault(f"Progress tick in state {session.state.value}")
    if session.progress_percent >= MAX_PROGRESS:
        raise InternalFault("Progress tick after progress reached 100%")

    if session.paused:
        return False

    session.progress_percent = min(MAX_PROGRESS, session.progress_percent + increment)
    session.elapsed_scan_s += tick_s
    return session.progress_percent >= MAX_PROGRESS


def apply_tip_tick(session: ScanSession, tip_count: int) -> bool:
    """Rotate to the next tip while actively scanning.  Returns True if rotated."""
    if tip_count <= 0:
        return False
    if session.state != ScanState.SCANNING or session.paused:
        return False
    session.current_tip_index = (session.current_tip_index + 1) % tip_count
    return True


def new_session(clock: Optional[Callable[[], float]] = None) -> ScanSession:
    machine = ScanStateMachine(clock) if clock is not None else ScanStateMachine()
    return ScanSession(machine=machine)
