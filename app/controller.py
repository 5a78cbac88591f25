"""Scan session controller – drives one scan from camera start to results."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import numpy as np

from app.config import Config
from app.scheduler import Scheduler, TimerHandle
from domain.errors import CaptureUnavailable, InternalFault, PreconditionFailed
from domain.metrics import estimate_metrics
from domain.models import (
    ScanEvent,
    ScanEventKind,
    ScanState,
    StateTransition,
    UserDetails,
    WellnessMetrics,
)
from domain.session import (
    ScanSession,
    apply_progress_tick,
    apply_sample,
    apply_tip_tick,
    new_session,
)
from domain.tips import AWARENESS_TIPS
from vision.camera import CaptureSource
from vision.quality import analyze_frame

logger = logging.getLogger(__name__)

Listener = Callable[[ScanEvent], None]


class ScanSessionController:
    """Owns the capture source, the session state and the three scan timers.

    Timers (all on the injected scheduler):

    * sampling – analyses the latest frame and updates the paused flag,
    * progress – adds a fixed increment unless paused,
    * tips     – rotates the awareness tip while actively scanning.

    Every state change and tick result is published as a :class:`ScanEvent`
    to the registered listeners.
    """

    def __init__(
        self,
        user: UserDetails,
        config: Config,
        capture: CaptureSource,
        scheduler: Scheduler,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
        tips: tuple[str, ...] = AWARENESS_TIPS,
    ) -> None:
        self.user = user
        self.config = config
        self.capture = capture
        self._scheduler = scheduler
        self._rng = rng if rng is not None else np.random.default_rng(config.random_seed)
        self._clock = clock
        self._tips = tips
        self._thresholds = config.quality_thresholds()
        self._increment = config.progress_increment

        self.session: ScanSession = self._new_session()
        self.metrics: Optional[WellnessMetrics] = None
        self.error_cause: Optional[str] = None

        self._listeners: list[Listener] = []
        self._sample_timer: Optional[TimerHandle] = None
        self._progress_timer: Optional[TimerHandle] = None
        self._tip_timer: Optional[TimerHandle] = None
        self._completion_timer: Optional[TimerHandle] = None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Create the session: IDLE → INITIALIZING, then acquire the camera."""
        if self.state != ScanState.IDLE:
            raise PreconditionFailed(f"Cannot start a session in state {self.state.value}.")
        self._transition(ScanState.INITIALIZING, "session created")
        self._acquire_capture()

    def start_scan(self) -> None:
        if self.state != ScanState.READY:
            raise PreconditionFailed(f"Cannot begin scanning in state {self.state.value}.")
        analysis = self.session.latest_analysis
        if analysis is None or not analysis.is_usable:
            raise PreconditionFailed(
                "Please position your face in the frame before starting the scan."
            )

        s = self.session
        s.progress_percent = 0.0
        s.paused = False
        s.current_tip_index = 0
        s.elapsed_scan_s = 0.0
        self._transition(ScanState.SCANNING, "scan started")

        self._progress_timer = self._scheduler.every(self.config.progress_tick_ms, self._on_progress_tick)
        self._tip_timer = self._scheduler.every(self.config.tip_interval_ms, self._on_tip_tick)
        self._emit(ScanEventKind.TIP)
        logger.info(
            "Scan running: %.0f ms at %.3f%% per %d ms tick.",
            self.config.scan_duration_ms,
            self._increment,
            self.config.progress_tick_ms,
        )

    def cancel(self) -> None:
        if self.state.is_terminal:
            logger.info("Cancel ignored: session already %s.", self.state.value)
            return
        self._halt()
        self._transition(ScanState.CANCELLED, "cancelled by user")
        self._emit(ScanEventKind.CANCELLED)

    def retry_capture(self) -> None:
        """Discard the failed session and start over with a fresh one."""
        if self.state != ScanState.ERROR:
            raise PreconditionFailed(f"Retry is only possible after an error, not in {self.state.value}.")
        logger.info("Retrying capture after error: %s", self.error_cause)
        self._halt()
        self.session = self._new_session()
        self.metrics = None
        self.error_cause = None
        self.start()

    def shutdown(self) -> None:
        """Stop every timer and free the camera, e.g. when the window closes."""
        if not self.state.is_terminal:
            self.cancel()
        self._halt()
        if self._completion_timer:
            self._completion_timer.stop()
            self._completion_timer = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ScanState:
        return self.session.state

    @property
    def progress(self) -> float:
        return self.session.progress_percent

    @property
    def paused(self) -> bool:
        return self.session.paused

    @property
    def tips(self) -> tuple[str, ...]:
        return self._tips

    @property
    def current_tip(self) -> str:
        if not self._tips:
            return ""
        return self._tips[self.session.current_tip_index % len(self._tips)]

    def preview_frame(self) -> Optional[np.ndarray]:
        if self.state not in (ScanState.INITIALIZING, ScanState.READY, ScanState.SCANNING):
            return None
        return self.capture.latest_frame()

    # ------------------------------------------------------------------
    # Tick handlers
    # ------------------------------------------------------------------

    def _on_sample_tick(self) -> None:
        self._guarded(self._sample)

    def _on_progress_tick(self) -> None:
        self._guarded(self._advance_progress)

    def _on_tip_tick(self) -> None:
        self._guarded(self._rotate_tip)

    def _sample(self) -> None:
        state = self.state
        if state not in (ScanState.INITIALIZING, ScanState.READY, ScanState.SCANNING):
            raise InternalFault(f"Sampling tick in state {state.value}")

        try:
            frame = self.capture.latest_frame()
        except CaptureUnavailable as exc:
            logger.error("Capture lost: %s", exc)
            self._fail(str(exc))
            return

        s = self.session
        analysis = analyze_frame(
            frame,
            s.previous_frame,
            self._rng,
            self._thresholds,
            scanning=state == ScanState.SCANNING,
        )
        flipped = apply_sample(s, analysis, frame)
        logger.debug(
            "Sample: brightness=%.1f motion=%.1f quality=%s msg=%s",
            analysis.brightness,
            analysis.motion_level,
            analysis.image_quality.value,
            analysis.message.value,
        )
        self._emit(ScanEventKind.QUALITY, analysis=analysis)

        if state == ScanState.INITIALIZING and analysis.is_usable:
            self._transition(ScanState.READY, "usable face sample")
            self._emit(ScanEventKind.READY, analysis=analysis)
        elif state == ScanState.SCANNING and flipped:
            logger.info("Scan %s (%s).", "paused" if s.paused else "resumed", analysis.message.value)
            self._emit(ScanEventKind.PROGRESS)

    def _advance_progress(self) -> None:
        reached = apply_progress_tick(
            self.session, self._increment, self.config.progress_tick_ms / 1000.0
        )
        self._emit(ScanEventKind.PROGRESS)
        if reached:
            self._complete()

    def _rotate_tip(self) -> None:
        if self.state != ScanState.SCANNING:
            raise InternalFault(f"Tip tick in state {self.state.value}")
        if apply_tip_tick(self.session, len(self._tips)):
            self._emit(ScanEventKind.TIP)

    def _guarded(self, handler: Callable[[], None]) -> None:
        try:
            handler()
        except InternalFault as exc:
            logger.error("Internal fault: %s", exc)
            self._fail(f"Internal error: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error in scan tick.")
            self._fail(f"Internal error: {exc}")

    # ------------------------------------------------------------------
    # Completion / failure
    # ------------------------------------------------------------------

    def _complete(self) -> None:
        self._halt()
        self._transition(ScanState.COMPLETED, "progress reached 100%")
        self.metrics = estimate_metrics(self.user, self._rng, self.config.metric_variance)
        logger.info(
            "Scan completed in %.1f s of active scanning.", self.session.elapsed_scan_s
        )
        self._completion_timer = self._scheduler.call_later(
            self.config.completion_delay_ms, self._fire_completed
        )

    def _fire_completed(self) -> None:
        self._completion_timer = None
        s = self.session
        if s.completion_fired:
            logger.error("Completion already signalled; ignoring duplicate.")
            return
        s.completion_fired = True
        self._emit(ScanEventKind.COMPLETED, metrics=self.metrics)

    def _fail(self, cause: str) -> None:
        self._halt()
        if self.state.is_terminal:
            logger.error("Fault after session ended (%s): %s", self.state.value, cause)
            return
        self.error_cause = cause
        self._transition(ScanState.ERROR, cause)
        self._emit(ScanEventKind.ERROR, error=cause)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _acquire_capture(self) -> None:
        try:
            self.capture.acquire()
        except CaptureUnavailable as exc:
            logger.error("Camera unavailable: %s", exc)
            self._fail(str(exc))
            return
        self._sample_timer = self._scheduler.every(self.config.sample_interval_ms, self._on_sample_tick)

    def _halt(self) -> None:
        """Stop the periodic timers and release the camera."""
        for name in ("_sample_timer", "_progress_timer", "_tip_timer"):
            timer: Optional[TimerHandle] = getattr(self, name)
            if timer is not None:
                timer.stop()
                setattr(self, name, None)
        self.capture.release()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _new_session(self) -> ScanSession:
        session = new_session(self._clock)
        session.machine.set_on_transition(self._on_transition)
        return session

    def _transition(self, target: ScanState, reason: str) -> None:
        self.session.machine.transition(target, reason)

    def _on_transition(self, record: StateTransition) -> None:
        self._emit(ScanEventKind.STATE_CHANGED)

    def _emit(self, kind: ScanEventKind, **payload: Any) -> None:
        s = self.session
        fields: dict[str, Any] = {
            "state": s.state,
            "progress": s.progress_percent,
            "paused": s.paused,
            "message": s.current_message,
            "tip_index": s.current_tip_index,
            "tip_text": self.current_tip,
        }
        fields.update(payload)
        event = ScanEvent(kind=kind, **fields)
        for listener in list(self._listeners):
            listener(event)
