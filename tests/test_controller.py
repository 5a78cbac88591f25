"""Tests for the scan session controller driven by a manual scheduler."""

from typing import Optional

import numpy as np
import pytest

from app.controller import ScanSessionController
from conftest import FakeCapture, ManualScheduler, ScriptedRng
from domain.errors import CaptureUnavailable, PreconditionFailed
from domain.models import QualityMessage, ScanEvent, ScanEventKind, ScanState


def _make(user, config, capture, scheduler, rng=None):
    ctrl = ScanSessionController(
        user=user,
        config=config,
        capture=capture,
        scheduler=scheduler,
        rng=rng or ScriptedRng(randoms=(0.0,)),
    )
    events: list[ScanEvent] = []
    ctrl.add_listener(events.append)
    return ctrl, events


def _kinds(events, kind):
    return [e for e in events if e.kind == kind]


def _to_scanning(ctrl, scheduler):
    ctrl.start()
    scheduler.advance(500)  # first sample → READY
    assert ctrl.state == ScanState.READY
    ctrl.start_scan()


def test_start_acquires_and_becomes_ready(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    assert ctrl.state == ScanState.INITIALIZING
    assert capture.acquired

    scheduler.advance(500)
    assert ctrl.state == ScanState.READY
    assert len(_kinds(events, ScanEventKind.READY)) == 1
    assert _kinds(events, ScanEventKind.QUALITY)[-1].message == QualityMessage.FACE_READY


def test_missing_frame_keeps_initializing(user, fast_config, capture, scheduler):
    capture.frame = None
    ctrl, events = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    scheduler.advance(1500)
    assert ctrl.state == ScanState.INITIALIZING
    assert all(e.message == QualityMessage.NO_FACE for e in _kinds(events, ScanEventKind.QUALITY))


def test_full_scan_completes_once(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)

    scheduler.advance(1000)  # ten progress ticks
    assert ctrl.state == ScanState.COMPLETED
    assert ctrl.progress == 100.0
    assert not capture.acquired
    assert scheduler.active_timers != []  # only the completion delay is pending
    assert _kinds(events, ScanEventKind.COMPLETED) == []

    scheduler.advance(499)
    assert _kinds(events, ScanEventKind.COMPLETED) == []
    scheduler.advance(1)
    completed = _kinds(events, ScanEventKind.COMPLETED)
    assert len(completed) == 1
    assert completed[0].metrics is not None
    assert completed[0].metrics is ctrl.metrics

    scheduler.advance(5000)
    assert len(_kinds(events, ScanEventKind.COMPLETED)) == 1
    assert scheduler.active_timers == []


def test_progress_monotonic_and_reaches_100_before_completion(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(2000)

    progress = [e.progress for e in _kinds(events, ScanEventKind.PROGRESS)]
    assert progress == sorted(progress)
    assert progress[-1] == 100.0

    completed_at = next(i for i, e in enumerate(events) if e.kind == ScanEventKind.COMPLETED)
    last_progress_at = max(i for i, e in enumerate(events) if e.kind == ScanEventKind.PROGRESS)
    assert last_progress_at < completed_at
    assert ctrl.session.elapsed_scan_s == pytest.approx(1.0)


def test_state_sequence(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(2000)
    states = [e.state for e in _kinds(events, ScanEventKind.STATE_CHANGED)]
    assert states == [
        ScanState.INITIALIZING,
        ScanState.READY,
        ScanState.SCANNING,
        ScanState.COMPLETED,
    ]


def test_progress_frozen_while_paused(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)  # t = 500

    scheduler.advance(400)  # progress ticks at 600..900
    assert ctrl.progress == pytest.approx(40.0)

    capture.set_brightness(10)  # poor light from the sample at t = 1000
    scheduler.advance(400)
    assert ctrl.paused
    assert ctrl.progress == pytest.approx(40.0)
    paused_events = [e for e in _kinds(events, ScanEventKind.PROGRESS) if e.paused]
    assert paused_events
    assert all(e.progress == pytest.approx(40.0) for e in paused_events)
    assert paused_events[-1].message == QualityMessage.POOR_LIGHT

    # The jump back to normal light reads as motion at t = 1500; the steady
    # frame at t = 2000 resumes, followed by one progress tick.
    capture.set_brightness(150)
    scheduler.advance(200)
    assert ctrl.paused
    assert ctrl.session.latest_analysis.message == QualityMessage.KEEP_STILL
    assert ctrl.progress == pytest.approx(40.0)

    scheduler.advance(500)
    assert not ctrl.paused
    assert ctrl.progress == pytest.approx(50.0)
    assert ctrl.state == ScanState.SCANNING


def test_tips_rotate_only_while_not_paused(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    assert ctrl.session.current_tip_index == 0

    scheduler.advance(300)  # tip tick at 800
    assert ctrl.session.current_tip_index == 1

    capture.set_brightness(10)
    scheduler.advance(600)  # paused at 1000; tip ticks at 1100 and 1400 skipped
    assert ctrl.session.current_tip_index == 1
    tips = _kinds(events, ScanEventKind.TIP)
    assert [e.tip_index for e in tips] == [0, 1]
    assert tips[-1].tip_text == ctrl.tips[1]


def test_start_scan_rejected_when_face_not_in_frame(user, fast_config, capture, scheduler):
    rng = ScriptedRng(randoms=(0.0, 0.95), ints=(1,))
    ctrl, _ = _make(user, fast_config, capture, scheduler, rng)
    ctrl.start()
    scheduler.advance(500)
    assert ctrl.state == ScanState.READY
    scheduler.advance(500)  # second sample reports an off-centre face
    assert ctrl.session.latest_analysis.message == QualityMessage.NOT_CENTERED
    assert not ctrl.session.latest_analysis.face_in_frame

    with pytest.raises(PreconditionFailed):
        ctrl.start_scan()
    assert ctrl.state == ScanState.READY


def test_start_scan_rejected_before_ready(user, fast_config, capture, scheduler):
    ctrl, _ = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    with pytest.raises(PreconditionFailed):
        ctrl.start_scan()
    assert ctrl.state == ScanState.INITIALIZING


def test_capture_unavailable_enters_error(user, fast_config, scheduler):
    capture = FakeCapture(fail=True)
    ctrl, events = _make(user, fast_config, capture, scheduler)
    ctrl.start()

    assert ctrl.state == ScanState.ERROR
    assert not capture.acquired
    assert scheduler.active_timers == []
    errors = _kinds(events, ScanEventKind.ERROR)
    assert len(errors) == 1
    assert "denied" in errors[0].error

    # Releasing again is harmless
    capture.release()
    assert not capture.acquired


def test_retry_capture_starts_fresh_session(user, fast_config, scheduler):
    capture = FakeCapture(fail=True)
    ctrl, events = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    failed_session = ctrl.session

    capture.fail = False
    ctrl.retry_capture()
    assert ctrl.session is not failed_session
    assert ctrl.state == ScanState.INITIALIZING
    assert ctrl.error_cause is None

    scheduler.advance(500)
    assert ctrl.state == ScanState.READY


def test_retry_only_valid_in_error(user, fast_config, capture, scheduler):
    ctrl, _ = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    with pytest.raises(PreconditionFailed):
        ctrl.retry_capture()


def test_cancel_mid_scan_stops_everything(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(350)

    ctrl.cancel()
    assert ctrl.state == ScanState.CANCELLED
    assert not capture.acquired
    assert scheduler.active_timers == []
    assert events[-1].kind == ScanEventKind.CANCELLED

    seen = len(events)
    scheduler.advance(10_000)
    assert len(events) == seen


def test_cancel_after_completion_is_noop(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(2000)
    ctrl.cancel()
    assert ctrl.state == ScanState.COMPLETED
    assert _kinds(events, ScanEventKind.CANCELLED) == []


def test_completion_signal_never_repeats(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(2000)
    ctrl._fire_completed()
    assert len(_kinds(events, ScanEventKind.COMPLETED)) == 1


def test_progress_tick_outside_scanning_is_internal_fault(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    ctrl.start()
    scheduler.advance(500)

    ctrl._on_progress_tick()
    assert ctrl.state == ScanState.ERROR
    assert not capture.acquired
    assert scheduler.active_timers == []
    assert "Internal error" in _kinds(events, ScanEventKind.ERROR)[0].error


class _FlakyCapture(FakeCapture):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def latest_frame(self) -> Optional[np.ndarray]:
        if self.broken:
            raise CaptureUnavailable("Camera disconnected.")
        return super().latest_frame()


def test_capture_lost_mid_scan_enters_error(user, fast_config, scheduler):
    capture = _FlakyCapture()
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(200)

    capture.broken = True
    scheduler.advance(300)  # sample at 1000
    assert ctrl.state == ScanState.ERROR
    assert ctrl.error_cause == "Camera disconnected."
    assert not capture.acquired
    assert scheduler.active_timers == []


def test_shutdown_releases_capture(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    ctrl.shutdown()
    assert ctrl.state == ScanState.CANCELLED
    assert not capture.acquired
    assert scheduler.active_timers == []


def test_preview_frame_only_while_live(user, fast_config, capture, scheduler):
    ctrl, _ = _make(user, fast_config, capture, scheduler)
    assert ctrl.preview_frame() is None
    ctrl.start()
    assert ctrl.preview_frame() is not None
    ctrl.cancel()
    assert ctrl.preview_frame() is None


class _BrokenDeviceCapture(FakeCapture):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def latest_frame(self) -> Optional[np.ndarray]:
        if self.broken:
            raise OSError("device I/O error")
        return super().latest_frame()


def test_unexpected_tick_error_enters_error(user, fast_config, scheduler):
    capture = _BrokenDeviceCapture()
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)

    capture.broken = True
    scheduler.advance(500)  # sample at 1000 raises
    assert ctrl.state == ScanState.ERROR
    assert not capture.acquired
    assert scheduler.active_timers == []
    assert "device I/O error" in ctrl.error_cause
    assert len(_kinds(events, ScanEventKind.ERROR)) == 1

    seen = len(events)
    scheduler.advance(5000)
    assert len(events) == seen


def test_retry_after_mid_scan_error_resets_progress(user, fast_config, scheduler):
    capture = _FlakyCapture()
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    scheduler.advance(400)
    assert ctrl.progress == pytest.approx(40.0)

    capture.broken = True
    scheduler.advance(100)
    assert ctrl.state == ScanState.ERROR

    capture.broken = False
    ctrl.retry_capture()
    assert ctrl.state == ScanState.INITIALIZING
    assert events[-1].kind == ScanEventKind.STATE_CHANGED
    assert events[-1].state == ScanState.INITIALIZING
    assert events[-1].progress == 0.0

    scheduler.advance(500)
    assert ctrl.state == ScanState.READY
    assert ctrl.progress == 0.0
    assert not ctrl.paused
    ctrl.start_scan()
    scheduler.advance(100)
    assert ctrl.progress == pytest.approx(10.0)


def test_state_changes_reported_through_machine_history(user, fast_config, capture, scheduler):
    ctrl, events = _make(user, fast_config, capture, scheduler)
    _to_scanning(ctrl, scheduler)
    history = [t.to_state for t in ctrl.session.machine.history]
    reported = [e.state for e in _kinds(events, ScanEventKind.STATE_CHANGED)]
    assert history == reported == [ScanState.INITIALIZING, ScanState.READY, ScanState.SCANNING]
