"""Scan screen – camera preview, quality banner, progress and tips."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QTimer, Qt, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from app.controller import ScanSessionController
from domain.errors import PreconditionFailed
from domain.models import ImageQuality, ScanEvent, ScanEventKind, ScanState
from ui.camera_view import CameraView

logger = logging.getLogger(__name__)

_BANNER_STYLE = "color: #ffffff; padding: 6px 14px; font-size: 12px; border-radius: 12px; background: {bg};"
_BANNER_BAD = "rgba(200,40,40,200)"
_BANNER_WARN = "rgba(200,150,0,200)"
_BANNER_OK = "rgba(20,150,70,200)"


class ScanScreen(QWidget):
    """Binds the scan controller to widgets.

    The controller is the only source of truth; this widget renders the
    events it publishes and forwards button presses as commands.
    """

    scan_completed = Signal(object)  # WellnessMetrics
    scan_cancelled = Signal()

    def __init__(
        self,
        controller: ScanSessionController,
        preview_interval_ms: int = 33,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._ctrl = controller
        self._ctrl.add_listener(self._on_event)

        # ── Build UI ──────────────────────────────────────────────────
        self._greeting = QLabel(f"Hi, {controller.user.name}!")
        self._greeting.setStyleSheet("font-size: 22px; font-weight: bold; color: #e8e8ff;")
        self._subtitle = QLabel("Position your face in the frame")
        self._subtitle.setStyleSheet("font-size: 12px; color: #8888aa;")

        self._view = CameraView()

        self._banner = QLabel("Initializing camera...")
        self._banner.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._banner.setStyleSheet(_BANNER_STYLE.format(bg=_BANNER_WARN))

        self._paused_label = QLabel()
        self._paused_label.setStyleSheet(
            "background: rgba(180,0,0,60); color: #ff8888; padding: 6px 10px;"
            "border: 1px solid #aa3333; border-radius: 6px;"
        )
        self._paused_label.hide()

        self._progress_caption = QLabel("Analyzing facial features...")
        self._progress_caption.setStyleSheet("color: #8888aa;")
        self._progress_pct = QLabel("0%")
        self._progress_pct.setStyleSheet("color: #8899ff; font-weight: bold;")
        self._progress = QProgressBar()
        self._progress.setRange(0, 1000)
        self._progress.setTextVisible(False)
        self._progress.setFixedHeight(8)

        self._tip = QLabel()
        self._tip.setWordWrap(True)
        self._tip.setStyleSheet(
            "background: #1e2240; border: 1px solid #334466; border-radius: 8px;"
            "padding: 10px; color: #ccccee;"
        )

        self._start_btn = QPushButton("▶  Begin Face Scan")
        self._start_btn.setFixedHeight(44)
        self._start_btn.setEnabled(False)
        self._start_btn.setStyleSheet(
            "background: #228833; color: white; font-size: 14px; font-weight: bold;"
            "border: none; border-radius: 6px;"
        )
        self._start_btn.clicked.connect(self._on_start_clicked)

        self._retry_btn = QPushButton("↻  Try Again")
        self._retry_btn.clicked.connect(self._on_retry_clicked)
        self._retry_btn.hide()

        self._cancel_btn = QPushButton("✕  Cancel Scan")
        self._cancel_btn.setStyleSheet("color: #ff6666; border: 1px solid #aa3333;")
        self._cancel_btn.clicked.connect(self._ctrl.cancel)

        header = QVBoxLayout()
        header.addWidget(self._greeting)
        header.addWidget(self._subtitle)

        progress_row = QHBoxLayout()
        progress_row.addWidget(self._progress_caption, 1)
        progress_row.addWidget(self._progress_pct)

        self._scan_panel = QWidget()
        sp = QVBoxLayout(self._scan_panel)
        sp.setContentsMargins(0, 0, 0, 0)
        sp.addWidget(self._paused_label)
        sp.addLayout(progress_row)
        sp.addWidget(self._progress)
        sp.addWidget(self._tip)
        self._scan_panel.hide()

        buttons = QHBoxLayout()
        buttons.addWidget(self._cancel_btn)
        buttons.addStretch()
        buttons.addWidget(self._retry_btn)
        buttons.addWidget(self._start_btn)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(24, 16, 24, 16)
        layout.addLayout(header)
        layout.addWidget(self._banner)
        layout.addWidget(self._view, 1)
        layout.addWidget(self._scan_panel)
        layout.addLayout(buttons)

        # ── Preview polling ───────────────────────────────────────────
        self._preview_timer = QTimer(self)
        self._preview_timer.setInterval(preview_interval_ms)
        self._preview_timer.timeout.connect(self._refresh_preview)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> None:
        self._preview_timer.start()
        self._ctrl.start()

    def shutdown(self) -> None:
        self._preview_timer.stop()
        self._ctrl.remove_listener(self._on_event)
        self._ctrl.shutdown()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _on_start_clicked(self) -> None:
        try:
            self._ctrl.start_scan()
        except PreconditionFailed as exc:
            logger.info("Start rejected: %s", exc)
            self._set_banner(str(exc), _BANNER_BAD)

    def _on_retry_clicked(self) -> None:
        self._retry_btn.hide()
        self._preview_timer.start()
        self._ctrl.retry_capture()

    # ------------------------------------------------------------------
    # Controller events
    # ------------------------------------------------------------------

    def _on_event(self, event: ScanEvent) -> None:
        kind = event.kind
        if kind == ScanEventKind.QUALITY and event.analysis is not None:
            a = event.analysis
            if not a.face_detected or a.image_quality == ImageQuality.POOR:
                colour = _BANNER_BAD
            elif not a.face_in_frame:
                colour = _BANNER_WARN
            else:
                colour = _BANNER_OK
            self._set_banner(a.message.text, colour)
            if event.state == ScanState.SCANNING:
                self._view.set_guide("idle" if event.paused else "scanning")
            else:
                self._view.set_guide("ok" if a.is_usable else "idle")
            if event.state == ScanState.READY:
                self._start_btn.setEnabled(a.is_usable)
        elif kind == ScanEventKind.READY:
            self._start_btn.setEnabled(True)
        elif kind == ScanEventKind.STATE_CHANGED and event.state == ScanState.INITIALIZING:
            self._show_setup()
        elif kind == ScanEventKind.STATE_CHANGED and event.state == ScanState.SCANNING:
            self._start_btn.hide()
            self._scan_panel.show()
            self._subtitle.setText("Scanning in progress...")
        elif kind == ScanEventKind.PROGRESS:
            self._show_progress(event)
        elif kind == ScanEventKind.TIP and event.tip_text is not None:
            self._tip.setText(f"💡  {event.tip_text}")
        elif kind == ScanEventKind.COMPLETED:
            self._preview_timer.stop()
            self.scan_completed.emit(event.metrics)
        elif kind == ScanEventKind.CANCELLED:
            self._preview_timer.stop()
            self.scan_cancelled.emit()
        elif kind == ScanEventKind.ERROR:
            self._preview_timer.stop()
            self._view.set_frame(None)
            self._set_banner(event.error or "Camera error.", _BANNER_BAD)
            self._start_btn.setEnabled(False)
            self._retry_btn.show()

    def _show_setup(self) -> None:
        """Back to the pre-scan layout; a retried session starts from zero."""
        self._scan_panel.hide()
        self._paused_label.hide()
        self._progress.setValue(0)
        self._progress_pct.setText("0%")
        self._progress_caption.setText("Analyzing facial features...")
        self._tip.clear()
        self._subtitle.setText("Position your face in the frame")
        self._set_banner("Initializing camera...", _BANNER_WARN)
        self._view.set_guide("idle")
        self._retry_btn.hide()
        self._start_btn.setEnabled(False)
        self._start_btn.show()

    def _show_progress(self, event: ScanEvent) -> None:
        self._progress.setValue(int(event.progress * 10))
        self._progress_pct.setText(f"{round(event.progress)}%")
        if event.paused:
            msg = event.message.text if event.message else ""
            self._paused_label.setText(f"⚠  Scan Paused - {msg}")
            self._paused_label.show()
            self._progress_caption.setText("Waiting for proper positioning...")
        else:
            self._paused_label.hide()
            self._progress_caption.setText("Analyzing facial features...")

    def _set_banner(self, text: str, colour: str) -> None:
        self._banner.setText(text)
        self._banner.setStyleSheet(_BANNER_STYLE.format(bg=colour))

    def _refresh_preview(self) -> None:
        self._view.set_frame(self._ctrl.preview_frame())
