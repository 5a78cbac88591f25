"""Results screen with one card per estimated metric."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from domain.models import UserDetails, WellnessMetrics

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "These results are wellness estimates derived from your details and posture. "
    "They are not medical measurements. Consult a healthcare professional for "
    "any health concerns."
)

_STATUS_COLOURS = {
    "normal": "#00dc64",
    "low": "#ffaa00",
    "moderate": "#ffaa00",
    "elevated": "#ffaa00",
    "underweight": "#ffaa00",
    "overweight": "#ffaa00",
    "high": "#ff6666",
    "obese": "#ff6666",
}


class StatCard(QFrame):
    """Small card widget for displaying one metric group."""

    def __init__(self, title: str, value: str, unit: str = "", status: str = "") -> None:
        super().__init__()
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self.setStyleSheet("QFrame { background: #1e2240; border-radius: 8px; }")
        lay = QVBoxLayout(self)
        lay.setContentsMargins(14, 10, 14, 10)

        t_lbl = QLabel(title)
        t_lbl.setStyleSheet("font-size: 10px; color: #888; text-transform: uppercase;")

        v_row = QHBoxLayout()
        v_lbl = QLabel(value)
        v_lbl.setStyleSheet("font-size: 26px; font-weight: bold; color: #e8e8ff;")
        u_lbl = QLabel(unit)
        u_lbl.setStyleSheet("font-size: 11px; color: #8888aa;")
        v_row.addWidget(v_lbl)
        v_row.addWidget(u_lbl, 0, Qt.AlignmentFlag.AlignBottom)
        v_row.addStretch()

        lay.addWidget(t_lbl)
        lay.addLayout(v_row)
        if status:
            colour = _STATUS_COLOURS.get(status, "#aaaacc")
            s_lbl = QLabel(status.capitalize())
            s_lbl.setStyleSheet(f"font-size: 12px; font-weight: bold; color: {colour};")
            lay.addWidget(s_lbl)


def _span(lo: int, hi: int) -> str:
    return f"{lo}-{hi}" if lo != hi else str(lo)


class ResultsScreen(QWidget):
    """Shows the estimated metrics after a completed scan."""

    new_scan_requested = Signal()

    def __init__(
        self,
        user: UserDetails,
        metrics: WellnessMetrics,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._user = user
        self._metrics = metrics
        self._build_ui()

    def _build_ui(self) -> None:
        m = self._metrics
        root = QVBoxLayout(self)
        root.setContentsMargins(24, 16, 24, 16)

        title = QLabel(f"Your Wellness Results, {self._user.name}")
        title.setStyleSheet("font-size: 24px; font-weight: bold; color: #e0e0ff;")
        sub = QLabel(f"Measured while {self._user.posture.value}")
        sub.setStyleSheet("font-size: 12px; color: #8888aa;")
        root.addWidget(title)
        root.addWidget(sub)

        # ── Stat cards ────────────────────────────────────────────────
        bp = m.blood_pressure
        grid = QGridLayout()
        grid.setSpacing(12)
        cards = [
            StatCard(
                "Blood Pressure",
                f"{_span(bp.systolic.min, bp.systolic.max)}/{_span(bp.diastolic.min, bp.diastolic.max)}",
                "mmHg",
                bp.status.value,
            ),
            StatCard(
                "Heart Rate",
                _span(m.heart_rate.range.min, m.heart_rate.range.max),
                "bpm",
                m.heart_rate.status.value,
            ),
            StatCard("Stress Level", str(m.stress.value), "/ 100", m.stress.status.value),
            StatCard("BMI", f"{m.bmi.value:.1f}", "kg/m²", m.bmi.status.value),
            StatCard(
                "Respiratory Rate",
                _span(m.respiratory_rate.range.min, m.respiratory_rate.range.max),
                "breaths/min",
                m.respiratory_rate.status.value,
            ),
            StatCard(
                "Oxygen Saturation",
                _span(m.oxygen_saturation.range.min, m.oxygen_saturation.range.max),
                "%",
                m.oxygen_saturation.status,
            ),
        ]
        for i, card in enumerate(cards):
            grid.addWidget(card, i // 3, i % 3)
        root.addLayout(grid)

        disclaimer = QLabel(DISCLAIMER)
        disclaimer.setWordWrap(True)
        disclaimer.setStyleSheet("font-size: 11px; color: #8888aa; padding-top: 12px;")
        root.addWidget(disclaimer)
        root.addStretch()

        # ── Action buttons ────────────────────────────────────────────
        btn_row = QHBoxLayout()
        btn_new = QPushButton("↻  New Scan")
        btn_new.setStyleSheet("font-weight: bold;")
        btn_new.clicked.connect(self.new_scan_requested)
        btn_row.addStretch()
        btn_row.addWidget(btn_new)
        root.addLayout(btn_row)

        logger.info("Results shown: %s", m.to_dict())
