"""Screens shown before the scan: details form, posture choice, instructions."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QComboBox,
    QDoubleSpinBox,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QRadioButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from domain.models import (
    AGE_RANGE,
    HEIGHT_RANGE_CM,
    WEIGHT_RANGE_KG,
    Gender,
    Posture,
    UserDetails,
)

logger = logging.getLogger(__name__)

_CARD_STYLE = "QFrame { background: #1e2240; border-radius: 10px; }"
_PRIMARY_BTN = (
    "background: #228833; color: white; font-size: 14px;"
    "border: none; border-radius: 6px; font-weight: bold;"
)

SCAN_INSTRUCTIONS = (
    "Sit or stand in a well-lit place, facing the light source.",
    "Remove glasses, hats or anything covering your face.",
    "Keep your face inside the oval guide, looking straight at the camera.",
    "Stay still and do not talk during the measurement.",
    "The scan takes about 35 seconds and pauses automatically if the picture degrades.",
)


def _title(text: str, sub: str) -> tuple[QLabel, QLabel]:
    title = QLabel(text)
    title.setStyleSheet("font-size: 26px; font-weight: bold; color: #e8e8ff;")
    title.setAlignment(Qt.AlignmentFlag.AlignCenter)
    subtitle = QLabel(sub)
    subtitle.setStyleSheet("font-size: 13px; color: #8888aa;")
    subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
    return title, subtitle


class DetailsScreen(QWidget):
    """Collects name, age, gender, height and weight."""

    submitted = Signal(str, int, str, float, float)  # name, age, gender, height_cm, weight_kg

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(16)

        title, sub = _title("Your Details", "Enter your information for personalized analysis")
        layout.addStretch()
        layout.addWidget(title)
        layout.addWidget(sub)

        card = QFrame()
        card.setStyleSheet(_CARD_STYLE)
        form = QFormLayout(card)
        form.setContentsMargins(24, 16, 24, 16)
        form.setSpacing(12)

        self._name = QLineEdit()
        self._name.setPlaceholderText("Enter your name")
        self._name.setMinimumWidth(240)

        self._age = QSpinBox()
        self._age.setRange(*AGE_RANGE)
        self._age.setValue(30)
        self._age.setSuffix(" years")

        self._gender = QComboBox()
        for g in Gender:
            self._gender.addItem(g.value.capitalize(), g.value)

        self._height = QDoubleSpinBox()
        self._height.setRange(*HEIGHT_RANGE_CM)
        self._height.setDecimals(1)
        self._height.setValue(170.0)
        self._height.setSuffix(" cm")

        self._weight = QDoubleSpinBox()
        self._weight.setRange(*WEIGHT_RANGE_KG)
        self._weight.setDecimals(1)
        self._weight.setValue(70.0)
        self._weight.setSuffix(" kg")

        form.addRow("Full Name:", self._name)
        form.addRow("Age:", self._age)
        form.addRow("Gender:", self._gender)
        form.addRow("Height:", self._height)
        form.addRow("Weight:", self._weight)
        layout.addWidget(card, 0, Qt.AlignmentFlag.AlignHCenter)

        self._errors = QLabel()
        self._errors.setStyleSheet("color: #dd4444;")
        self._errors.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self._errors)

        btn = QPushButton("Continue  →")
        btn.setFixedSize(200, 44)
        btn.setStyleSheet(_PRIMARY_BTN)
        btn.clicked.connect(self._on_continue)
        layout.addWidget(btn, 0, Qt.AlignmentFlag.AlignHCenter)
        layout.addStretch()

    def reset(self) -> None:
        self._name.clear()
        self._errors.clear()

    def _on_continue(self) -> None:
        # Posture is chosen on the next screen; validate the rest now.
        draft = UserDetails(
            name=self._name.text(),
            age=self._age.value(),
            gender=Gender(self._gender.currentData()),
            height_cm=self._height.value(),
            weight_kg=self._weight.value(),
        )
        problems = draft.validate()
        if problems:
            self._errors.setText("\n".join(problems))
            return
        self._errors.clear()
        self.submitted.emit(
            draft.name.strip(), draft.age, draft.gender.value, draft.height_cm, draft.weight_kg
        )


class PostureScreen(QWidget):
    posture_chosen = Signal(str)
    back_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(16)

        title, sub = _title("Select Your Posture", "Your posture affects the estimated readings")
        layout.addStretch()
        layout.addWidget(title)
        layout.addWidget(sub)

        card = QFrame()
        card.setStyleSheet(_CARD_STYLE)
        cl = QVBoxLayout(card)
        cl.setContentsMargins(24, 16, 24, 16)
        self._sitting = QRadioButton("Sitting  –  seated comfortably, back supported")
        self._standing = QRadioButton("Standing  –  upright, weight on both feet")
        self._sitting.setChecked(True)
        cl.addWidget(self._sitting)
        cl.addWidget(self._standing)
        layout.addWidget(card, 0, Qt.AlignmentFlag.AlignHCenter)

        btn_back = QPushButton("←  Back")
        btn_back.clicked.connect(self.back_requested)
        btn_next = QPushButton("Continue  →")
        btn_next.setFixedSize(200, 44)
        btn_next.setStyleSheet(_PRIMARY_BTN)
        btn_next.clicked.connect(self._on_continue)

        row = QHBoxLayout()
        row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        row.setSpacing(16)
        row.addWidget(btn_back)
        row.addWidget(btn_next)
        layout.addLayout(row)
        layout.addStretch()

    def _on_continue(self) -> None:
        posture = Posture.STANDING if self._standing.isChecked() else Posture.SITTING
        self.posture_chosen.emit(posture.value)


class InstructionsScreen(QWidget):
    ready = Signal()
    back_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(16)

        title, sub = _title("Face Scan", "Please follow these steps for an accurate scan")
        layout.addStretch()
        layout.addWidget(title)
        layout.addWidget(sub)

        card = QFrame()
        card.setStyleSheet(_CARD_STYLE)
        cl = QVBoxLayout(card)
        cl.setContentsMargins(24, 16, 24, 16)
        for i, text in enumerate(SCAN_INSTRUCTIONS, start=1):
            lbl = QLabel(f"{i}.  {text}")
            lbl.setWordWrap(True)
            cl.addWidget(lbl)
        layout.addWidget(card, 0, Qt.AlignmentFlag.AlignHCenter)

        btn_back = QPushButton("←  Back")
        btn_back.clicked.connect(self.back_requested)
        btn_ready = QPushButton("I'm Ready  →")
        btn_ready.setFixedSize(200, 44)
        btn_ready.setStyleSheet(_PRIMARY_BTN)
        btn_ready.clicked.connect(self.ready)

        row = QHBoxLayout()
        row.setAlignment(Qt.AlignmentFlag.AlignCenter)
        row.setSpacing(16)
        row.addWidget(btn_back)
        row.addWidget(btn_ready)
        layout.addLayout(row)
        layout.addStretch()
