"""Main application window – stacked screens for every step of a scan."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QSpinBox,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from app.config import CONFIG_PATH, Config
from app.controller import ScanSessionController
from domain.models import Gender, Posture, UserDetails, WellnessMetrics
from ui.intake_screens import DetailsScreen, InstructionsScreen, PostureScreen
from ui.qt_scheduler import QtScheduler
from ui.results_screen import ResultsScreen
from ui.scan_screen import ScanScreen
from vision.camera import Camera, SyntheticCamera

logger = logging.getLogger(__name__)

# Screen indices in the stacked widget
_IDX_DETAILS = 0
_IDX_POSTURE = 1
_IDX_INSTRUCTIONS = 2
_IDX_SCAN = 3
_IDX_RESULTS = 4


class ThresholdsDialog(QDialog):
    """Operator settings panel for tuning the scan timing and quality gate."""

    def __init__(
        self,
        config: Config,
        config_path: Optional[Path] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Scan Settings")
        self.setMinimumWidth(340)
        self._config = config
        self._config_path = config_path or CONFIG_PATH

        form = QFormLayout()

        self._duration = QDoubleSpinBox()
        self._duration.setRange(5.0, 120.0)
        self._duration.setSingleStep(5.0)
        self._duration.setSuffix(" s")
        self._duration.setValue(config.scan_duration_ms / 1000.0)
        form.addRow("Scan duration:", self._duration)

        self._poor_light = QDoubleSpinBox()
        self._poor_light.setRange(0.0, 255.0)
        self._poor_light.setValue(config.poor_light_threshold)
        form.addRow("Poor light below:", self._poor_light)

        self._good_light = QDoubleSpinBox()
        self._good_light.setRange(0.0, 255.0)
        self._good_light.setValue(config.good_light_threshold)
        form.addRow("Good light above:", self._good_light)

        self._motion = QDoubleSpinBox()
        self._motion.setRange(0.0, 255.0)
        self._motion.setValue(config.motion_threshold)
        form.addRow("Motion threshold:", self._motion)

        self._detect_p = QDoubleSpinBox()
        self._detect_p.setRange(0.0, 1.0)
        self._detect_p.setSingleStep(0.05)
        self._detect_p.setValue(config.good_detection_probability)
        form.addRow("Good detection probability:", self._detect_p)

        self._cam_idx = QSpinBox()
        self._cam_idx.setRange(0, 9)
        self._cam_idx.setValue(config.camera_index)
        form.addRow("Camera index:", self._cam_idx)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self._apply)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def _apply(self) -> None:
        changes = {
            "scan_duration_ms": int(self._duration.value() * 1000),
            "poor_light_threshold": self._poor_light.value(),
            "good_light_threshold": self._good_light.value(),
            "motion_threshold": self._motion.value(),
            "good_detection_probability": self._detect_p.value(),
            "camera_index": self._cam_idx.value(),
        }
        # Persist only the edited fields; launch overrides stay out of the file
        stored = Config.load(self._config_path)
        for key, value in changes.items():
            setattr(self._config, key, value)
            setattr(stored, key, value)
        stored.save(self._config_path)
        logger.info("Scan settings saved to %s.", self._config_path)
        self.accept()


class MainWindow(QMainWindow):
    """Root application window."""

    def __init__(self, config: Config, config_path: Optional[Path] = None) -> None:
        super().__init__()
        self._config = config
        self._config_path = config_path

        self.setWindowTitle("Wellness Scan")
        self.resize(config.window_width, config.window_height)

        # Collected across the intake screens
        self._details: Optional[tuple[str, int, Gender, float, float]] = None
        self._user: Optional[UserDetails] = None
        self._controller: Optional[ScanSessionController] = None
        self._scan_screen: Optional[ScanScreen] = None

        # ── Stacked widget ─────────────────────────────────────────────
        self._stack = QStackedWidget()

        self._details_screen = DetailsScreen()
        self._details_screen.submitted.connect(self._on_details)

        self._posture_screen = PostureScreen()
        self._posture_screen.posture_chosen.connect(self._on_posture)
        self._posture_screen.back_requested.connect(lambda: self._stack.setCurrentIndex(_IDX_DETAILS))

        self._instructions = InstructionsScreen()
        self._instructions.ready.connect(self._go_scan)
        self._instructions.back_requested.connect(lambda: self._stack.setCurrentIndex(_IDX_POSTURE))

        self._stack.addWidget(self._details_screen)  # 0
        self._stack.addWidget(self._posture_screen)  # 1
        self._stack.addWidget(self._instructions)    # 2
        self._stack.addWidget(QWidget())             # 3 – scan placeholder
        self._stack.addWidget(QWidget())             # 4 – results placeholder
        self._stack.setCurrentIndex(_IDX_DETAILS)

        btn_settings = QPushButton("⚙ Settings")
        btn_settings.setStyleSheet("color: #aaaacc; border: none; font-size: 11px;")
        btn_settings.clicked.connect(self._open_settings)

        header = QHBoxLayout()
        brand = QLabel("Wellness Scan")
        brand.setStyleSheet("font-size: 15px; font-weight: bold; color: #8899ff;")
        header.addWidget(brand)
        header.addStretch()
        header.addWidget(btn_settings)

        central = QWidget()
        root = QVBoxLayout(central)
        root.addLayout(header)
        root.addWidget(self._stack, 1)
        self.setCentralWidget(central)

        self._apply_dark_theme()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _on_details(self, name: str, age: int, gender: str, height_cm: float, weight_kg: float) -> None:
        self._details = (name, age, Gender(gender), height_cm, weight_kg)
        self._stack.setCurrentIndex(_IDX_POSTURE)

    def _on_posture(self, posture: str) -> None:
        if self._details is None:
            self._stack.setCurrentIndex(_IDX_DETAILS)
            return
        name, age, gender, height_cm, weight_kg = self._details
        self._user = UserDetails(
            name=name,
            age=age,
            gender=gender,
            height_cm=height_cm,
            weight_kg=weight_kg,
            posture=Posture(posture),
        )
        logger.info("User details captured (age=%d, posture=%s).", age, posture)
        self._stack.setCurrentIndex(_IDX_INSTRUCTIONS)

    def _go_scan(self) -> None:
        if self._user is None:
            self._stack.setCurrentIndex(_IDX_DETAILS)
            return
        self._teardown_scan()

        cfg = self._config
        if cfg.use_synthetic_camera:
            capture = SyntheticCamera(cfg.camera_width, cfg.camera_height, seed=cfg.random_seed)
        else:
            capture = Camera(
                cfg.camera_index,
                cfg.camera_width,
                cfg.camera_height,
                cfg.camera_fps,
                max_frame_age_ms=cfg.max_frame_age_ms,
            )

        screen_host = QWidget()
        controller = ScanSessionController(
            user=self._user,
            config=cfg,
            capture=capture,
            scheduler=QtScheduler(screen_host),
        )
        screen = ScanScreen(controller, cfg.preview_interval_ms, parent=screen_host)
        QVBoxLayout(screen_host).addWidget(screen)
        screen.scan_completed.connect(self._on_scan_completed)
        screen.scan_cancelled.connect(self._on_scan_cancelled)

        self._replace_page(_IDX_SCAN, screen_host)
        self._controller = controller
        self._scan_screen = screen
        self._stack.setCurrentIndex(_IDX_SCAN)
        screen.begin()

    def _on_scan_completed(self, metrics: WellnessMetrics) -> None:
        assert self._user is not None
        results = ResultsScreen(self._user, metrics)
        results.new_scan_requested.connect(self._go_home)

        self._replace_page(_IDX_RESULTS, results)
        self._stack.setCurrentIndex(_IDX_RESULTS)
        self._teardown_scan()

    def _on_scan_cancelled(self) -> None:
        self._teardown_scan()
        self._stack.setCurrentIndex(_IDX_INSTRUCTIONS)

    def _go_home(self) -> None:
        self._details = None
        self._user = None
        self._details_screen.reset()
        self._stack.setCurrentIndex(_IDX_DETAILS)

    def _replace_page(self, index: int, page: QWidget) -> None:
        old = self._stack.widget(index)
        self._stack.removeWidget(old)
        old.deleteLater()
        self._stack.insertWidget(index, page)

    def _teardown_scan(self) -> None:
        if self._scan_screen is not None:
            self._scan_screen.shutdown()
            self._scan_screen = None
        self._controller = None

    def _open_settings(self) -> None:
        dlg = ThresholdsDialog(self._config, self._config_path, self)
        dlg.exec()

    def closeEvent(self, event: QCloseEvent) -> None:
        self._teardown_scan()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    # Theme
    # ------------------------------------------------------------------

    def _apply_dark_theme(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow, QWidget {
                background: #0e0e1e;
                color: #d0d0f0;
                font-family: 'Segoe UI', sans-serif;
            }
            QPushButton {
                background: #1e2240;
                color: #d0d0f0;
                border: 1px solid #334466;
                border-radius: 4px;
                padding: 6px 14px;
                font-size: 12px;
            }
            QPushButton:hover { background: #2a3060; }
            QPushButton:pressed { background: #151530; }
            QPushButton:disabled { color: #555566; background: #141425; }
            QComboBox, QLineEdit {
                background: #1e2240;
                color: #d0d0f0;
                border: 1px solid #334466;
                border-radius: 4px;
                padding: 4px 8px;
            }
            QComboBox QAbstractItemView {
                background: #1e2240;
                color: #d0d0f0;
                selection-background-color: #2a3060;
            }
            QProgressBar {
                background: #2a2a4a;
                border: none;
                border-radius: 4px;
            }
            QProgressBar::chunk {
                background: #4455cc;
                border-radius: 4px;
            }
            QLabel { color: #d0d0f0; }
            QRadioButton { color: #d0d0f0; }
            QDoubleSpinBox, QSpinBox {
                background: #1e2240;
                color: #d0d0f0;
                border: 1px solid #334466;
                border-radius: 4px;
                padding: 2px 6px;
            }
            """
        )
