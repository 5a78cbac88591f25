"""Live camera preview with a face guide drawn on top."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np
from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QImage, QPainter, QPen
from PySide6.QtWidgets import QSizePolicy, QWidget

_GUIDE_COLOURS = {
    "idle": QColor(234, 179, 8, 190),      # yellow – position your face
    "ok": QColor(34, 197, 94, 190),        # green – usable face
    "scanning": QColor(68, 85, 204, 230),  # accent – actively scanning
}


def frame_to_qimage(frame_bgr: np.ndarray) -> QImage:
    """Mirror and convert a BGR frame into an RGB QImage that owns its data."""
    rgb = cv2.cvtColor(cv2.flip(frame_bgr, 1), cv2.COLOR_BGR2RGB)
    h, w, ch = rgb.shape
    return QImage(rgb.data, w, h, ch * w, QImage.Format.Format_RGB888).copy()


class CameraView(QWidget):
    """Paints the latest frame scaled to fill the widget, plus an oval guide.

    Call :meth:`set_frame` with each new frame and :meth:`set_guide` whenever
    the quality signal changes.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._image: Optional[QImage] = None
        self._guide = "idle"
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(320, 240)

    def set_frame(self, frame_bgr: Optional[np.ndarray]) -> None:
        self._image = frame_to_qimage(frame_bgr) if frame_bgr is not None else None
        self.update()

    def set_guide(self, mode: str) -> None:
        if mode != self._guide:
            self._guide = mode
            self.update()

    def paintEvent(self, _event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        if self._image is not None:
            scaled = self._image.scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatioByExpanding,
                Qt.TransformationMode.SmoothTransformation,
            )
            x = (self.width() - scaled.width()) // 2
            y = (self.height() - scaled.height()) // 2
            painter.drawImage(x, y, scaled)
        else:
            painter.fillRect(self.rect(), QColor(40, 45, 60))
            painter.setPen(QColor(180, 180, 200))
            painter.setFont(QFont("Segoe UI", 12))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Waiting for camera…")

        # Face guide oval
        gw = self.width() * 0.38
        gh = self.height() * 0.62
        rect = QRectF((self.width() - gw) / 2, (self.height() - gh) / 2, gw, gh)
        pen = QPen(_GUIDE_COLOURS.get(self._guide, _GUIDE_COLOURS["idle"]), 4)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(rect)
