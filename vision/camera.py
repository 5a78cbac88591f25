"""Capture sources: a threaded webcam and a synthetic stand-in."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional, Protocol

import cv2
import numpy as np

from domain.errors import CaptureUnavailable

logger = logging.getLogger(__name__)


class CaptureSource(Protocol):
    def acquire(self) -> None:
        """Open the device; raise :class:`CaptureUnavailable` on failure."""

    def latest_frame(self) -> Optional[np.ndarray]:
        """Newest frame or ``None``; must not block."""

    def release(self) -> None:
        """Free the device; idempotent."""


class Camera:
    """Grabs frames from a webcam in a background thread so the scan loop
    never blocks on I/O.  Call :meth:`latest_frame` to retrieve the most
    recent frame without waiting."""

    def __init__(
        self,
        index: int = 0,
        width: int = 640,
        height: int = 480,
        fps: int = 30,
        max_frame_age_ms: float = 1000.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.index = index
        self._req_width = width
        self._req_height = height
        self._req_fps = fps
        self._max_age_s = max_frame_age_ms / 1000.0
        self._clock = clock
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None
        self._timestamp: float = 0.0
        self._lock = threading.Lock()
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._width: int = 0
        self._height: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def acquire(self) -> None:
        if self._running:
            return
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise CaptureUnavailable(
                f"Cannot open camera at index {self.index}. "
                "Check that it is connected and camera permissions are granted."
            )
        self._cap = cap

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._req_width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._req_height)
        self._cap.set(cv2.CAP_PROP_FPS, self._req_fps)

        self._width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True, name="CameraCapture")
        self._thread.start()
        logger.info("Camera acquired: index=%d  res=%dx%d", self.index, self._width, self._height)

    def release(self) -> None:
        """Stop capturing and free the device.  Safe to call repeatedly."""
        was_running = self._running
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        if self._cap:
            self._cap.release()
            self._cap = None
        with self._lock:
            self._frame = None
        if was_running:
            logger.info("Camera released.")

    # ------------------------------------------------------------------
    # Frame access
    # ------------------------------------------------------------------

    def latest_frame(self) -> Optional[np.ndarray]:
        """Return a copy of the newest BGR frame.

        ``None`` until the first frame arrives, and again once the device has
        stalled for longer than *max_frame_age_ms*.
        """
        with self._lock:
            if self._frame is None:
                return None
            if self._clock() - self._timestamp > self._max_age_s:
                return None
            return self._frame.copy()

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _capture_loop(self) -> None:
        cap = self._cap
        assert cap is not None
        while self._running:
            ret, frame = cap.read()
            if ret:
                ts = self._clock()
                with self._lock:
                    self._frame = frame
                    self._timestamp = ts
            else:
                time.sleep(0.005)


class SyntheticCamera:
    """Produces evenly lit noisy frames; used when no webcam is available."""

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        brightness: float = 140.0,
        noise: float = 4.0,
        seed: Optional[int] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.brightness = brightness
        self.noise = noise
        self._rng = np.random.default_rng(seed)
        self._acquired = False

    def acquire(self) -> None:
        self._acquired = True
        logger.info("Synthetic camera acquired (%dx%d).", self.width, self.height)

    def release(self) -> None:
        if self._acquired:
            logger.info("Synthetic camera released.")
        self._acquired = False

    def latest_frame(self) -> Optional[np.ndarray]:
        if not self._acquired:
            return None
        frame = self._rng.normal(self.brightness, self.noise, (self.height, self.width, 3))
        return np.clip(frame, 0, 255).astype(np.uint8)

    @property
    def is_open(self) -> bool:
        return self._acquired
