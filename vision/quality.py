"""Heuristic capture-quality gate: brightness and motion from sampled pixels.

This is not a face detector.  Frames that pass the brightness and motion
checks are reported as a detected, in-frame face most of the time; the
remaining draws report a positioning issue.  All randomness comes from the
caller's generator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from domain.models import FrameQualityAnalysis, ImageQuality, QualityMessage

POSITIONING_ISSUES = (
    QualityMessage.TOO_FAR,
    QualityMessage.NOT_CENTERED,
    QualityMessage.LOOK_STRAIGHT,
)


@dataclass
class QualityThresholds:
    pixel_stride: int = 10
    poor_light_threshold: float = 50.0
    good_light_threshold: float = 100.0
    motion_threshold: float = 25.0
    good_detection_probability: float = 0.9


def sample_pixels(frame: np.ndarray, stride: int) -> np.ndarray:
    """Every *stride*-th pixel in both axes, as float32."""
    stride = max(1, int(stride))
    return np.asarray(frame[::stride, ::stride], dtype=np.float32)


def frame_brightness(frame: np.ndarray, stride: int = 10) -> float:
    """Mean intensity over all channels of the sampled pixels."""
    pixels = sample_pixels(frame, stride)
    if pixels.size == 0:
        return 0.0
    return float(pixels.mean())


def frame_motion(
    frame: np.ndarray,
    previous_frame: Optional[np.ndarray],
    stride: int = 10,
) -> float:
    """Mean absolute per-channel difference against *previous_frame*."""
    if previous_frame is None or previous_frame.shape != frame.shape:
        return 0.0
    cur = sample_pixels(frame, stride)
    prev = sample_pixels(previous_frame, stride)
    if cur.size == 0:
        return 0.0
    return float(np.abs(cur - prev).mean())


def analyze_frame(
    frame: Optional[np.ndarray],
    previous_frame: Optional[np.ndarray],
    rng: np.random.Generator,
    thresholds: Optional[QualityThresholds] = None,
    scanning: bool = False,
) -> FrameQualityAnalysis:
    """Classify one frame.

    Rules are applied in order: missing frame, poor light, motion, then a
    random draw between a usable face and one of the positioning issues.
    """
    t = thresholds or QualityThresholds()

    if frame is None:
        return FrameQualityAnalysis(
            brightness=0.0,
            motion_level=0.0,
            face_detected=False,
            face_in_frame=False,
            image_quality=ImageQuality.POOR,
            message=QualityMessage.NO_FACE,
        )

    brightness = frame_brightness(frame, t.pixel_stride)
    motion = frame_motion(frame, previous_frame, t.pixel_stride)

    if brightness < t.poor_light_threshold:
        return FrameQualityAnalysis(
            brightness=brightness,
            motion_level=motion,
            face_detected=False,
            face_in_frame=False,
            image_quality=ImageQuality.POOR,
            message=QualityMessage.POOR_LIGHT,
        )

    if motion > t.motion_threshold:
        return FrameQualityAnalysis(
            brightness=brightness,
            motion_level=motion,
            face_detected=True,
            face_in_frame=False,
            image_quality=ImageQuality.FAIR,
            message=QualityMessage.KEEP_STILL,
        )

    if float(rng.random()) < t.good_detection_probability:
        quality = ImageQuality.GOOD if brightness > t.good_light_threshold else ImageQuality.FAIR
        return FrameQualityAnalysis(
            brightness=brightness,
            motion_level=motion,
            face_detected=True,
            face_in_frame=True,
            image_quality=quality,
            message=QualityMessage.HOLD_STEADY if scanning else QualityMessage.FACE_READY,
        )

    issue = POSITIONING_ISSUES[int(rng.integers(0, len(POSITIONING_ISSUES)))]
    return FrameQualityAnalysis(
        brightness=brightness,
        motion_level=motion,
        face_detected=True,
        face_in_frame=False,
        image_quality=ImageQuality.FAIR,
        message=issue,
    )
