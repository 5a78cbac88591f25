"""Core data models for the wellness scan application."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Posture(str, Enum):
    SITTING = "sitting"
    STANDING = "standing"


class ImageQuality(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"


class QualityMessage(str, Enum):
    """Message keys shown to the user while the camera is live."""

    INITIALIZING = "initializing"
    NO_FACE = "no_face"
    POOR_LIGHT = "poor_light"
    KEEP_STILL = "keep_still"
    TOO_FAR = "too_far"
    NOT_CENTERED = "not_centered"
    LOOK_STRAIGHT = "look_straight"
    FACE_READY = "face_ready"
    HOLD_STEADY = "hold_steady"

    @property
    def text(self) -> str:
        return _MESSAGE_TEXT[self]


_MESSAGE_TEXT = {
    QualityMessage.INITIALIZING: "Initializing camera...",
    QualityMessage.NO_FACE: "No face detected. Please position your face in the frame.",
    QualityMessage.POOR_LIGHT: "Poor lighting detected. Please ensure bright, consistent lighting.",
    QualityMessage.KEEP_STILL: "Please keep still and avoid movements.",
    QualityMessage.TOO_FAR: "Please move a little bit closer to the screen.",
    QualityMessage.NOT_CENTERED: "Please center your face in the frame.",
    QualityMessage.LOOK_STRAIGHT: "Please look straight at the camera.",
    QualityMessage.FACE_READY: "Face detected. You can begin the scan.",
    QualityMessage.HOLD_STEADY: "Face detected. Hold steady.",
}

# Demographic bounds accepted by the details form
AGE_RANGE = (18, 120)
HEIGHT_RANGE_CM = (100.0, 250.0)
WEIGHT_RANGE_KG = (30.0, 300.0)


@dataclass(frozen=True)
class UserDetails:
    name: str
    age: int
    gender: Gender
    height_cm: float
    weight_kg: float
    posture: Posture = Posture.SITTING

    def validate(self) -> list[str]:
        """Return a list of problems; empty when the record is usable."""
        problems: list[str] = []
        if not self.name.strip():
            problems.append("Name must not be empty.")
        if not AGE_RANGE[0] <= self.age <= AGE_RANGE[1]:
            problems.append(f"Age must be between {AGE_RANGE[0]} and {AGE_RANGE[1]}.")
        if not HEIGHT_RANGE_CM[0] <= self.height_cm <= HEIGHT_RANGE_CM[1]:
            problems.append(
                f"Height must be between {HEIGHT_RANGE_CM[0]:.0f} and {HEIGHT_RANGE_CM[1]:.0f} cm."
            )
        if not WEIGHT_RANGE_KG[0] <= self.weight_kg <= WEIGHT_RANGE_KG[1]:
            problems.append(
                f"Weight must be between {WEIGHT_RANGE_KG[0]:.0f} and {WEIGHT_RANGE_KG[1]:.0f} kg."
            )
        return problems


@dataclass(frozen=True)
class FrameQualityAnalysis:
    """Quality signal produced by one sampling tick."""

    brightness: float
    motion_level: float
    face_detected: bool
    face_in_frame: bool
    image_quality: ImageQuality
    message: QualityMessage

    @property
    def is_usable(self) -> bool:
        return self.face_detected and self.face_in_frame

    @property
    def blocks_progress(self) -> bool:
        return not (self.is_usable and self.image_quality != ImageQuality.POOR)


# ---------------------------------------------------------------------------
# Scan lifecycle
# ---------------------------------------------------------------------------

class ScanState(str, Enum):
    IDLE = "IDLE"
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    SCANNING = "SCANNING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanState.COMPLETED, ScanState.CANCELLED, ScanState.ERROR)


class ScanEventKind(str, Enum):
    STATE_CHANGED = "STATE_CHANGED"
    READY = "READY"
    QUALITY = "QUALITY"
    PROGRESS = "PROGRESS"
    TIP = "TIP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"


@dataclass
class StateTransition:
    from_state: ScanState
    to_state: ScanState
    timestamp: float  # monotonic seconds
    reason: str = ""


@dataclass
class ScanEvent:
    """Emitted by the controller to every registered listener."""

    kind: ScanEventKind
    state: ScanState
    progress: float = 0.0
    paused: bool = False
    message: Optional[QualityMessage] = None
    tip_index: Optional[int] = None
    tip_text: Optional[str] = None
    analysis: Optional[FrameQualityAnalysis] = None
    metrics: Optional["WellnessMetrics"] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class BloodPressureStatus(str, Enum):
    NORMAL = "normal"
    ELEVATED = "elevated"
    HIGH = "high"


class RateStatus(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    ELEVATED = "elevated"


class StressStatus(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class BmiStatus(str, Enum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"


@dataclass(frozen=True)
class MetricRange:
    min: int
    max: int


@dataclass(frozen=True)
class BloodPressure:
    systolic: MetricRange
    diastolic: MetricRange
    status: BloodPressureStatus


@dataclass(frozen=True)
class HeartRate:
    range: MetricRange
    status: RateStatus


@dataclass(frozen=True)
class Stress:
    value: int  # 0-100
    status: StressStatus


@dataclass(frozen=True)
class OxygenSaturation:
    range: MetricRange
    status: str = "normal"


@dataclass(frozen=True)
class Bmi:
    value: float
    status: BmiStatus


@dataclass(frozen=True)
class RespiratoryRate:
    range: MetricRange
    status: RateStatus


@dataclass(frozen=True)
class WellnessMetrics:
    blood_pressure: BloodPressure
    heart_rate: HeartRate
    stress: Stress
    oxygen_saturation: OxygenSaturation
    bmi: Bmi
    respiratory_rate: RespiratoryRate

    def to_dict(self) -> dict[str, Any]:
        def _plain(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {k: _plain(v) for k, v in value.items()}
            return value

        return _plain(dataclasses.asdict(self))
