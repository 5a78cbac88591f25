"""Estimate wellness metrics from demographic and posture data.

The estimates are formula-based with a small bounded random variance so the
output never looks falsely precise.  They are not measurements.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from domain.models import (
    Bmi,
    BmiStatus,
    BloodPressure,
    BloodPressureStatus,
    Gender,
    HeartRate,
    MetricRange,
    OxygenSaturation,
    Posture,
    RateStatus,
    RespiratoryRate,
    Stress,
    StressStatus,
    UserDetails,
    WellnessMetrics,
)

DEFAULT_VARIANCE = 0.02  # ±2 % per draw
STRESS_JITTER = 7.5

# (low multiplier, high multiplier) applied to each base value
BP_SPREAD = (0.95, 1.06)
HR_SPREAD = (0.88, 1.12)
RR_SPREAD = (0.90, 1.15)

_BP_SEVERITY = {
    BloodPressureStatus.NORMAL: 0,
    BloodPressureStatus.ELEVATED: 1,
    BloodPressureStatus.HIGH: 2,
}


# ── Shared derived quantities ─────────────────────────────────────────────

def compute_bmi(height_cm: float, weight_kg: float) -> float:
    """BMI = weight (kg) / height (m)²."""
    height_m = height_cm / 100.0
    return weight_kg / (height_m ** 2)


def posture_modifier(posture: Posture) -> float:
    return 1.05 if posture == Posture.STANDING else 1.0


def gender_modifier(gender: Gender) -> float:
    if gender == Gender.MALE:
        return 1.02
    if gender == Gender.FEMALE:
        return 0.98
    return 1.0


# ── Base formulas ─────────────────────────────────────────────────────────

def systolic_base(user: UserDetails) -> float:
    bmi = compute_bmi(user.height_cm, user.weight_kg)
    base = 110 + user.age * 0.4 + (8 if bmi > 25 else 0)
    return base * posture_modifier(user.posture) * gender_modifier(user.gender)


def diastolic_base(user: UserDetails) -> float:
    bmi = compute_bmi(user.height_cm, user.weight_kg)
    base = 70 + user.age * 0.25 + (5 if bmi > 25 else 0)
    return base * posture_modifier(user.posture)


def heart_rate_base(user: UserDetails) -> float:
    bmi = compute_bmi(user.height_cm, user.weight_kg)
    base = (
        72
        + (5 if user.posture == Posture.STANDING else 0)
        - (3 if user.age > 40 else 0)
        + (6 if bmi > 25 else 0)
    )
    return base * gender_modifier(user.gender)


def stress_base(user: UserDetails) -> float:
    bmi = compute_bmi(user.height_cm, user.weight_kg)
    return (
        25
        + (12 if user.age > 35 else 0)
        + (8 if bmi > 28 else 0)
        + (5 if user.posture == Posture.STANDING else 0)
    )


def respiratory_rate_base(user: UserDetails) -> float:
    bmi = compute_bmi(user.height_cm, user.weight_kg)
    return (
        14
        + (2 if user.age > 50 else 0)
        + (2 if bmi > 30 else 0)
        + (1 if user.posture == Posture.STANDING else 0)
    )


# ── Classification ────────────────────────────────────────────────────────

def classify_systolic(value: float) -> BloodPressureStatus:
    if value > 140:
        return BloodPressureStatus.HIGH
    if value > 130:
        return BloodPressureStatus.ELEVATED
    return BloodPressureStatus.NORMAL


def classify_diastolic(value: float) -> BloodPressureStatus:
    if value > 90:
        return BloodPressureStatus.HIGH
    if value > 85:
        return BloodPressureStatus.ELEVATED
    return BloodPressureStatus.NORMAL


def worse_bp_status(a: BloodPressureStatus, b: BloodPressureStatus) -> BloodPressureStatus:
    return a if _BP_SEVERITY[a] >= _BP_SEVERITY[b] else b


def classify_heart_rate(low: float, high: float) -> RateStatus:
    if high > 100:
        return RateStatus.ELEVATED
    if low < 60:
        return RateStatus.LOW
    return RateStatus.NORMAL


def classify_stress(value: float) -> StressStatus:
    if value > 60:
        return StressStatus.HIGH
    if value > 35:
        return StressStatus.MODERATE
    return StressStatus.LOW


def classify_bmi(value: float) -> BmiStatus:
    if value < 18.5:
        return BmiStatus.UNDERWEIGHT
    if value < 25:
        return BmiStatus.NORMAL
    if value < 30:
        return BmiStatus.OVERWEIGHT
    return BmiStatus.OBESE


def classify_respiratory_rate(low: float, high: float) -> RateStatus:
    if high > 20:
        return RateStatus.ELEVATED
    if low < 12:
        return RateStatus.LOW
    return RateStatus.NORMAL


# ── Estimation ────────────────────────────────────────────────────────────

def estimate_metrics(
    user: UserDetails,
    rng: Optional[np.random.Generator] = None,
    variance: float = DEFAULT_VARIANCE,
) -> WellnessMetrics:
    """Map *user* to a full set of estimated wellness metrics.

    *rng* drives every random term (pass a seeded generator for reproducible
    output).  ``variance=0`` removes the multiplicative and stress jitter;
    oxygen saturation still draws its offset from *rng*.
    """
    if rng is None:
        rng = np.random.default_rng()

    def jitter() -> float:
        if variance <= 0:
            return 1.0
        return 1.0 + (float(rng.random()) - 0.5) * 2.0 * variance

    def spread(base: float, bounds: tuple[float, float]) -> MetricRange:
        lo = _round_half_up(base * bounds[0] * jitter())
        hi = _round_half_up(base * bounds[1] * jitter())
        return MetricRange(min=min(lo, hi), max=max(lo, hi))

    systolic = spread(systolic_base(user), BP_SPREAD)
    diastolic = spread(diastolic_base(user), BP_SPREAD)
    bp_status = worse_bp_status(
        classify_systolic(systolic.max), classify_diastolic(diastolic.max)
    )

    hr = spread(heart_rate_base(user), HR_SPREAD)

    stress_offset = 0.0
    if variance > 0:
        stress_offset = (float(rng.random()) * 2.0 - 1.0) * STRESS_JITTER
    stress_value = int(np.clip(_round_half_up(stress_base(user) + stress_offset), 0, 100))

    spo2_min = 96 + int(rng.integers(0, 3))
    spo2 = MetricRange(min=spo2_min, max=min(100, spo2_min + 2))

    bmi_value = _round_half_up(compute_bmi(user.height_cm, user.weight_kg) * 10) / 10.0

    rr = spread(respiratory_rate_base(user), RR_SPREAD)

    return WellnessMetrics(
        blood_pressure=BloodPressure(systolic=systolic, diastolic=diastolic, status=bp_status),
        heart_rate=HeartRate(range=hr, status=classify_heart_rate(hr.min, hr.max)),
        stress=Stress(value=stress_value, status=classify_stress(stress_value)),
        oxygen_saturation=OxygenSaturation(range=spo2),
        bmi=Bmi(value=bmi_value, status=classify_bmi(bmi_value)),
        respiratory_rate=RespiratoryRate(range=rr, status=classify_respiratory_rate(rr.min, rr.max)),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
