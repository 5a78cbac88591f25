"""Tests for the wellness metrics estimator."""

import numpy as np
import pytest

from conftest import ScriptedRng
from domain.metrics import (
    classify_bmi,
    classify_diastolic,
    classify_heart_rate,
    classify_respiratory_rate,
    classify_stress,
    classify_systolic,
    compute_bmi,
    estimate_metrics,
    gender_modifier,
    heart_rate_base,
    posture_modifier,
    stress_base,
    systolic_base,
    worse_bp_status,
)
from domain.models import (
    BloodPressureStatus,
    BmiStatus,
    Gender,
    Posture,
    RateStatus,
    StressStatus,
    UserDetails,
)


def _user(**overrides) -> UserDetails:
    values = dict(
        name="Alex",
        age=30,
        gender=Gender.MALE,
        height_cm=170.0,
        weight_kg=70.0,
        posture=Posture.SITTING,
    )
    values.update(overrides)
    return UserDetails(**values)


def test_compute_bmi():
    assert compute_bmi(170.0, 70.0) == pytest.approx(24.22, abs=0.01)
    assert compute_bmi(200.0, 100.0) == pytest.approx(25.0)


def test_modifiers():
    assert posture_modifier(Posture.STANDING) == 1.05
    assert posture_modifier(Posture.SITTING) == 1.0
    assert gender_modifier(Gender.MALE) == 1.02
    assert gender_modifier(Gender.FEMALE) == 0.98
    assert gender_modifier(Gender.OTHER) == 1.0


def test_reference_user_bases():
    user = _user()
    assert systolic_base(user) == pytest.approx(124.44)
    assert classify_systolic(systolic_base(user)) == BloodPressureStatus.NORMAL
    assert heart_rate_base(user) == pytest.approx(73.44)
    assert stress_base(user) == 25


def test_reference_user_without_variance():
    m = estimate_metrics(_user(), ScriptedRng(ints=(0,)), variance=0)
    assert m.bmi.value == 24.2
    assert m.bmi.status == BmiStatus.NORMAL
    assert (m.blood_pressure.systolic.min, m.blood_pressure.systolic.max) == (118, 132)
    assert (m.blood_pressure.diastolic.min, m.blood_pressure.diastolic.max) == (74, 82)
    # systolic max crosses 130; diastolic stays normal
    assert m.blood_pressure.status == BloodPressureStatus.ELEVATED
    assert (m.heart_rate.range.min, m.heart_rate.range.max) == (65, 82)
    assert m.heart_rate.status == RateStatus.NORMAL
    assert m.stress.value == 25
    assert m.stress.status == StressStatus.LOW
    assert (m.oxygen_saturation.range.min, m.oxygen_saturation.range.max) == (96, 98)
    assert (m.respiratory_rate.range.min, m.respiratory_rate.range.max) == (13, 16)
    assert m.respiratory_rate.status == RateStatus.NORMAL


def test_variance_zero_is_deterministic():
    a = estimate_metrics(_user(), np.random.default_rng(1), variance=0)
    b = estimate_metrics(_user(), np.random.default_rng(99), variance=0)
    assert a.blood_pressure == b.blood_pressure
    assert a.heart_rate == b.heart_rate
    assert a.stress == b.stress
    assert a.respiratory_rate == b.respiratory_rate


def test_seeded_generator_is_reproducible():
    a = estimate_metrics(_user(), np.random.default_rng(7))
    b = estimate_metrics(_user(), np.random.default_rng(7))
    assert a == b


@pytest.mark.parametrize("seed", range(20))
def test_ranges_are_ordered_and_bounded(seed):
    m = estimate_metrics(_user(age=64, posture=Posture.STANDING), np.random.default_rng(seed))
    for r in (
        m.blood_pressure.systolic,
        m.blood_pressure.diastolic,
        m.heart_rate.range,
        m.respiratory_rate.range,
        m.oxygen_saturation.range,
    ):
        assert r.min <= r.max
    assert 96 <= m.oxygen_saturation.range.min <= 98
    assert m.oxygen_saturation.range.max <= 100
    assert m.oxygen_saturation.status == "normal"
    assert 0 <= m.stress.value <= 100


def test_stress_jitter_bounds():
    # six range draws come first, the seventh is the stress offset
    low = estimate_metrics(_user(), ScriptedRng(randoms=(0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 0.0)))
    high = estimate_metrics(_user(), ScriptedRng(randoms=(0.5, 0.5, 0.5, 0.5, 0.5, 0.5, 1.0)))
    assert low.stress.value == 18
    assert high.stress.value == 33


def test_stress_stays_within_scale():
    # age > 35, bmi > 28 and standing: base 50, never above 100
    user = _user(age=60, weight_kg=95.0, posture=Posture.STANDING)
    m = estimate_metrics(user, ScriptedRng(randoms=(1.0,)))
    assert m.stress.value <= 100
    assert m.stress.status == StressStatus.MODERATE


@pytest.mark.parametrize(
    "value, expected",
    [
        (18.4, BmiStatus.UNDERWEIGHT),
        (18.5, BmiStatus.NORMAL),
        (24.9, BmiStatus.NORMAL),
        (25.0, BmiStatus.OVERWEIGHT),
        (29.9, BmiStatus.OVERWEIGHT),
        (30.0, BmiStatus.OBESE),
    ],
)
def test_bmi_boundaries(value, expected):
    assert classify_bmi(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (130, BloodPressureStatus.NORMAL),
        (131, BloodPressureStatus.ELEVATED),
        (140, BloodPressureStatus.ELEVATED),
        (141, BloodPressureStatus.HIGH),
    ],
)
def test_systolic_boundaries(value, expected):
    assert classify_systolic(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (85, BloodPressureStatus.NORMAL),
        (86, BloodPressureStatus.ELEVATED),
        (90, BloodPressureStatus.ELEVATED),
        (91, BloodPressureStatus.HIGH),
    ],
)
def test_diastolic_boundaries(value, expected):
    assert classify_diastolic(value) == expected


def test_worse_bp_status():
    assert worse_bp_status(BloodPressureStatus.NORMAL, BloodPressureStatus.HIGH) == BloodPressureStatus.HIGH
    assert worse_bp_status(BloodPressureStatus.ELEVATED, BloodPressureStatus.NORMAL) == BloodPressureStatus.ELEVATED
    assert worse_bp_status(BloodPressureStatus.NORMAL, BloodPressureStatus.NORMAL) == BloodPressureStatus.NORMAL


def test_rate_classifiers():
    assert classify_heart_rate(65, 101) == RateStatus.ELEVATED
    assert classify_heart_rate(59, 90) == RateStatus.LOW
    assert classify_heart_rate(60, 100) == RateStatus.NORMAL
    assert classify_respiratory_rate(13, 21) == RateStatus.ELEVATED
    assert classify_respiratory_rate(11, 18) == RateStatus.LOW
    assert classify_respiratory_rate(12, 20) == RateStatus.NORMAL


def test_stress_classifier():
    assert classify_stress(35) == StressStatus.LOW
    assert classify_stress(36) == StressStatus.MODERATE
    assert classify_stress(60) == StressStatus.MODERATE
    assert classify_stress(61) == StressStatus.HIGH


def test_to_dict_uses_plain_values():
    d = estimate_metrics(_user(), np.random.default_rng(3)).to_dict()
    assert d["bmi"] == {"value": 24.2, "status": "normal"}
    assert set(d["blood_pressure"]) == {"systolic", "diastolic", "status"}
    assert isinstance(d["blood_pressure"]["status"], str)
    assert d["heart_rate"]["range"]["min"] <= d["heart_rate"]["range"]["max"]
