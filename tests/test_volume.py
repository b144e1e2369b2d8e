"""
Tests for volume landmark calculation.

Test scenarios:
1. Landmarks scale with the combined multiplier and keep MEV <= MAV <= MRV
2. Unknown muscle groups return None
3. Individual multiplier tables
4. Rounding is half-up
"""

import pytest
from pydantic import ValidationError

from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.schemas import VolumeLandmarks, VolumeParameters
from program_pipeline.volume import (
    MUSCLE_GROUP_BASE_VOLUMES,
    VolumeLandmarkCalculator,
    age_multiplier,
    recovery_multiplier,
    round_half_up,
    stress_multiplier,
)


@pytest.fixture
def calculator():
    return VolumeLandmarkCalculator()


def params(training_age=1.0, recovery=5, stress=4, tolerance=1.0) -> VolumeParameters:
    return VolumeParameters(
        training_age=training_age,
        recovery_capacity=recovery,
        stress_level=stress,
        volume_tolerance=tolerance,
    )


def test_beginner_chest_landmarks(calculator, beginner_profile):
    """Multiplier 1.1 x 0.7 x 0.7 = 0.539 applied to chest (8, 18, 26)."""
    enriched = ProfileEnricher().enrich(beginner_profile)
    landmarks = calculator.calculate_landmarks(enriched.volume_parameters, "chest")

    assert (landmarks.mev, landmarks.mav, landmarks.mrv) == (4, 10, 14)


def test_intermediate_landmarks(calculator, intermediate_profile):
    """Multiplier 1.5 x 1.3 x 0.9 = 1.755."""
    enriched = ProfileEnricher().enrich(intermediate_profile)
    landmarks = calculator.calculate_all_landmarks(enriched.volume_parameters)

    assert (landmarks["chest"].mev, landmarks["chest"].mav, landmarks["chest"].mrv) == (14, 32, 46)
    assert (landmarks["abs"].mev, landmarks["abs"].mav, landmarks["abs"].mrv) == (0, 28, 44)


def test_all_groups_are_ordered(calculator):
    """Every group keeps MEV <= MAV <= MRV across a range of parameters."""
    for training_age in (0, 0.25, 1.25, 3.0):
        for recovery in (3, 6, 9):
            for stress in (1, 3, 6, 8, 10):
                landmarks = calculator.calculate_all_landmarks(
                    params(training_age, recovery, stress)
                )
                assert set(landmarks) == set(MUSCLE_GROUP_BASE_VOLUMES)
                for landmark in landmarks.values():
                    assert landmark.mev <= landmark.mav <= landmark.mrv


def test_unknown_muscle_group_returns_none(calculator):
    assert calculator.calculate_landmarks(params(), "forearms") is None


def test_muscle_group_lookup_ignores_case(calculator):
    assert calculator.calculate_landmarks(params(), " Chest ") == calculator.calculate_landmarks(
        params(), "chest"
    )


def test_neutral_parameters_use_base_table(calculator):
    """Training age 0, mid recovery and moderate stress leave the table unchanged."""
    landmarks = calculator.calculate_landmarks(params(training_age=0), "back")
    assert (landmarks.mev, landmarks.mav, landmarks.mrv) == (10, 20, 30)


@pytest.mark.parametrize(
    "training_age, expected",
    [(0, 1.0), (1, 1.4), (2, 1.8), (5, 1.8)],
)
def test_age_multiplier(training_age, expected):
    assert age_multiplier(training_age) == pytest.approx(expected)


@pytest.mark.parametrize(
    "capacity, expected",
    [(1, 0.7), (3, 0.7), (4, 1.0), (7, 1.0), (8, 1.3), (10, 1.3)],
)
def test_recovery_multiplier(capacity, expected):
    assert recovery_multiplier(capacity) == expected


@pytest.mark.parametrize(
    "stress, expected",
    [(1, 1.1), (2, 1.1), (3, 1.0), (4, 1.0), (5, 0.9), (6, 0.9), (7, 0.7), (8, 0.7), (9, 0.6), (10, 0.6)],
)
def test_stress_multiplier(stress, expected):
    assert stress_multiplier(stress) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(2.5, 3), (3.5, 4), (7.5, 8), (12.5, 13), (4.49, 4), (0.0, 0)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_landmarks_round_half_up():
    """A 1.25 tolerance puts (2, 6, 10) exactly on .5 boundaries."""
    calculator = VolumeLandmarkCalculator(base_volumes={"test": (2, 6, 10)})
    landmarks = calculator.calculate_landmarks(params(training_age=0, tolerance=1.25), "test")

    assert (landmarks.mev, landmarks.mav, landmarks.mrv) == (3, 8, 13)


def test_volume_landmarks_reject_bad_ordering():
    with pytest.raises(ValidationError):
        VolumeLandmarks(mev=10, mav=8, mrv=12)


def test_volume_landmarks_accept_uppercase_aliases():
    landmark = VolumeLandmarks.model_validate({"MEV": 4, "MAV": 10, "MRV": 14})
    assert landmark.model_dump(by_alias=True) == {"MEV": 4, "MAV": 10, "MRV": 14}
