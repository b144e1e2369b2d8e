"""
Tests for fatigue tracking and load autoregulation.
"""

import pytest
from pydantic import ValidationError

from program_pipeline.autoregulation import (
    DeloadKind,
    RPETrend,
    SessionFeedback,
    analyze_rpe_trend,
    calculate_adaptive_load,
    determine_deload_need,
    track_cumulative_fatigue,
)
from program_pipeline.schemas import RecoveryProfile


def feedback(rpe: float) -> SessionFeedback:
    return SessionFeedback(last_session_rpe=rpe, total_volume=24)


def test_fatigue_decays_and_accumulates():
    assert track_cumulative_fatigue(10, 2, 1.0) == pytest.approx(9.0)


def test_faster_recovery_decays_less_per_day():
    """The decay rate is divided by the recovery rate."""
    assert track_cumulative_fatigue(10, 2, 2.0) == pytest.approx(10.5)


@pytest.mark.parametrize(
    "history, expected",
    [
        ([7, 7.5, 8.5], RPETrend.INCREASING),
        ([8, 8, 9], RPETrend.STABLE),
        ([9, 8.5, 7.5], RPETrend.DECREASING),
        ([6, 9], RPETrend.STABLE),
        ([], RPETrend.STABLE),
    ],
)
def test_rpe_trend(history, expected):
    assert analyze_rpe_trend(history) == expected


def test_volume_deload_when_fatigue_over_threshold():
    recommendation = determine_deload_need(8, 7)

    assert recommendation.is_needed is True
    assert recommendation.type == DeloadKind.VOLUME
    assert recommendation.duration_days == 7
    assert recommendation.reduction_percent == 50


def test_intensity_deload_on_rising_rpe():
    recommendation = determine_deload_need(5, 7, RPETrend.INCREASING)

    assert recommendation.is_needed is True
    assert recommendation.type == DeloadKind.INTENSITY
    assert recommendation.reduction_percent == 20


@pytest.mark.parametrize("fatigue", [5, 7])
def test_no_deload_within_tolerance(fatigue):
    recommendation = determine_deload_need(fatigue, 7)

    assert recommendation.is_needed is False
    assert recommendation.type is None
    assert "within tolerance" in recommendation.reason


def test_adaptive_load_unchanged_in_target_rpe():
    result = calculate_adaptive_load(100, 1, RecoveryProfile(), feedback(8))

    assert result.recommended_weight == 100
    assert result.percentage_change == pytest.approx(0)
    assert len(result.reasoning) == 2


def test_adaptive_load_high_rpe_and_fatigue():
    """Week 3 takes 10% off, then high RPE takes another 5%: 85.5 rounds to 85."""
    result = calculate_adaptive_load(100, 3, RecoveryProfile(), feedback(9))

    assert result.recommended_weight == 85
    assert result.percentage_change == pytest.approx(-14.5)
    assert len(result.reasoning) == 3


def test_adaptive_load_low_rpe_increases():
    result = calculate_adaptive_load(100, 1, RecoveryProfile(), feedback(7))

    assert result.recommended_weight == 102.5
    assert result.percentage_change == pytest.approx(3.0)


def test_adaptive_load_rounds_half_up_to_increment():
    """101.25 is 40.5 increments of 2.5, which rounds up to 102.5."""
    result = calculate_adaptive_load(101.25, 1, RecoveryProfile(), feedback(8))
    assert result.recommended_weight == 102.5


@pytest.mark.parametrize("weight", [0, -20])
def test_adaptive_load_rejects_non_positive_weight(weight):
    with pytest.raises(ValueError):
        calculate_adaptive_load(weight, 1, RecoveryProfile(), feedback(8))


def test_session_feedback_rpe_range():
    with pytest.raises(ValidationError):
        SessionFeedback(last_session_rpe=11)
