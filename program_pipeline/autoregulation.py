"""
Fatigue tracking and RPE-based load autoregulation.

Helpers for adjusting loads between sessions and deciding when a deload is
due, based on cumulative fatigue and the trend of recorded RPEs.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from program_pipeline.schemas import RecoveryProfile
from program_pipeline.volume import round_half_up

FATIGUE_DECAY_RATE = 0.3  # daily decay of cumulative fatigue
LOAD_ROUNDING_INCREMENT = 2.5


class RPETrend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class DeloadKind(str, Enum):
    VOLUME = "volume"
    INTENSITY = "intensity"


class SessionFeedback(BaseModel):
    """Outcome of the previous session for one exercise."""

    last_session_rpe: float = Field(..., ge=0, le=10)
    total_volume: float = Field(0, ge=0, description="Sets x reps performed")
    notes: Optional[str] = None


class LoadRecommendation(BaseModel):
    recommended_weight: float
    percentage_change: float
    reasoning: List[str]


class DeloadRecommendation(BaseModel):
    is_needed: bool
    reason: str
    type: Optional[DeloadKind] = None
    duration_days: Optional[int] = None
    reduction_percent: Optional[int] = None


def track_cumulative_fatigue(
    cumulative_fatigue: float, session_fatigue: float, recovery_rate: float
) -> float:
    """
    Decay existing fatigue by one day and add a new session's fatigue.

    Args:
        cumulative_fatigue: Current fatigue score
        session_fatigue: Fatigue added by the latest session
        recovery_rate: RecoveryProfile.recovery_rate, divides the daily decay rate

    Returns:
        Updated cumulative fatigue
    """
    decayed = cumulative_fatigue * (1 - FATIGUE_DECAY_RATE * (1 / recovery_rate))
    return decayed + session_fatigue


def analyze_rpe_trend(rpe_history: List[float]) -> RPETrend:
    """Compare the oldest and newest RPE; fewer than three entries is always stable."""
    if len(rpe_history) < 3:
        return RPETrend.STABLE
    first, last = rpe_history[0], rpe_history[-1]
    if last > first + 1:
        return RPETrend.INCREASING
    if last < first - 1:
        return RPETrend.DECREASING
    return RPETrend.STABLE


def determine_deload_need(
    cumulative_fatigue: float,
    fatigue_threshold: float,
    rpe_trend: RPETrend = RPETrend.STABLE,
) -> DeloadRecommendation:
    """
    Decide whether a deload should be scheduled now.

    Fatigue over threshold calls for a volume deload; a rising RPE trend
    at tolerable fatigue calls for an intensity deload.
    """
    if cumulative_fatigue > fatigue_threshold:
        return DeloadRecommendation(
            is_needed=True,
            reason=(
                f"Cumulative fatigue ({cumulative_fatigue:.0f}) has exceeded "
                f"your threshold of {fatigue_threshold:g}."
            ),
            type=DeloadKind.VOLUME,
            duration_days=7,
            reduction_percent=50,
        )

    if rpe_trend == RPETrend.INCREASING:
        return DeloadRecommendation(
            is_needed=True,
            reason="RPE for a primary exercise has been consistently increasing.",
            type=DeloadKind.INTENSITY,
            duration_days=7,
            reduction_percent=20,
        )

    return DeloadRecommendation(
        is_needed=False,
        reason=(
            f"Fatigue level ({cumulative_fatigue:.0f}) is within tolerance "
            f"({fatigue_threshold:g})."
        ),
    )


def calculate_adaptive_load(
    base_weight: float,
    week_in_mesocycle: int,
    recovery_profile: RecoveryProfile,
    feedback: SessionFeedback,
) -> LoadRecommendation:
    """
    Adjust a planned load for accumulated fatigue and last-session RPE.

    Args:
        base_weight: Planned weight for the exercise
        week_in_mesocycle: Current week, 1-based
        recovery_profile: User's recovery characteristics
        feedback: RPE and volume from the previous session

    Returns:
        LoadRecommendation rounded to the nearest 2.5 units
    """
    if base_weight <= 0:
        raise ValueError(f"base_weight must be positive, got {base_weight}")

    adjusted = base_weight
    reasoning = [f"Base weight set to {base_weight:g}."]

    # Proactive: 5% per week into the mesocycle, scaled by recovery speed
    fatigue_reduction = (week_in_mesocycle - 1) * 0.05 * (1 / recovery_profile.recovery_rate)
    if fatigue_reduction > 0:
        adjusted *= 1 - fatigue_reduction
        reasoning.append(
            f"Applied a {fatigue_reduction * 100:.1f}% fatigue reduction for week {week_in_mesocycle}."
        )

    # Reactive: respond to how hard the last session felt
    rpe = feedback.last_session_rpe
    if rpe > 8.5:
        adjusted *= 0.95
        reasoning.append(f"Reduced load by 5% due to high RPE ({rpe:g}) in the last session.")
    elif rpe < 7.5:
        adjusted *= 1.03
        reasoning.append(f"Increased load by 3% due to low RPE ({rpe:g}) in the last session.")
    else:
        reasoning.append(f"Maintained load as last session RPE ({rpe:g}) was within range.")

    return LoadRecommendation(
        recommended_weight=round_half_up(adjusted / LOAD_ROUNDING_INCREMENT) * LOAD_ROUNDING_INCREMENT,
        percentage_change=(adjusted - base_weight) / base_weight * 100,
        reasoning=reasoning,
    )
