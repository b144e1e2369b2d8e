"""
Strength ratio analysis.

Compares the user's lift ratios with minimum standards and prescribes
corrective exercises for any lagging movement pattern.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from program_pipeline.schemas import (
    RatioIssue,
    RatioSeverity,
    StrengthProfile,
    UserProfile,
    WeakPointProtocol,
)


class RatioStandard(BaseModel):
    numerator: str
    denominator: str
    minimum: float
    optimal: float
    weak_point: str


# Evaluated in this order; issue and tag ordering follow it.
STRENGTH_RATIO_STANDARDS: Dict[str, RatioStandard] = {
    "benchToDeadlift": RatioStandard(
        numerator="bench",
        denominator="deadlift",
        minimum=0.6,
        optimal=0.8,
        weak_point="WEAK_HORIZONTAL_PRESS",
    ),
    "squatToDeadlift": RatioStandard(
        numerator="squat",
        denominator="deadlift",
        minimum=0.75,
        optimal=0.9,
        weak_point="WEAK_POSTERIOR_CHAIN",
    ),
    "overheadToBench": RatioStandard(
        numerator="overhead_press",
        denominator="bench",
        minimum=0.6,
        optimal=0.75,
        weak_point="WEAK_VERTICAL_PRESS",
    ),
}

WEAK_POINT_PROTOCOLS: Dict[str, List[str]] = {
    "WEAK_POSTERIOR_CHAIN": [
        "Romanian Deadlifts",
        "Good Mornings",
        "Glute-Ham Raises",
        "Hip Thrusts",
    ],
    "WEAK_HORIZONTAL_PRESS": [
        "Dumbbell Bench Press",
        "Incline Barbell Press",
        "Weighted Dips",
        "Push-ups (Weighted or Variations)",
    ],
    "WEAK_VERTICAL_PRESS": [
        "Seated Dumbbell Press",
        "Arnold Press",
        "Lateral Raises",
        "Close-Grip Bench Press",
    ],
}

HIGH_SEVERITY_FACTOR = 0.9

REASSESSMENT_WEEKS = {
    RatioSeverity.HIGH: 8,
    RatioSeverity.MODERATE: 12,
}
DEFAULT_REASSESSMENT_WEEKS = 16


class WeakPointAnalyzer:
    """
    Detects strength imbalances from estimated 1RMs.

    Pure: analyzing the same profile twice yields identical protocols.
    """

    def __init__(
        self,
        standards: Optional[Dict[str, RatioStandard]] = None,
        protocols: Optional[Dict[str, List[str]]] = None,
    ):
        self.standards = standards or STRENGTH_RATIO_STANDARDS
        self.protocols = protocols or WEAK_POINT_PROTOCOLS

    def analyze(self, strength: StrengthProfile) -> WeakPointProtocol:
        """
        Evaluate every ratio standard against a strength profile.

        Args:
            strength: Estimated 1RMs for squat, bench, deadlift and overhead press

        Returns:
            WeakPointProtocol with issues, deduplicated corrective exercises
            and a reassessment horizon
        """
        issues: List[RatioIssue] = []
        weak_points: List[str] = []

        for ratio_name, standard in self.standards.items():
            numerator = getattr(strength, standard.numerator)
            # A zero denominator is treated as 1
            denominator = getattr(strength, standard.denominator) or 1
            ratio = numerator / denominator

            if ratio >= standard.minimum:
                continue

            severity = (
                RatioSeverity.HIGH
                if ratio < standard.minimum * HIGH_SEVERITY_FACTOR
                else RatioSeverity.MODERATE
            )
            issues.append(
                RatioIssue(
                    ratio_name=ratio_name,
                    measured_ratio=round(ratio, 3),
                    standard_minimum=standard.minimum,
                    severity=severity,
                    explanation=(
                        f"Your {ratio_name} ratio ({ratio:.2f}) is below the minimum "
                        f"standard of {standard.minimum}, suggesting a potential imbalance."
                    ),
                )
            )
            if standard.weak_point not in weak_points:
                weak_points.append(standard.weak_point)

        exercises: List[str] = []
        for weak_point in weak_points:
            for exercise in self.protocols.get(weak_point, []):
                if exercise not in exercises:
                    exercises.append(exercise)

        return WeakPointProtocol(
            issues=issues,
            correction_exercises=exercises,
            primary_weak_points=weak_points,
            reassessment_period_weeks=self._reassessment_weeks(issues),
        )

    def analyze_profile(self, profile: UserProfile) -> Optional[WeakPointProtocol]:
        """
        Analyze a user profile if it carries all four lift estimates.

        Returns:
            WeakPointProtocol, or None when the profile cannot be analyzed
        """
        strength = profile.strength_profile()
        if strength is None:
            return None
        return self.analyze(strength)

    @staticmethod
    def _reassessment_weeks(issues: List[RatioIssue]) -> int:
        severities = {issue.severity for issue in issues}
        for severity in (RatioSeverity.HIGH, RatioSeverity.MODERATE):
            if severity in severities:
                return REASSESSMENT_WEEKS[severity]
        return DEFAULT_REASSESSMENT_WEEKS
