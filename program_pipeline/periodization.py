"""
Periodization planning.

Selects a block periodization model for the user's goal and experience,
expands each phase into week-by-week volume and intensity targets, and
prescribes the deload that follows the block.

Design principles:
- Models are data: adding a model means adding an entry, not a branch
- Every significant choice is recorded as a PlanDecision
- The planner only outlines the block; exercise selection is left to the generator
"""

from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel

from program_pipeline.autoregulation import track_cumulative_fatigue
from program_pipeline.schemas import (
    Adaptation,
    DeloadProtocol,
    DeloadType,
    EnrichedProfile,
    ExperienceLevel,
    PeriodizationPhase,
    PeriodizationPlan,
    PhaseProgression,
    PlanDecision,
    RecoveryProfile,
    VolumeLandmarks,
    VolumeProgression,
    WeeklyProgression,
)
from program_pipeline.volume import round_half_up


class PeriodizationModel(BaseModel):
    key: str
    name: str
    phases: List[PeriodizationPhase]

    @property
    def duration_weeks(self) -> int:
        return sum(phase.duration_weeks for phase in self.phases)


def _phase(name, weeks, low, high, progression, adaptation) -> PeriodizationPhase:
    return PeriodizationPhase(
        name=name,
        duration_weeks=weeks,
        intensity_range=(low, high),
        volume_progression=progression,
        primary_adaptation=adaptation,
    )


PERIODIZATION_MODELS: Dict[str, PeriodizationModel] = {
    "hypertrophy_focused": PeriodizationModel(
        key="hypertrophy_focused",
        name="Hypertrophy-Focused Block Periodization",
        phases=[
            _phase("Volume Accumulation", 3, 65, 80, VolumeProgression.RAMPING, Adaptation.HYPERTROPHY),
            _phase("Intensification", 2, 80, 90, VolumeProgression.STABLE, Adaptation.STRENGTH),
            _phase("Realization", 1, 90, 95, VolumeProgression.LINEAR, Adaptation.PEAKING),
        ],
    ),
    "strength_focused": PeriodizationModel(
        key="strength_focused",
        name="Strength-Focused Block Periodization",
        phases=[
            _phase("Base Volume", 2, 70, 85, VolumeProgression.STABLE, Adaptation.HYPERTROPHY),
            _phase("Strength Intensification", 3, 85, 95, VolumeProgression.RAMPING, Adaptation.STRENGTH),
            _phase("Peaking", 1, 95, 102.5, VolumeProgression.LINEAR, Adaptation.PEAKING),
        ],
    ),
    "general_fitness": PeriodizationModel(
        key="general_fitness",
        name="Linear Progression Model",
        phases=[
            _phase("Linear Progression Block", 4, 75, 85, VolumeProgression.LINEAR, Adaptation.STRENGTH),
        ],
    ),
    "balanced": PeriodizationModel(
        key="balanced",
        name="Balanced Block Periodization",
        phases=[
            _phase("Accumulation", 3, 65, 75, VolumeProgression.RAMPING, Adaptation.HYPERTROPHY),
            _phase("Intensification", 2, 75, 85, VolumeProgression.STABLE, Adaptation.STRENGTH),
            _phase("Deload", 1, 50, 60, VolumeProgression.STABLE, Adaptation.RECOVERY),
        ],
    ),
}

ADAPTATION_MULTIPLIERS = {
    Adaptation.STRENGTH: 1.025,
    Adaptation.PEAKING: 1.03,
    Adaptation.HYPERTROPHY: 1.01,
    Adaptation.RECOVERY: 1.0,
}

PASSIVE_DELOAD_FATIGUE_RATIO = 1.2
PASSIVE_DELOAD_RECOVERY_RATE = 0.8


def select_model(experience_level: Optional[str], primary_goal: Optional[str]) -> PeriodizationModel:
    """
    Choose a periodization model from goal keywords, then experience.

    Args:
        experience_level: Experience tier (free text)
        primary_goal: Onboarding goal category

    Returns:
        The matching PeriodizationModel; balanced when nothing matches
    """
    goal = primary_goal or ""
    if "Strength Gain" in goal or "Powerlifting" in goal:
        return PERIODIZATION_MODELS["strength_focused"]
    if "Muscle Gain" in goal or "Hypertrophy" in goal:
        return PERIODIZATION_MODELS["hypertrophy_focused"]
    if "General Fitness" in goal or ExperienceLevel.parse(experience_level) == ExperienceLevel.BEGINNER:
        return PERIODIZATION_MODELS["general_fitness"]
    return PERIODIZATION_MODELS["balanced"]


def program_duration_weeks(primary_goal: Optional[str]) -> int:
    """Target program length in weeks for a goal category."""
    goal = primary_goal or ""
    if goal.startswith("General Fitness"):
        return 4
    if goal.startswith("Endurance Improvement") or goal.startswith("Weight Loss"):
        return 5
    return 6


def generate_phase_progression(
    phase: PeriodizationPhase, base_volume_sets: float
) -> List[WeeklyProgression]:
    """
    Expand a phase into weekly volume and intensity targets.

    Ramping phases climb from ~80% toward 110% of base volume, stable phases
    hold it, and linear phases taper it by up to 10% as intensity rises.
    Intensity moves linearly from the low to the high end of the range;
    a single-week phase stays at the low end.

    Args:
        phase: Phase to expand
        base_volume_sets: Baseline weekly sets, typically the MAV

    Returns:
        One WeeklyProgression per week of the phase
    """
    weeks = phase.duration_weeks
    low, high = phase.intensity_range
    span = (weeks - 1) or 1
    progression = []

    for i in range(1, weeks + 1):
        if phase.volume_progression == VolumeProgression.RAMPING:
            volume = base_volume_sets * (0.8 + 0.3 * (i / weeks))
        elif phase.volume_progression == VolumeProgression.STABLE:
            volume = base_volume_sets
        else:
            volume = base_volume_sets * (1 - 0.1 * ((i - 1) / span))

        intensity = low + (high - low) * ((i - 1) / span)
        progression.append(
            WeeklyProgression(
                week_in_phase=i,
                target_volume_sets=round_half_up(volume),
                target_intensity_percent=round(intensity, 1),
                focus=f"Focus on {phase.primary_adaptation.value} at {intensity:.0f}% intensity.",
            )
        )

    return progression


def calculate_optimal_deload(
    cumulative_fatigue: float,
    recovery_profile: RecoveryProfile,
    last_phase: PeriodizationPhase,
) -> DeloadProtocol:
    """
    Prescribe the deload that follows a completed phase.

    Args:
        cumulative_fatigue: Current fatigue score
        recovery_profile: User's recovery characteristics
        last_phase: The phase just completed

    Returns:
        Passive rest when fatigue is far over threshold or recovery is poor,
        otherwise an active deload, deeper after a peaking phase
    """
    fatigue_ratio = cumulative_fatigue / recovery_profile.fatigue_threshold
    if (
        fatigue_ratio > PASSIVE_DELOAD_FATIGUE_RATIO
        or recovery_profile.recovery_rate < PASSIVE_DELOAD_RECOVERY_RATE
    ):
        return DeloadProtocol(
            type=DeloadType.PASSIVE,
            duration_days=3,
            volume_reduction_percent=100,
            intensity_reduction_percent=100,
            specialization_focus="Complete rest and recovery.",
        )

    volume_reduction, intensity_reduction = 50, 40
    if last_phase.primary_adaptation == Adaptation.PEAKING:
        volume_reduction, intensity_reduction = 60, 50

    return DeloadProtocol(
        type=DeloadType.ACTIVE,
        duration_days=7,
        volume_reduction_percent=volume_reduction,
        intensity_reduction_percent=intensity_reduction,
        specialization_focus="Technique refinement with light loads.",
    )


def project_adaptation(current_1rm: float, phase: PeriodizationPhase) -> float:
    """Rough 1RM projection after completing a phase, to one decimal."""
    return round(current_1rm * ADAPTATION_MULTIPLIERS[phase.primary_adaptation], 1)


def fit_phases_to_duration(
    phases: List[PeriodizationPhase], target_weeks: int
) -> List[PeriodizationPhase]:
    """
    Stretch or shrink a model's phases so their weeks sum to the target.

    Extra weeks go to the first phase; removed weeks come off the longest
    phase first. No phase drops below one week, so the result may still
    exceed the target when it is shorter than the number of phases.
    """
    fitted = [phase.model_copy() for phase in phases]
    difference = target_weeks - sum(p.duration_weeks for p in fitted)

    if difference > 0:
        fitted[0] = fitted[0].model_copy(
            update={"duration_weeks": fitted[0].duration_weeks + difference}
        )
    while difference < 0:
        longest = max(range(len(fitted)), key=lambda idx: fitted[idx].duration_weeks)
        if fitted[longest].duration_weeks <= 1:
            break
        fitted[longest] = fitted[longest].model_copy(
            update={"duration_weeks": fitted[longest].duration_weeks - 1}
        )
        difference += 1

    return fitted


class PeriodizationPlanner:
    """
    Builds the periodization outline for one user.

    Example:
        >>> planner = PeriodizationPlanner()
        >>> plan = planner.plan(enriched, landmarks)
        >>> plan.model_name
        'Hypertrophy-Focused Block Periodization'
    """

    def __init__(self):
        self.plan_decisions: List[PlanDecision] = []

    def plan(
        self,
        enriched: EnrichedProfile,
        landmarks: Dict[str, VolumeLandmarks],
        cumulative_fatigue: float = 0.0,
        session_fatigue_history: Optional[List[float]] = None,
    ) -> PeriodizationPlan:
        """
        Produce a PeriodizationPlan for an enriched profile.

        Args:
            enriched: Output of the ProfileEnricher
            landmarks: Volume landmarks by muscle group
            cumulative_fatigue: Known fatigue score at the start of the block
            session_fatigue_history: Logged per-session fatigue, oldest first,
                folded into the starting fatigue

        Returns:
            PeriodizationPlan with weekly targets, deload and decision log
        """
        self.plan_decisions = []

        model = select_model(enriched.experience_level.value, enriched.primary_goal)
        self.plan_decisions.append(
            PlanDecision(
                decision_point="Periodization model selection",
                input_factors=[
                    f"Primary goal: {enriched.primary_goal}",
                    f"Experience: {enriched.experience_level.value}",
                ],
                reasoning=f"Goal keywords and experience tier map to the {model.key} model.",
                outcome=model.name,
            )
        )

        target_weeks = program_duration_weeks(enriched.primary_goal)
        phases = model.phases
        if model.duration_weeks != target_weeks:
            phases = fit_phases_to_duration(model.phases, target_weeks)
            self.plan_decisions.append(
                PlanDecision(
                    decision_point="Phase length adjustment",
                    input_factors=[
                        f"Model length: {model.duration_weeks} weeks",
                        f"Goal target: {target_weeks} weeks",
                    ],
                    reasoning="Phase lengths were adjusted to match the program length for this goal.",
                    outcome=", ".join(f"{p.name} {p.duration_weeks}w" for p in phases),
                )
            )

        baseline = self._baseline_volume(landmarks)
        self.plan_decisions.append(
            PlanDecision(
                decision_point="Baseline weekly volume",
                input_factors=[f"{len(landmarks)} muscle groups", "Mean MAV"],
                reasoning="Weekly set targets are scaled from the average maximum adaptive volume.",
                outcome=f"{baseline} sets per muscle group per week",
            )
        )

        fatigue = cumulative_fatigue
        recovery = enriched.recovery_profile
        for session_fatigue in session_fatigue_history or []:
            fatigue = track_cumulative_fatigue(fatigue, session_fatigue, recovery.recovery_rate)

        deload = calculate_optimal_deload(fatigue, recovery, phases[-1])
        self.plan_decisions.append(
            PlanDecision(
                decision_point="Post-block deload",
                input_factors=[
                    f"Cumulative fatigue: {fatigue:.1f}",
                    f"Fatigue threshold: {recovery.fatigue_threshold:g}",
                    f"Recovery rate: {recovery.recovery_rate:g}",
                    f"Final phase: {phases[-1].name}",
                ],
                reasoning="Deload type follows the fatigue-to-threshold ratio and the final phase's adaptation.",
                outcome=f"{deload.type.value} deload, {deload.duration_days} days",
            )
        )

        logger.debug(
            f"Planned {model.name} for {enriched.profile.user_id}: "
            f"{sum(p.duration_weeks for p in phases)} weeks, baseline {baseline} sets"
        )

        return PeriodizationPlan(
            model_key=model.key,
            model_name=model.name,
            phases=[
                PhaseProgression(phase=phase, weeks=generate_phase_progression(phase, baseline))
                for phase in phases
            ],
            baseline_volume_sets=baseline,
            program_duration_weeks=sum(p.duration_weeks for p in phases),
            deload=deload,
            cumulative_fatigue=fatigue,
            plan_decisions=list(self.plan_decisions),
        )

    @staticmethod
    def _baseline_volume(landmarks: Dict[str, VolumeLandmarks]) -> int:
        if not landmarks:
            return 0
        return round_half_up(sum(l.mav for l in landmarks.values()) / len(landmarks))
