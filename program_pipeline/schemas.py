"""
Data schemas for profile enrichment, volume planning and generation records.

This module contains Pydantic models for:
- Onboarding profiles and the parameters inferred from them
- Volume landmarks, strength ratios and weak-point protocols
- Periodization phases, weekly progressions and deload prescriptions
- Generation records tracked by the pipeline orchestrator
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from program_pipeline.program_schemas import TrainingProgram


# ============================================================================
# ENUMS
# ============================================================================

class ExperienceLevel(str, Enum):
    """Self-reported training experience tier."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ExperienceLevel":
        """Case-insensitive lookup; unknown or missing tiers map to Beginner."""
        if value:
            for level in cls:
                if level.value.lower() == value.strip().lower():
                    return level
        return cls.BEGINNER


class WeightUnit(str, Enum):
    KG = "kg"
    LBS = "lbs"


class VolumeProgression(str, Enum):
    """How weekly set volume evolves across a phase."""

    RAMPING = "ramping"
    STABLE = "stable"
    LINEAR = "linear"


class Adaptation(str, Enum):
    """Primary physiological target of a phase."""

    HYPERTROPHY = "hypertrophy"
    STRENGTH = "strength"
    PEAKING = "peaking"
    RECOVERY = "recovery"


class DeloadType(str, Enum):
    ACTIVE = "active"
    PASSIVE = "passive"


class RatioSeverity(str, Enum):
    MODERATE = "Moderate"
    HIGH = "High"


class GenerationStatus(str, Enum):
    """Lifecycle of a generation record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


SESSION_DURATION_OPTIONS = [
    "30-45 minutes",
    "45-60 minutes",
    "60-75 minutes",
    "75+ minutes",
]

GOAL_CATEGORIES = [
    "Muscle Gain: General",
    "Muscle Gain: Hypertrophy Focus",
    "Strength Gain: Powerlifting Peak",
    "Strength Gain: General",
    "Endurance Improvement: Gym Cardio",
    "Sport-Specific S&C: Explosive Power",
    "General Fitness: Foundational Strength",
    "Weight Loss: Gym Based",
    "Recomposition: Lean Mass & Fat Loss",
    "Bodyweight Mastery",
]

EQUIPMENT_OPTIONS = [
    "Full Gym (Barbells, Racks, Machines)",
    "Dumbbells",
    "Kettlebells",
    "Resistance Bands",
    "Bodyweight Only",
    "Cardio Machines (Treadmill, Bike, Rower, Elliptical)",
]


# ============================================================================
# ONBOARDING PROFILE
# ============================================================================

class StrengthProfile(BaseModel):
    """Estimated one-rep maxes for the four primary lifts."""

    squat: float = Field(..., ge=0, description="Back squat 1RM")
    bench: float = Field(..., ge=0, description="Bench press 1RM")
    deadlift: float = Field(..., ge=0, description="Deadlift 1RM")
    overhead_press: float = Field(..., ge=0, description="Standing overhead press 1RM")


class UserProfile(BaseModel):
    """
    Onboarding answers for a single user.

    Every field beyond the identifier is optional; the ProfileEnricher
    applies defaults for anything missing rather than rejecting the profile.
    """

    user_id: str = Field(..., min_length=1, description="Unique user identifier")
    name: Optional[str] = Field(None, description="Display name")
    age: Optional[int] = Field(None, ge=10, le=100, description="Age in years")
    experience_level: Optional[str] = Field(
        None, description="Beginner, Intermediate or Advanced (free text tolerated)"
    )
    primary_goal: Optional[str] = Field(
        None, description="Onboarding goal category, e.g. 'Muscle Gain: General'"
    )
    training_frequency_days: Optional[int] = Field(
        None, ge=1, le=7, description="Training days per week"
    )
    session_duration: Optional[str] = Field(
        None, description="Preferred session length category, e.g. '45-60 minutes'"
    )
    equipment: List[str] = Field(default_factory=list, description="Available equipment")
    injuries_limitations: Optional[str] = Field(
        None, description="Free-text description of injuries or limitations"
    )
    weight_unit: WeightUnit = Field(WeightUnit.KG, description="Unit for 1RM estimates")
    squat_1rm: Optional[float] = Field(None, ge=0)
    bench_1rm: Optional[float] = Field(None, ge=0)
    deadlift_1rm: Optional[float] = Field(None, ge=0)
    overhead_press_1rm: Optional[float] = Field(None, ge=0)

    def strength_profile(self) -> Optional[StrengthProfile]:
        """
        Build a StrengthProfile when all four lifts are known.

        Returns:
            StrengthProfile, or None if any estimate is missing or zero
        """
        lifts = [self.squat_1rm, self.bench_1rm, self.deadlift_1rm, self.overhead_press_1rm]
        if any(value is None or value <= 0 for value in lifts):
            return None
        return StrengthProfile(
            squat=self.squat_1rm,
            bench=self.bench_1rm,
            deadlift=self.deadlift_1rm,
            overhead_press=self.overhead_press_1rm,
        )


# ============================================================================
# ENRICHED PROFILE
# ============================================================================

class VolumeParameters(BaseModel):
    """Parameters inferred from onboarding answers that scale training volume."""

    training_age: float = Field(..., ge=0, description="Estimated training age in years")
    recovery_capacity: int = Field(..., ge=1, le=10, description="Recovery capacity score")
    stress_level: int = Field(..., ge=1, le=10, description="Estimated life stress score")
    volume_tolerance: float = Field(1.0, gt=0, description="Individual volume tolerance multiplier")


class InjurySummary(BaseModel):
    """Body areas flagged in the injury text and the movements to avoid."""

    identified_areas: List[str] = Field(default_factory=list)
    contraindications: List[str] = Field(default_factory=list)


class RecoveryProfile(BaseModel):
    """Recovery characteristics used for deload and load adjustments."""

    fatigue_threshold: float = Field(7, ge=1, le=10)
    recovery_rate: float = Field(1.0, ge=0.5, le=2.0)
    sleep_quality: float = Field(7, ge=1, le=10)
    recovery_modalities: List[str] = Field(
        default_factory=lambda: ["Stretching", "Hydration"]
    )


class RPEProfile(BaseModel):
    """Target RPE ranges and autoregulation adjustments."""

    hypertrophy_range: Tuple[float, float] = (7, 9)
    strength_range: Tuple[float, float] = (8, 10)
    ready_to_go_adjustment: float = 1
    feeling_good_adjustment: float = 0
    sore_tired_adjustment: float = -1


class EnrichedProfile(BaseModel):
    """A UserProfile with every parameter downstream stages need."""

    profile: UserProfile
    experience_level: ExperienceLevel
    training_frequency_days: int
    session_duration: str
    primary_goal: str
    volume_parameters: VolumeParameters
    injuries: InjurySummary
    recovery_profile: RecoveryProfile = Field(default_factory=RecoveryProfile)
    rpe_profile: RPEProfile = Field(default_factory=RPEProfile)
    training_age_months: int = Field(..., ge=0)


# ============================================================================
# VOLUME & WEAK POINTS
# ============================================================================

class VolumeLandmarks(BaseModel):
    """Weekly set landmarks for one muscle group."""

    model_config = ConfigDict(populate_by_name=True)

    mev: int = Field(..., ge=0, alias="MEV", description="Minimum effective volume")
    mav: int = Field(..., ge=0, alias="MAV", description="Maximum adaptive volume")
    mrv: int = Field(..., ge=0, alias="MRV", description="Maximum recoverable volume")

    @model_validator(mode="after")
    def validate_ordering(self) -> "VolumeLandmarks":
        """MEV <= MAV <= MRV must always hold."""
        if not (self.mev <= self.mav <= self.mrv):
            raise ValueError(
                f"Volume landmarks out of order: MEV={self.mev}, MAV={self.mav}, MRV={self.mrv}"
            )
        return self


class RatioIssue(BaseModel):
    """A strength ratio that falls below its minimum standard."""

    ratio_name: str
    measured_ratio: float
    standard_minimum: float
    severity: RatioSeverity
    explanation: str


class WeakPointProtocol(BaseModel):
    """Detected imbalances and the corrective work prescribed for them."""

    issues: List[RatioIssue] = Field(default_factory=list)
    correction_exercises: List[str] = Field(default_factory=list)
    primary_weak_points: List[str] = Field(default_factory=list)
    reassessment_period_weeks: int = Field(..., gt=0)


# ============================================================================
# PERIODIZATION
# ============================================================================

class PeriodizationPhase(BaseModel):
    """One block of a periodization model."""

    name: str = Field(..., min_length=1)
    duration_weeks: int = Field(..., gt=0)
    intensity_range: Tuple[float, float] = Field(
        ..., description="Low and high intensity as % of 1RM"
    )
    volume_progression: VolumeProgression
    primary_adaptation: Adaptation

    @field_validator("intensity_range")
    @classmethod
    def validate_intensity_range(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        low, high = v
        if low > high:
            raise ValueError(f"Intensity range low ({low}) exceeds high ({high})")
        return v


class WeeklyProgression(BaseModel):
    """Volume and intensity targets for one week of a phase."""

    week_in_phase: int = Field(..., gt=0)
    target_volume_sets: int = Field(..., ge=0)
    target_intensity_percent: float
    focus: str


class DeloadProtocol(BaseModel):
    """Deload prescription following a training block."""

    type: DeloadType
    duration_days: int = Field(..., gt=0)
    volume_reduction_percent: int = Field(..., ge=0, le=100)
    intensity_reduction_percent: int = Field(..., ge=0, le=100)
    specialization_focus: str


class PlanDecision(BaseModel):
    """
    Documents a specific decision made while planning a program.

    Stored with the generation metadata to explain why certain choices were made.
    """

    decision_point: str = Field(..., min_length=5, description="The decision that was made")
    input_factors: List[str] = Field(
        ..., min_length=1, description="Factors that influenced this decision"
    )
    reasoning: str = Field(..., min_length=10, description="Why this decision was made")
    outcome: str = Field(..., min_length=3, description="The resulting choice")


class PhaseProgression(BaseModel):
    """A phase together with its week-by-week targets."""

    phase: PeriodizationPhase
    weeks: List[WeeklyProgression]


class PeriodizationPlan(BaseModel):
    """The periodization outline handed to the program generator."""

    model_key: str
    model_name: str
    phases: List[PhaseProgression] = Field(..., min_length=1)
    baseline_volume_sets: int = Field(..., ge=0)
    program_duration_weeks: int = Field(..., gt=0)
    deload: DeloadProtocol
    cumulative_fatigue: float = Field(0.0, ge=0)
    plan_decisions: List[PlanDecision] = Field(default_factory=list)


# ============================================================================
# GENERATION RECORDS
# ============================================================================

class PipelineArtifacts(BaseModel):
    """Intermediate results persisted next to a completed program."""

    volume_landmarks: Dict[str, VolumeLandmarks] = Field(default_factory=dict)
    weak_point_analysis: Optional[WeakPointProtocol] = None
    periodization_model: Optional[str] = None
    ai_model_version: Optional[str] = None


class GenerationRecord(BaseModel):
    """
    Persistent state of one program generation request.

    Created when the user requests a program and mutated only by the
    pipeline orchestrator.
    """

    id: str
    user_id: str
    status: GenerationStatus
    profile_snapshot: UserProfile
    program: Optional[TrainingProgram] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    volume_landmarks: Dict[str, VolumeLandmarks] = Field(default_factory=dict)
    weak_point_analysis: Optional[WeakPointProtocol] = None
    periodization_model: Optional[str] = None
    ai_model_version: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# PROGRAM VALIDATION
# ============================================================================

class ErrorKind(str, Enum):
    SCHEMA = "SCHEMA"
    SCIENTIFIC = "SCIENTIFIC"
    STRUCTURAL = "STRUCTURAL"


class ErrorSeverity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class WarningKind(str, Enum):
    OPTIMIZATION = "OPTIMIZATION"
    BEST_PRACTICE = "BEST_PRACTICE"


class ValidationIssue(BaseModel):
    """A rule violation that blocks a program from being accepted."""

    kind: ErrorKind
    severity: ErrorSeverity
    message: str
    location: Optional[str] = Field(None, description="e.g. 'Phase 1, Week 2, Monday'")
    suggested_fix: Optional[str] = None


class ValidationWarning(BaseModel):
    """A non-blocking finding."""

    kind: WarningKind
    message: str
    location: Optional[str] = None


class ValidationResult(BaseModel):
    """Outcome of validating one program candidate."""

    is_valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_consistency(self) -> "ValidationResult":
        """A result can never be valid while carrying errors."""
        if self.is_valid and self.errors:
            raise ValueError("ValidationResult cannot be valid with errors present")
        return self
