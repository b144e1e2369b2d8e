"""
Data schemas for generated training programs.

This module contains Pydantic models for representing a multi-week program:
phases, weeks, workout days and individual exercises. Field names are
snake_case in Python and camelCase on the wire, matching the JSON the
generative service is asked to emit.

Only the *shape* of a program is enforced here. Cross-field rules (phase
durations, week numbering, anchor placement) are reported by the
GuardianValidator so that a single malformed week does not hide every
other finding.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ExerciseTier(str, Enum):
    """Position of an exercise in the session hierarchy."""

    ANCHOR = "Anchor"
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    ACCESSORY = "Accessory"


TIER_ORDER = [
    ExerciseTier.ANCHOR,
    ExerciseTier.PRIMARY,
    ExerciseTier.SECONDARY,
    ExerciseTier.ACCESSORY,
]


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class PhaseType(str, Enum):
    """Training phase types."""

    ACCUMULATION = "Accumulation"
    INTENSIFICATION = "Intensification"
    REALIZATION = "Realization"
    DELOAD = "Deload"


class ProgressionStrategy(str, Enum):
    LINEAR = "Linear"
    DOUBLE_PROGRESSION = "Double Progression"
    REVERSE_PYRAMID = "Reverse Pyramid"
    WAVE_LOADING = "Wave Loading"
    AUTOREGULATED = "Autoregulated"


class ProgramModel(BaseModel):
    """Base for program models: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExerciseDetail(ProgramModel):
    """A single prescribed exercise."""

    name: str = Field(..., min_length=1, description="Exercise name")
    tier: ExerciseTier = Field(..., description="Hierarchy tier")
    sets: int = Field(..., gt=0, description="Number of working sets")
    reps: str = Field(..., min_length=1, description="Rep target, e.g. '8-12'")
    rpe: Optional[str] = Field(None, description="Target RPE, e.g. '7-8'")
    rest: str = Field(..., min_length=1, description="Rest between sets, e.g. '90s'")
    notes: Optional[str] = None
    is_anchor_lift: bool = Field(False, description="Marks the session's anchor lift")

    @field_validator("reps", "rpe", mode="before")
    @classmethod
    def coerce_numeric_to_str(cls, v):
        """Generated output sometimes uses bare numbers for rep and RPE targets."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_anchor(self) -> bool:
        return self.is_anchor_lift or self.tier == ExerciseTier.ANCHOR


class WorkoutDay(ProgramModel):
    """One day of a training week."""

    day_of_week: DayOfWeek
    focus: str = Field(..., min_length=1, description="Session focus, or 'Rest'")
    is_rest_day: bool = False
    exercises: List[ExerciseDetail] = Field(default_factory=list)
    estimated_duration: Optional[str] = None

    @field_validator("day_of_week", mode="before")
    @classmethod
    def normalize_day_name(cls, v):
        if isinstance(v, str):
            return v.strip().capitalize()
        return v


class TrainingWeek(ProgramModel):
    """Seven consecutive days within a phase."""

    week_number: int = Field(..., gt=0, description="Week number within the whole program")
    phase_week: int = Field(..., gt=0, description="Week number within the phase")
    progression_strategy: ProgressionStrategy
    intensity_focus: str = Field(..., min_length=1)
    days: List[WorkoutDay] = Field(..., min_length=7, max_length=7)
    weekly_volume_landmark: Optional[str] = None

    @field_validator("days")
    @classmethod
    def validate_unique_days(cls, v: List[WorkoutDay]) -> List[WorkoutDay]:
        """Each weekday appears exactly once."""
        days = [d.day_of_week for d in v]
        if len(days) != len(set(days)):
            raise ValueError("Week contains duplicate days")
        return v

    def total_sets(self) -> int:
        return sum(
            exercise.sets
            for day in self.days
            if not day.is_rest_day
            for exercise in day.exercises
        )


class TrainingPhase(ProgramModel):
    """A block of weeks sharing one training emphasis."""

    phase_name: str = Field(..., min_length=1)
    phase_type: PhaseType
    duration_weeks: int = Field(..., gt=0)
    primary_goal: str = Field(..., min_length=1)
    weeks: List[TrainingWeek] = Field(...)


class TrainingProgram(ProgramModel):
    """Complete multi-week training program."""

    program_name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    duration_weeks_total: int = Field(..., gt=0)
    periodization_model: str = Field(..., min_length=1)
    coach_intro: Optional[str] = None
    general_advice: Optional[str] = None
    generated_at: Optional[str] = None
    ai_model_used: Optional[str] = None
    total_volume_progression: Optional[str] = None
    anchor_lifts: Optional[List[str]] = None
    phases: List[TrainingPhase] = Field(..., min_length=1)

    def all_weeks(self) -> List[TrainingWeek]:
        """Weeks across every phase, in program order."""
        return [week for phase in self.phases for week in phase.weeks]
