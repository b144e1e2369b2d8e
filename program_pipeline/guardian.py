"""
Program validation ("Guardian").

This module is the final gate before a generated program reaches a user.
It checks the candidate's shape, then applies scientific, structural and
equipment rules. Every rule runs even after another fails, so a single
result lists everything that needs fixing.
"""

from typing import Any, List, Union

from loguru import logger
from pydantic import ValidationError

from program_pipeline.program_schemas import (
    TIER_ORDER,
    ExerciseTier,
    PhaseType,
    TrainingProgram,
    WorkoutDay,
)
from program_pipeline.schemas import (
    ErrorKind,
    ErrorSeverity,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
    WarningKind,
)

MAX_SETS_PER_EXERCISE = 8
MIN_SETS_NON_ACCESSORY = 2
DELOAD_MAX_AVERAGE_WEEKLY_SETS = 15
MAX_EXERCISES_MIXED_EQUIPMENT = 6

RECOGNISED_PHASE_PATTERNS = [
    [PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.REALIZATION],
    [PhaseType.ACCUMULATION, PhaseType.DELOAD],
    [PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.DELOAD],
    [PhaseType.ACCUMULATION, PhaseType.ACCUMULATION, PhaseType.INTENSIFICATION, PhaseType.DELOAD],
]

EQUIPMENT_KEYWORDS = {
    "barbell": ("barbell",),
    "dumbbell": ("dumbbell",),
    "machine": ("machine", "cable"),
}


def _location(phase_idx: int, week_number: int = None, day: WorkoutDay = None) -> str:
    parts = [f"Phase {phase_idx + 1}"]
    if week_number is not None:
        parts.append(f"Week {week_number}")
    if day is not None:
        parts.append(day.day_of_week.value)
    return ", ".join(parts)


class GuardianValidator:
    """
    Validates candidate programs against schema, scientific and structural rules.

    Usage:
        >>> result = GuardianValidator().validate(candidate_dict)
        >>> result.is_valid
        True
    """

    def validate(self, candidate: Union[dict, TrainingProgram, Any]) -> ValidationResult:
        """
        Validate a program candidate.

        This is the main entry point. It:
        1. Checks the candidate against the TrainingProgram shape
        2. Checks anchor placement, set counts and phase volume trends
        3. Checks durations and week numbering
        4. Flags sessions that need too many kinds of equipment

        A schema failure is reported alone since the later passes need a
        well-formed program.

        Args:
            candidate: Untyped program, usually the generator's parsed JSON

        Returns:
            ValidationResult; valid only when no errors were found
        """
        errors: List[ValidationIssue] = []
        warnings: List[ValidationWarning] = []

        try:
            program = (
                candidate
                if isinstance(candidate, TrainingProgram)
                else TrainingProgram.model_validate(candidate)
            )
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            errors.append(
                ValidationIssue(
                    kind=ErrorKind.SCHEMA,
                    severity=ErrorSeverity.CRITICAL,
                    message=f"Schema validation failed: {details}",
                    suggested_fix="Regenerate program with correct schema structure",
                )
            )
            return self._result(errors, warnings)
        except Exception as e:
            errors.append(
                ValidationIssue(
                    kind=ErrorKind.STRUCTURAL,
                    severity=ErrorSeverity.CRITICAL,
                    message=f"Unexpected validation error: {e}",
                )
            )
            return self._result(errors, warnings)

        self._check_scientific(program, errors, warnings)
        self._check_structure(program, errors)
        self._check_equipment(program, warnings)

        return self._result(errors, warnings)

    def _result(
        self, errors: List[ValidationIssue], warnings: List[ValidationWarning]
    ) -> ValidationResult:
        result = ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
        logger.debug(
            f"Guardian result: valid={result.is_valid}, "
            f"errors={len(errors)}, warnings={len(warnings)}"
        )
        return result

    # ------------------------------------------------------------------
    # Scientific rules
    # ------------------------------------------------------------------

    def _check_scientific(
        self,
        program: TrainingProgram,
        errors: List[ValidationIssue],
        warnings: List[ValidationWarning],
    ) -> None:
        for phase_idx, phase in enumerate(program.phases):
            for week in phase.weeks:
                for day in week.days:
                    if day.is_rest_day or not day.exercises:
                        continue
                    location = _location(phase_idx, week.week_number, day)
                    self._check_anchor(day, location, errors, warnings)
                    self._check_tier_order(day, location, warnings)
                    self._check_set_counts(day, location, errors, warnings)

            self._check_phase_volume(phase_idx, phase, warnings)

        phase_types = [phase.phase_type for phase in program.phases]
        if len(phase_types) > 1 and not any(
            phase_types[: len(pattern)] == pattern for pattern in RECOGNISED_PHASE_PATTERNS
        ):
            warnings.append(
                ValidationWarning(
                    kind=WarningKind.OPTIMIZATION,
                    message=(
                        "Phase sequence may not follow established periodization patterns: "
                        + " -> ".join(t.value for t in phase_types)
                    ),
                )
            )

    def _check_anchor(
        self,
        day: WorkoutDay,
        location: str,
        errors: List[ValidationIssue],
        warnings: List[ValidationWarning],
    ) -> None:
        anchors = [exercise for exercise in day.exercises if exercise.is_anchor]

        if not anchors:
            errors.append(
                ValidationIssue(
                    kind=ErrorKind.SCIENTIFIC,
                    severity=ErrorSeverity.HIGH,
                    message=f"No anchor lift found for {day.focus}",
                    location=location,
                    suggested_fix="Designate the most demanding compound lift as the anchor",
                )
            )
            return

        if len(anchors) > 1:
            warnings.append(
                ValidationWarning(
                    kind=WarningKind.OPTIMIZATION,
                    message=f"Multiple anchor lifts detected for {day.focus}",
                    location=location,
                )
            )

        if not day.exercises[0].is_anchor:
            warnings.append(
                ValidationWarning(
                    kind=WarningKind.BEST_PRACTICE,
                    message="Anchor lift should be performed first in the workout",
                    location=location,
                )
            )

    def _check_tier_order(
        self, day: WorkoutDay, location: str, warnings: List[ValidationWarning]
    ) -> None:
        ranks = [TIER_ORDER.index(exercise.tier) for exercise in day.exercises]
        if any(later < earlier for earlier, later in zip(ranks, ranks[1:])):
            warnings.append(
                ValidationWarning(
                    kind=WarningKind.BEST_PRACTICE,
                    message="Exercise order may not follow Anchor, Primary, Secondary, Accessory",
                    location=location,
                )
            )

    def _check_set_counts(
        self,
        day: WorkoutDay,
        location: str,
        errors: List[ValidationIssue],
        warnings: List[ValidationWarning],
    ) -> None:
        for exercise in day.exercises:
            if exercise.sets > MAX_SETS_PER_EXERCISE:
                warnings.append(
                    ValidationWarning(
                        kind=WarningKind.OPTIMIZATION,
                        message=f"High set count ({exercise.sets}) for {exercise.name}",
                        location=location,
                    )
                )
            if exercise.tier != ExerciseTier.ACCESSORY and exercise.sets < MIN_SETS_NON_ACCESSORY:
                errors.append(
                    ValidationIssue(
                        kind=ErrorKind.SCIENTIFIC,
                        severity=ErrorSeverity.MEDIUM,
                        message=(
                            f"Low set count ({exercise.sets}) for {exercise.name}, "
                            f"insufficient for {exercise.tier.value} tier"
                        ),
                        location=location,
                        suggested_fix=f"Program at least {MIN_SETS_NON_ACCESSORY} sets",
                    )
                )

    def _check_phase_volume(self, phase_idx: int, phase, warnings: List[ValidationWarning]) -> None:
        weekly_sets = [week.total_sets() for week in phase.weeks]

        if phase.phase_type == PhaseType.ACCUMULATION:
            for week, previous, current in zip(phase.weeks[1:], weekly_sets, weekly_sets[1:]):
                if current < previous:
                    warnings.append(
                        ValidationWarning(
                            kind=WarningKind.OPTIMIZATION,
                            message=(
                                f"Volume decreased during accumulation phase "
                                f"({previous} to {current} sets)"
                            ),
                            location=_location(phase_idx, week.week_number),
                        )
                    )

        if phase.phase_type == PhaseType.DELOAD and weekly_sets:
            average = sum(weekly_sets) / len(weekly_sets)
            if average > DELOAD_MAX_AVERAGE_WEEKLY_SETS:
                warnings.append(
                    ValidationWarning(
                        kind=WarningKind.OPTIMIZATION,
                        message=f"Deload phase volume may be too high ({average:.1f} sets per week)",
                        location=_location(phase_idx),
                    )
                )

    # ------------------------------------------------------------------
    # Structural rules
    # ------------------------------------------------------------------

    def _check_structure(self, program: TrainingProgram, errors: List[ValidationIssue]) -> None:
        phase_total = sum(phase.duration_weeks for phase in program.phases)
        if phase_total != program.duration_weeks_total:
            errors.append(
                ValidationIssue(
                    kind=ErrorKind.STRUCTURAL,
                    severity=ErrorSeverity.HIGH,
                    message=(
                        f"Total duration mismatch: program declares {program.duration_weeks_total} "
                        f"weeks, but phases sum to {phase_total} weeks"
                    ),
                    suggested_fix="Ensure phase durations sum to total program duration",
                )
            )

        for phase_idx, phase in enumerate(program.phases):
            if phase.duration_weeks != len(phase.weeks):
                errors.append(
                    ValidationIssue(
                        kind=ErrorKind.STRUCTURAL,
                        severity=ErrorSeverity.HIGH,
                        message=(
                            f"Phase duration mismatch: declared {phase.duration_weeks} weeks, "
                            f"but has {len(phase.weeks)} weeks"
                        ),
                        location=_location(phase_idx),
                    )
                )

        expected = 1
        for phase_idx, phase in enumerate(program.phases):
            for week in phase.weeks:
                if week.week_number != expected:
                    errors.append(
                        ValidationIssue(
                            kind=ErrorKind.STRUCTURAL,
                            severity=ErrorSeverity.MEDIUM,
                            message=(
                                f"Week numbering error: expected week {expected}, "
                                f"found week {week.week_number}"
                            ),
                            location=_location(phase_idx, week.week_number),
                            suggested_fix="Number weeks sequentially from 1 across all phases",
                        )
                    )
                expected += 1

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------

    def _check_equipment(self, program: TrainingProgram, warnings: List[ValidationWarning]) -> None:
        for phase_idx, phase in enumerate(program.phases):
            for week in phase.weeks:
                for day in week.days:
                    if len(day.exercises) <= MAX_EXERCISES_MIXED_EQUIPMENT:
                        continue
                    names = [exercise.name.lower() for exercise in day.exercises]
                    kinds = {
                        kind
                        for kind, keywords in EQUIPMENT_KEYWORDS.items()
                        if any(keyword in name for name in names for keyword in keywords)
                    }
                    if len(kinds) == len(EQUIPMENT_KEYWORDS):
                        warnings.append(
                            ValidationWarning(
                                kind=WarningKind.OPTIMIZATION,
                                message="Workout may require too many different equipment types",
                                location=_location(phase_idx, week.week_number, day),
                            )
                        )


def summarize_errors(result: ValidationResult) -> str:
    """
    Render a result's errors as a single human-readable message.

    Returns:
        Empty string for a valid result
    """
    if not result.errors:
        return ""
    parts = []
    for error in result.errors:
        text = f"[{error.severity.value}/{error.kind.value}] {error.message}"
        if error.location:
            text += f" ({error.location})"
        parts.append(text)
    return f"Program validation failed with {len(result.errors)} error(s): " + "; ".join(parts)
