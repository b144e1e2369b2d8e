"""
Prompt construction for program generation.

The generative service receives a single prompt assembled from the
enriched profile, the computed volume landmarks, any weak-point protocol,
the periodization outline and a fixed set of training guidelines, plus the
exact JSON shape it must return.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from program_pipeline.schemas import (
    EnrichedProfile,
    PeriodizationPlan,
    VolumeLandmarks,
    WeakPointProtocol,
)


class GenerationContext(BaseModel):
    """Everything the generator needs to write one program."""

    enriched: EnrichedProfile
    landmarks: Dict[str, VolumeLandmarks]
    weak_points: Optional[WeakPointProtocol] = None
    plan: PeriodizationPlan


SYSTEM_PROMPT = (
    "You are an expert strength and conditioning coach. You design evidence-based, "
    "periodized resistance training programs and always answer with a single JSON object."
)

VOLUME_GUIDELINES = """\
VOLUME
- Keep weekly sets per muscle group between its MEV and MRV.
- Start new blocks near MEV and build toward MAV; reserve MRV for short overreaching weeks.
- Lower volume targets when recovery capacity is low or life stress is high."""

AUTOREGULATION_GUIDELINES = """\
INTENSITY AND RPE
- RPE 6-8 for technique work, 7-9 for hypertrophy work, 8-10 for strength work.
- Prescribe RPE ranges rather than fixed loads so sessions adapt to daily readiness.
- Accessory work should stop 1-3 reps short of failure."""

PERIODIZATION_GUIDELINES = """\
PERIODIZATION
- Follow the phase outline below; each phase lists its length and weekly targets.
- Accumulation phases must not reduce weekly volume from one week to the next.
- Deload phases keep total weekly sets at 15 or fewer."""

EXERCISE_SELECTION_GUIDELINES = """\
EXERCISE SELECTION
- Every training day starts with exactly one Anchor lift (tier "Anchor", isAnchorLift true).
- Follow it with 2-3 Primary or Secondary compound movements, then 2-4 Accessory exercises.
- Order exercises Anchor, Primary, Secondary, Accessory.
- Use 2-8 sets for every non-Accessory exercise.
- Only use equipment the athlete has; never program contraindicated movements."""

PROGRAM_JSON_SHAPE = """\
{
  "programName": string,
  "description": string,
  "durationWeeksTotal": integer,
  "coachIntro": string,
  "generalAdvice": string,
  "periodizationModel": string,
  "anchorLifts": [string],
  "phases": [
    {
      "phaseName": string,
      "phaseType": "Accumulation" | "Intensification" | "Realization" | "Deload",
      "durationWeeks": integer,
      "primaryGoal": string,
      "weeks": [
        {
          "weekNumber": integer (1..durationWeeksTotal, sequential across phases),
          "phaseWeek": integer,
          "progressionStrategy": "Linear" | "Double Progression" | "Reverse Pyramid" | "Wave Loading" | "Autoregulated",
          "intensityFocus": string,
          "weeklyVolumeLandmark": string,
          "days": [
            {
              "dayOfWeek": "Monday" | ... | "Sunday" (all seven, once each),
              "focus": string,
              "isRestDay": boolean,
              "estimatedDuration": string,
              "exercises": [
                {
                  "name": string,
                  "tier": "Anchor" | "Primary" | "Secondary" | "Accessory",
                  "isAnchorLift": boolean,
                  "sets": integer,
                  "reps": string,
                  "rpe": string,
                  "rest": string,
                  "notes": string
                }
              ]
            }
          ]
        }
      ]
    }
  ]
}"""


def _profile_section(enriched: EnrichedProfile) -> List[str]:
    profile = enriched.profile
    params = enriched.volume_parameters
    lines = [
        "ATHLETE PROFILE",
        f"- Experience: {enriched.experience_level.value} "
        f"(training age {params.training_age:g} years, {enriched.training_age_months} months)",
        f"- Primary goal: {enriched.primary_goal}",
        f"- Training days per week: {enriched.training_frequency_days}",
        f"- Session duration: {enriched.session_duration}",
        f"- Equipment: {', '.join(profile.equipment) if profile.equipment else 'Not specified'}",
        f"- Recovery capacity: {params.recovery_capacity}/10, stress level: {params.stress_level}/10",
    ]
    if profile.age:
        lines.append(f"- Age: {profile.age}")
    if enriched.injuries.identified_areas:
        lines.append(f"- Injured areas: {', '.join(enriched.injuries.identified_areas)}")
        lines.append(f"- Avoid: {', '.join(enriched.injuries.contraindications)}")
    elif profile.injuries_limitations:
        lines.append(f"- Reported limitations: {profile.injuries_limitations}")
    return lines


def _lift_value(value: Optional[float]) -> str:
    return f"{value:g}" if value else "Not provided"


def _strength_section(enriched: EnrichedProfile) -> List[str]:
    profile = enriched.profile
    return [
        f"STRENGTH PROFILE ({profile.weight_unit.value})",
        f"- Squat 1RM: {_lift_value(profile.squat_1rm)}",
        f"- Bench Press 1RM: {_lift_value(profile.bench_1rm)}",
        f"- Deadlift 1RM: {_lift_value(profile.deadlift_1rm)}",
        f"- Overhead Press 1RM: {_lift_value(profile.overhead_press_1rm)}",
    ]


def _autoregulation_section(enriched: EnrichedProfile) -> List[str]:
    recovery = enriched.recovery_profile
    rpe = enriched.rpe_profile
    hyp_low, hyp_high = rpe.hypertrophy_range
    str_low, str_high = rpe.strength_range
    return [
        "AUTOREGULATION",
        "- RPE targets: Accumulation 6-8, Intensification 7-9, Realization 8-10, Deload 4-6",
        f"- Hypertrophy work RPE {hyp_low:g}-{hyp_high:g}, strength work RPE {str_low:g}-{str_high:g}",
        "- High readiness: add 2-5% load or 1-2 sets; low readiness: cut intensity 10-20% "
        "or volume 20-30%",
        f"- Recovery rate: {recovery.recovery_rate:g}/2.0 (1.0 = average)",
        f"- Fatigue threshold: {recovery.fatigue_threshold:g}/10",
    ]


def _landmark_section(landmarks: Dict[str, VolumeLandmarks]) -> List[str]:
    lines = ["VOLUME LANDMARKS (weekly sets: MEV / MAV / MRV)"]
    for group, landmark in landmarks.items():
        lines.append(f"- {group.capitalize()}: {landmark.mev} / {landmark.mav} / {landmark.mrv}")
    return lines


def _weak_point_section(weak_points: Optional[WeakPointProtocol]) -> List[str]:
    if weak_points is None or not weak_points.issues:
        return []
    lines = ["WEAK POINTS"]
    for issue in weak_points.issues:
        lines.append(
            f"- {issue.ratio_name}: {issue.measured_ratio} "
            f"(minimum {issue.standard_minimum}, {issue.severity.value})"
        )
    lines.append(f"- Include corrective work from: {', '.join(weak_points.correction_exercises)}")
    lines.append(f"- Reassess in {weak_points.reassessment_period_weeks} weeks")
    return lines


def _plan_section(plan: PeriodizationPlan) -> List[str]:
    lines = [
        "PERIODIZATION OUTLINE",
        f"- Model: {plan.model_name}",
        f"- Program length: {plan.program_duration_weeks} weeks",
    ]
    for entry in plan.phases:
        phase = entry.phase
        low, high = phase.intensity_range
        lines.append(
            f"- {phase.name}: {phase.duration_weeks} weeks, {low:g}-{high:g}% 1RM, "
            f"{phase.volume_progression.value} volume, {phase.primary_adaptation.value}"
        )
        for week in entry.weeks:
            lines.append(
                f"  - Week {week.week_in_phase}: ~{week.target_volume_sets} sets per muscle group, "
                f"{week.target_intensity_percent:g}% intensity"
            )
    lines.append(
        f"- After the block: {plan.deload.type.value} deload for {plan.deload.duration_days} days "
        f"({plan.deload.specialization_focus})"
    )
    return lines


def build_program_prompt(context: GenerationContext) -> str:
    """
    Assemble the user prompt for one program.

    Args:
        context: Enriched profile, landmarks, weak points and periodization plan

    Returns:
        Prompt text ending with the required JSON shape
    """
    sections = [
        _profile_section(context.enriched),
        _strength_section(context.enriched),
        _autoregulation_section(context.enriched),
        _landmark_section(context.landmarks),
        _weak_point_section(context.weak_points),
        _plan_section(context.plan),
        [VOLUME_GUIDELINES],
        [AUTOREGULATION_GUIDELINES],
        [PERIODIZATION_GUIDELINES],
        [EXERCISE_SELECTION_GUIDELINES],
        [
            f"Create a {context.plan.program_duration_weeks}-week program using the "
            f'"{context.plan.model_name}" model. Set durationWeeksTotal to '
            f"{context.plan.program_duration_weeks} and make each phase's durationWeeks "
            "equal the number of weeks it contains.",
            "Return ONLY a JSON object with this shape:",
            PROGRAM_JSON_SHAPE,
        ],
    ]
    return "\n\n".join("\n".join(section) for section in sections if section)
