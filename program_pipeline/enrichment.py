"""
Profile enrichment.

Derives the parameters that scale training volume from raw onboarding
answers, and turns the free-text injury description into body areas and
movement contraindications. All inference is deterministic and never
raises: missing answers fall back to conservative defaults.
"""

import re
from typing import List, Optional, Tuple

from loguru import logger

from program_pipeline.schemas import (
    EnrichedProfile,
    ExperienceLevel,
    InjurySummary,
    RecoveryProfile,
    RPEProfile,
    UserProfile,
    VolumeParameters,
)

DEFAULT_TRAINING_FREQUENCY = 3
DEFAULT_SESSION_DURATION = "30-45 minutes"
DEFAULT_PRIMARY_GOAL = "General Fitness: Foundational Strength"

TRAINING_AGE_YEARS = {
    ExperienceLevel.BEGINNER: 0.25,
    ExperienceLevel.INTERMEDIATE: 1.25,
    ExperienceLevel.ADVANCED: 3.0,
}

# Session duration category -> recovery capacity points
SESSION_DURATION_POINTS = {
    "30-45 minutes": 1,
    "45-60 minutes": 2,
    "60-75 minutes": 3,
    "75+ minutes": 3,
}

# (pattern, body area, contraindicated movements)
INJURY_PATTERNS: List[Tuple[str, str, List[str]]] = [
    (
        r"\b(knee|patella)\b",
        "Knees",
        ["High-impact plyometrics", "Deep squats if painful"],
    ),
    (
        r"\b(back|spine|disc)\b",
        "Lower Back",
        ["Heavy deadlifts from floor", "Barbell back squats"],
    ),
    (
        r"\b(shoulder|rotator cuff)\b",
        "Shoulders",
        ["Overhead pressing", "Behind-the-neck movements"],
    ),
]


def infer_training_age(experience_level: Optional[str]) -> float:
    """
    Estimate training age in years from the self-reported tier.

    Args:
        experience_level: Beginner, Intermediate or Advanced (any case)

    Returns:
        Training age in years; unknown tiers are treated as Beginner
    """
    return TRAINING_AGE_YEARS[ExperienceLevel.parse(experience_level)]


def infer_recovery_capacity(
    training_frequency_days: Optional[int], session_duration: Optional[str]
) -> int:
    """
    Score recovery capacity as 3, 6 or 9.

    Frequency and session length each contribute points; the total is
    bucketed so that small answer changes don't shift volume targets.

    Args:
        training_frequency_days: Training days per week (default 3)
        session_duration: Session duration category (default "30-45 minutes")

    Returns:
        Recovery capacity score on a 1-10 scale
    """
    frequency = training_frequency_days or DEFAULT_TRAINING_FREQUENCY
    duration = session_duration or DEFAULT_SESSION_DURATION

    score = 0
    if frequency >= 6:
        score += 3
    elif frequency >= 4:
        score += 2
    else:
        score += 1

    score += SESSION_DURATION_POINTS.get(duration.strip(), 1)

    if score >= 5:
        return 9
    if score >= 3:
        return 6
    return 3


def infer_stress_level(training_frequency_days: Optional[int]) -> int:
    """
    Estimate life stress from training frequency.

    People who can train most days are assumed to have more slack in
    their schedule. Returns 3, 6 or 8.
    """
    frequency = training_frequency_days or DEFAULT_TRAINING_FREQUENCY
    if frequency >= 6:
        return 3
    if frequency >= 4:
        return 6
    return 8


def infer_volume_parameters(profile: UserProfile) -> VolumeParameters:
    return VolumeParameters(
        training_age=infer_training_age(profile.experience_level),
        recovery_capacity=infer_recovery_capacity(
            profile.training_frequency_days, profile.session_duration
        ),
        stress_level=infer_stress_level(profile.training_frequency_days),
        volume_tolerance=1.0,
    )


def parse_injury_limitations(text: Optional[str]) -> InjurySummary:
    """
    Extract body areas and contraindications from free-text injuries.

    Matching is case-insensitive on whole words. Results are ordered by
    the pattern table and contain no duplicates.

    Args:
        text: The user's injury/limitation description

    Returns:
        InjurySummary, empty when nothing matches
    """
    summary = InjurySummary()
    if not text or not text.strip():
        return summary

    lowered = text.lower()
    for pattern, area, contraindications in INJURY_PATTERNS:
        if not re.search(pattern, lowered):
            continue
        if area not in summary.identified_areas:
            summary.identified_areas.append(area)
        for movement in contraindications:
            if movement not in summary.contraindications:
                summary.contraindications.append(movement)

    return summary


class ProfileEnricher:
    """
    Builds an EnrichedProfile from onboarding answers.

    Stateless; a single instance can be shared across pipeline runs.
    """

    def enrich(self, profile: UserProfile) -> EnrichedProfile:
        """
        Infer every downstream parameter for a profile.

        Args:
            profile: Raw onboarding answers

        Returns:
            EnrichedProfile with volume parameters, injuries and defaults applied
        """
        experience = ExperienceLevel.parse(profile.experience_level)
        parameters = infer_volume_parameters(profile)
        injuries = parse_injury_limitations(profile.injuries_limitations)

        logger.debug(
            f"Enriched profile {profile.user_id}: experience={experience.value}, "
            f"recovery={parameters.recovery_capacity}, stress={parameters.stress_level}, "
            f"injury_areas={injuries.identified_areas}"
        )

        return EnrichedProfile(
            profile=profile,
            experience_level=experience,
            training_frequency_days=profile.training_frequency_days or DEFAULT_TRAINING_FREQUENCY,
            session_duration=profile.session_duration or DEFAULT_SESSION_DURATION,
            primary_goal=profile.primary_goal or DEFAULT_PRIMARY_GOAL,
            volume_parameters=parameters,
            injuries=injuries,
            recovery_profile=RecoveryProfile(),
            rpe_profile=RPEProfile(),
            training_age_months=int(round(parameters.training_age * 12)),
        )
