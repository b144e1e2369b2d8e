"""
Shared fixtures and factories for the test suite.

Program factories build candidates as plain dicts with camelCase keys,
the same shape the generative service returns.
"""

import copy
import json
from pathlib import Path
from typing import List, Optional

import pytest

from program_pipeline.database import SqlGenerationStore
from program_pipeline.exceptions import GenerationServiceError
from program_pipeline.schemas import UserProfile

FIXTURES_DIR = Path(__file__).parent / "fixtures"

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def load_fixture(name: str):
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


# ===== PROGRAM FACTORIES =====


def make_exercise(name="Barbell Back Squat", tier="Anchor", sets=3, anchor=None) -> dict:
    return {
        "name": name,
        "tier": tier,
        "sets": sets,
        "reps": "8",
        "rpe": "7",
        "rest": "120s",
        "isAnchorLift": tier == "Anchor" if anchor is None else anchor,
    }


def standard_session() -> List[dict]:
    return [
        make_exercise("Barbell Back Squat", "Anchor", 3),
        make_exercise("Romanian Deadlift", "Primary", 2),
        make_exercise("Leg Curl", "Accessory", 2),
    ]


def make_week(week_number: int, phase_week: int, training_days: Optional[dict] = None) -> dict:
    """A week with training on Monday and Thursday unless ``training_days`` says otherwise."""
    if training_days is None:
        training_days = {"Monday": standard_session(), "Thursday": standard_session()}
    days = []
    for day in WEEKDAYS:
        if day in training_days:
            days.append(
                {
                    "dayOfWeek": day,
                    "focus": f"{day} Session",
                    "isRestDay": False,
                    "exercises": training_days[day],
                }
            )
        else:
            days.append({"dayOfWeek": day, "focus": "Rest", "isRestDay": True, "exercises": []})
    return {
        "weekNumber": week_number,
        "phaseWeek": phase_week,
        "progressionStrategy": "Linear",
        "intensityFocus": "Moderate",
        "days": days,
    }


def make_phase(phase_type: str, weeks: int, first_week_number: int, duration_weeks=None) -> dict:
    return {
        "phaseName": f"{phase_type} Block",
        "phaseType": phase_type,
        "durationWeeks": weeks if duration_weeks is None else duration_weeks,
        "primaryGoal": "Build strength",
        "weeks": [make_week(first_week_number + i, i + 1) for i in range(weeks)],
    }


def make_program(phase_specs=(("Accumulation", 2), ("Deload", 1)), total_weeks=None) -> dict:
    """
    Build a structurally valid program from (phase type, weeks) pairs.

    Week numbers run sequentially across phases; ``total_weeks`` overrides
    the declared total.
    """
    phases = []
    next_week = 1
    for phase_type, weeks in phase_specs:
        phases.append(make_phase(phase_type, weeks, next_week))
        next_week += weeks
    return {
        "programName": "Test Program",
        "description": "Generated for tests",
        "durationWeeksTotal": next_week - 1 if total_weeks is None else total_weeks,
        "periodizationModel": "Balanced Block Periodization",
        "phases": phases,
    }


# ===== TEXT SERVICE STUBS =====


class StubTextService:
    """Returns queued responses in order; exceptions in the queue are raised."""

    def __init__(self, responses, model_name: str = "stub-model"):
        self.responses = list(responses)
        self.model_name = model_name
        self.prompts: List[str] = []

    def generate(self, prompt: str, structured_output: bool = True) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ===== FIXTURES =====


@pytest.fixture
def valid_program() -> dict:
    """Load the valid three-week program fixture."""
    return load_fixture("program_valid.json")


@pytest.fixture
def intermediate_profile() -> UserProfile:
    return UserProfile(**load_fixture("profile_intermediate.json"))


@pytest.fixture
def beginner_profile() -> UserProfile:
    return UserProfile(**load_fixture("profile_beginner.json"))


@pytest.fixture
def advanced_profile() -> UserProfile:
    return UserProfile(**load_fixture("profile_advanced.json"))


@pytest.fixture
def store() -> SqlGenerationStore:
    """Fresh in-memory SQLite store."""
    return SqlGenerationStore.from_url("sqlite://")


@pytest.fixture
def stub_service_factory(valid_program):
    """Build a StubTextService; defaults to returning the valid program once."""

    def factory(responses=None):
        if responses is None:
            responses = [json.dumps(copy.deepcopy(valid_program))]
        return StubTextService(responses)

    return factory


@pytest.fixture
def service_error() -> GenerationServiceError:
    return GenerationServiceError("LLM API error: 503 - Service Unavailable", status_code=503)
