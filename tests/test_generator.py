"""
Tests for prompt assembly and program generation.

The text service is always stubbed; no test makes a network call.
"""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from conftest import StubTextService
from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.exceptions import GenerationServiceError, MalformedOutputError
from program_pipeline.generator import (
    MAX_BACKOFF_SECONDS,
    OpenAITextService,
    ProgramGenerator,
    parse_program_response,
)
from program_pipeline.periodization import PeriodizationPlanner
from program_pipeline.prompts import GenerationContext, build_program_prompt
from program_pipeline.schemas import WeightUnit
from program_pipeline.volume import VolumeLandmarkCalculator
from program_pipeline.weak_points import WeakPointAnalyzer


def build_context(profile) -> GenerationContext:
    enriched = ProfileEnricher().enrich(profile)
    landmarks = VolumeLandmarkCalculator().calculate_all_landmarks(enriched.volume_parameters)
    return GenerationContext(
        enriched=enriched,
        landmarks=landmarks,
        weak_points=WeakPointAnalyzer().analyze_profile(profile),
        plan=PeriodizationPlanner().plan(enriched, landmarks),
    )


@pytest.fixture
def context(intermediate_profile):
    return build_context(intermediate_profile)


# ===== PROMPT =====


def test_prompt_includes_profile_and_plan(context):
    prompt = build_program_prompt(context)

    assert "Primary goal: Muscle Gain: Hypertrophy Focus" in prompt
    assert "Injured areas: Knees" in prompt
    assert "Model: Hypertrophy-Focused Block Periodization" in prompt
    assert "Set durationWeeksTotal to 6" in prompt
    assert "- Chest: 14 / 32 / 46" in prompt


def test_prompt_includes_weak_points(context):
    prompt = build_program_prompt(context)

    assert "WEAK POINTS" in prompt
    assert "benchToDeadlift: 0.556" in prompt
    assert "Dumbbell Bench Press" in prompt


def test_prompt_without_weak_points(beginner_profile):
    prompt = build_program_prompt(build_context(beginner_profile))

    assert "WEAK POINTS" not in prompt
    assert "Create a 4-week program" in prompt


def test_prompt_includes_strength_profile(advanced_profile):
    prompt = build_program_prompt(build_context(advanced_profile))

    assert "STRENGTH PROFILE (kg)" in prompt
    assert "- Squat 1RM: 200" in prompt
    assert "- Bench Press 1RM: 100" in prompt
    assert "- Deadlift 1RM: 240" in prompt
    assert "- Overhead Press 1RM: 50" in prompt


def test_prompt_marks_missing_lifts(beginner_profile):
    profile = beginner_profile.model_copy(update={"weight_unit": WeightUnit.LBS, "squat_1rm": 135})
    prompt = build_program_prompt(build_context(profile))

    assert "STRENGTH PROFILE (lbs)" in prompt
    assert "- Squat 1RM: 135" in prompt
    assert "- Deadlift 1RM: Not provided" in prompt


def test_prompt_includes_autoregulation_notes(context):
    prompt = build_program_prompt(context)

    assert "training age 1.25 years, 15 months" in prompt
    assert "Hypertrophy work RPE 7-9, strength work RPE 8-10" in prompt
    assert "Recovery rate: 1/2.0" in prompt
    assert "Fatigue threshold: 7/10" in prompt


# ===== RESPONSE PARSING =====


def test_parse_plain_json():
    assert parse_program_response('{"programName": "Block"}') == {"programName": "Block"}


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"programName": "Block"}\n```',
        '```\n{"programName": "Block"}\n```',
        '  \n```json{"programName": "Block"}```  ',
    ],
)
def test_parse_strips_code_fences(raw):
    assert parse_program_response(raw) == {"programName": "Block"}


def test_parse_invalid_json_keeps_raw_response():
    raw = "Here is your program: {not json"
    with pytest.raises(MalformedOutputError) as exc_info:
        parse_program_response(raw)

    assert exc_info.value.raw_response == raw
    assert "invalid JSON" in str(exc_info.value)


def test_parse_rejects_non_object():
    with pytest.raises(MalformedOutputError, match="expected an object"):
        parse_program_response("[1, 2, 3]")


# ===== GENERATOR =====


def test_generate_returns_candidate(context, valid_program):
    service = StubTextService([json.dumps(valid_program)])
    generated = ProgramGenerator(service).generate(context)

    assert generated.candidate["programName"] == valid_program["programName"]
    assert generated.attempts == 1
    assert generated.model_name == "stub-model"
    assert generated.raw_response == json.dumps(valid_program)
    assert service.prompts == [generated.prompt]


def test_generate_fills_generation_metadata(context, valid_program):
    generated = ProgramGenerator(StubTextService([json.dumps(valid_program)])).generate(context)

    assert generated.candidate["aiModelUsed"] == "stub-model"
    assert generated.candidate["generatedAt"]


def test_generate_keeps_service_supplied_metadata(context, valid_program):
    valid_program["aiModelUsed"] = "model-from-reply"
    generated = ProgramGenerator(StubTextService([json.dumps(valid_program)])).generate(context)

    assert generated.candidate["aiModelUsed"] == "model-from-reply"


def test_single_attempt_by_default(context, service_error):
    service = StubTextService([service_error, "{}"])

    with pytest.raises(GenerationServiceError):
        ProgramGenerator(service).generate(context)

    assert len(service.prompts) == 1


def test_retries_service_errors_with_backoff(context, service_error, valid_program):
    sleeps = []
    service = StubTextService([service_error, service_error, json.dumps(valid_program)])
    generator = ProgramGenerator(service, max_attempts=3, backoff_seconds=2.0, sleep=sleeps.append)

    generated = generator.generate(context)

    assert generated.attempts == 3
    assert sleeps == [2.0, 4.0]


def test_backoff_is_capped(context, service_error):
    sleeps = []
    service = StubTextService([service_error] * 3)
    generator = ProgramGenerator(service, max_attempts=3, backoff_seconds=20.0, sleep=sleeps.append)

    with pytest.raises(GenerationServiceError):
        generator.generate(context)

    assert sleeps == [20.0, MAX_BACKOFF_SECONDS]


def test_malformed_output_is_not_retried(context):
    service = StubTextService(["not json", "{}"])
    generator = ProgramGenerator(service, max_attempts=3, sleep=lambda _: None)

    with pytest.raises(MalformedOutputError):
        generator.generate(context)

    assert len(service.prompts) == 1


def test_generator_requires_an_attempt():
    with pytest.raises(ValueError):
        ProgramGenerator(StubTextService([]), max_attempts=0)


# ===== OPENAI SERVICE =====


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def service_with(completions: FakeCompletions) -> OpenAITextService:
    service = OpenAITextService(api_key="sk-test", model="gpt-test")
    service.client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return service


def test_openai_service_without_key():
    service = OpenAITextService(api_key=None)

    with pytest.raises(GenerationServiceError, match="API key not set"):
        service.generate("prompt")


def test_openai_service_requests_json_object():
    completions = FakeCompletions(content='{"ok": true}')
    result = service_with(completions).generate("Build a program")

    assert result == '{"ok": true}'
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"][-1] == {"role": "user", "content": "Build a program"}


def test_openai_service_free_text_mode():
    completions = FakeCompletions(content="hello")
    service_with(completions).generate("Say hello", structured_output=False)

    assert "response_format" not in completions.calls[0]


def test_openai_status_error_is_wrapped():
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.APIStatusError(
        "Service Unavailable", response=httpx.Response(503, request=request), body=None
    )
    service = service_with(FakeCompletions(error=error))

    with pytest.raises(GenerationServiceError) as exc_info:
        service.generate("prompt")

    assert exc_info.value.status_code == 503
    assert str(exc_info.value) == "LLM API error: 503 - Service Unavailable"


def test_openai_empty_reply_is_an_error():
    service = service_with(FakeCompletions(content=""))

    with pytest.raises(GenerationServiceError, match="empty response"):
        service.generate("prompt")
