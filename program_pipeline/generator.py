"""
AI program generation.

ProgramGenerator turns a GenerationContext into an *unvalidated* candidate
program by prompting a generative text service and parsing its JSON reply.
The service is injected, so tests and alternative providers only need to
implement ``TextGenerationService.generate``.
"""

import json
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol

import openai
from loguru import logger
from openai import OpenAI
from pydantic import BaseModel

from program_pipeline.exceptions import GenerationServiceError, MalformedOutputError
from program_pipeline.prompts import SYSTEM_PROMPT, GenerationContext, build_program_prompt

MAX_BACKOFF_SECONDS = 30.0

_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL)


class TextGenerationService(Protocol):
    """A service that completes a prompt, optionally constrained to JSON."""

    model_name: str

    def generate(self, prompt: str, structured_output: bool = True) -> str:
        ...


class OpenAITextService:
    """
    TextGenerationService backed by the OpenAI chat completions API.

    Requests JSON-object output when ``structured_output`` is set.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        max_tokens: int = 8192,
        temperature: float = 0.7,
        timeout: float = 120.0,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """
        Args:
            api_key: OpenAI API key; generation fails with a configuration error if empty
            model: Chat model name
            max_tokens: Completion token limit
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds
            system_prompt: System message sent with every request
        """
        self.model_name = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.system_prompt = system_prompt
        self.client = OpenAI(api_key=api_key, timeout=timeout) if api_key else None

    def generate(self, prompt: str, structured_output: bool = True) -> str:
        if self.client is None:
            raise GenerationServiceError("AI service configuration error: API key not set.")

        kwargs: Dict[str, Any] = {}
        if structured_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": self.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                **kwargs,
            )
        except openai.APIStatusError as e:
            raise GenerationServiceError(
                f"LLM API error: {e.status_code} - {e.message}", status_code=e.status_code
            ) from e
        except openai.OpenAIError as e:
            raise GenerationServiceError(f"LLM API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationServiceError("LLM API error: empty response")
        return content


class GeneratedProgram(BaseModel):
    """A parsed but unvalidated program candidate."""

    candidate: Dict[str, Any]
    raw_response: str
    prompt: str
    attempts: int
    model_name: str


def parse_program_response(raw: str) -> Dict[str, Any]:
    """
    Parse a service reply into a JSON object.

    Markdown code fences around the JSON are tolerated.

    Raises:
        MalformedOutputError: If the reply is not a JSON object
    """
    text = raw.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(
            f"LLM returned invalid JSON when JSON was expected: {e}", raw_response=raw
        ) from e

    if not isinstance(parsed, dict):
        raise MalformedOutputError(
            f"LLM returned JSON {type(parsed).__name__}, expected an object", raw_response=raw
        )
    return parsed


class ProgramGenerator:
    """
    Prompts the text service and returns a candidate program.

    By default a single attempt is made. With ``max_attempts > 1`` service
    errors are retried with exponential backoff; malformed output is not
    retried.
    """

    def __init__(
        self,
        service: TextGenerationService,
        max_attempts: int = 1,
        backoff_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.service = service
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    @property
    def model_name(self) -> str:
        return getattr(self.service, "model_name", "unknown")

    def generate(self, context: GenerationContext) -> GeneratedProgram:
        """
        Generate one candidate program.

        Args:
            context: Enriched profile, landmarks, weak points and periodization plan

        Returns:
            GeneratedProgram holding the parsed candidate and the raw reply

        Raises:
            GenerationServiceError: If the service fails on every attempt
            MalformedOutputError: If the reply cannot be parsed as a JSON object
        """
        prompt = build_program_prompt(context)
        raw, attempts = self._call_with_retry(prompt, context.enriched.profile.user_id)

        candidate = parse_program_response(raw)
        candidate.setdefault("generatedAt", datetime.now(timezone.utc).isoformat())
        candidate.setdefault("aiModelUsed", self.model_name)

        return GeneratedProgram(
            candidate=candidate,
            raw_response=raw,
            prompt=prompt,
            attempts=attempts,
            model_name=self.model_name,
        )

    def _call_with_retry(self, prompt: str, user_id: str):
        for attempt in range(self.max_attempts):
            try:
                raw = self.service.generate(prompt, structured_output=True)
                logger.info(f"[GENERATE] Received program for user_id={user_id} on attempt {attempt + 1}")
                return raw, attempt + 1
            except GenerationServiceError as e:
                if attempt + 1 >= self.max_attempts:
                    logger.error(
                        f"[GENERATE] Generation failed for user_id={user_id} "
                        f"after {self.max_attempts} attempt(s): {e}"
                    )
                    raise
                wait_seconds = min(self.backoff_seconds * 2**attempt, MAX_BACKOFF_SECONDS)
                logger.warning(
                    f"[GENERATE] Service error for user_id={user_id} on attempt {attempt + 1}: {e}, "
                    f"waiting {wait_seconds}s before retry"
                )
                self._sleep(wait_seconds)
