"""
Pipeline orchestration.

Runs one generation record through enrichment, volume calculation,
weak-point analysis, periodization, generation and validation, and records
the outcome. A record only ever ends a run as ``completed`` with a program
that passed validation, or ``failed`` with a message explaining why.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loguru import logger

from program_pipeline.config import Settings
from program_pipeline.database import GenerationStore, SqlGenerationStore
from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.exceptions import (
    GenerationConflictError,
    MalformedOutputError,
    PersistenceError,
)
from program_pipeline.generator import OpenAITextService, ProgramGenerator
from program_pipeline.guardian import GuardianValidator, summarize_errors
from program_pipeline.periodization import PeriodizationPlanner
from program_pipeline.program_schemas import TrainingProgram
from program_pipeline.prompts import GenerationContext
from program_pipeline.schemas import (
    GenerationRecord,
    GenerationStatus,
    PipelineArtifacts,
    UserProfile,
)
from program_pipeline.volume import VolumeLandmarkCalculator
from program_pipeline.weak_points import WeakPointAnalyzer


class PipelineOrchestrator:
    """
    Drives a generation record from pending to completed or failed.

    Collaborators are injected; only the store and generator are required.
    """

    def __init__(
        self,
        store: GenerationStore,
        generator: ProgramGenerator,
        enricher: Optional[ProfileEnricher] = None,
        volume_calculator: Optional[VolumeLandmarkCalculator] = None,
        weak_point_analyzer: Optional[WeakPointAnalyzer] = None,
        planner: Optional[PeriodizationPlanner] = None,
        guardian: Optional[GuardianValidator] = None,
    ):
        self.store = store
        self.generator = generator
        self.enricher = enricher or ProfileEnricher()
        self.volume_calculator = volume_calculator or VolumeLandmarkCalculator()
        self.weak_point_analyzer = weak_point_analyzer or WeakPointAnalyzer()
        self.planner = planner or PeriodizationPlanner()
        self.guardian = guardian or GuardianValidator()

    def create_and_run(self, profile: UserProfile) -> GenerationRecord:
        """Create a pending record for a profile and run it immediately."""
        record_id = self.store.create_generation_record(profile)
        return self.run(record_id)

    def run(self, record_id: str) -> GenerationRecord:
        """
        Run the pipeline for one record.

        Args:
            record_id: A pending or failed generation record

        Returns:
            The record in its terminal state

        Raises:
            RecordNotFoundError: If the record does not exist
            GenerationConflictError: If the record is processing or already completed
            PersistenceError: If the terminal state cannot be recorded
        """
        if not self.store.claim_for_processing(record_id):
            current = self.store.get_generation_record(record_id)
            logger.warning(
                f"[PIPELINE] Refusing to run record {record_id}: status is {current.status.value}"
            )
            raise GenerationConflictError(record_id, current.status.value)

        started = time.monotonic()
        logger.info(f"[PIPELINE] Started generation for record {record_id}")

        try:
            record = self.store.get_generation_record(record_id)
            self._execute(record, started)
        except PersistenceError:
            logger.error(f"[PIPELINE] Persistence failure for record {record_id}")
            self._try_mark_failed(record_id, "Failed to persist generation results")
            raise
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(f"[PIPELINE] Generation failed for record {record_id}: {message}")
            metadata = self._failure_metadata(e, started)
            self.store.update_generation_status(
                record_id, GenerationStatus.FAILED, error=message, metadata=metadata
            )

        return self.store.get_generation_record(record_id)

    def _execute(self, record: GenerationRecord, started: float) -> None:
        profile = record.profile_snapshot

        enriched = self.enricher.enrich(profile)
        landmarks = self.volume_calculator.calculate_all_landmarks(enriched.volume_parameters)
        weak_points = self.weak_point_analyzer.analyze_profile(profile)
        plan = self.planner.plan(enriched, landmarks)

        context = GenerationContext(
            enriched=enriched, landmarks=landmarks, weak_points=weak_points, plan=plan
        )
        generated = self.generator.generate(context)

        result = self.guardian.validate(generated.candidate)
        metadata: Dict[str, Any] = {
            "processing_timestamp": datetime.now(timezone.utc).isoformat(),
            "elapsed_seconds": round(time.monotonic() - started, 3),
            "attempts": generated.attempts,
            "ai_model_version": generated.model_name,
            "volume_parameters": enriched.volume_parameters.model_dump(mode="json"),
            "injuries": enriched.injuries.model_dump(mode="json"),
            "experience_level": enriched.experience_level.value,
            "plan_decisions": [d.model_dump(mode="json") for d in plan.plan_decisions],
            "deload": plan.deload.model_dump(mode="json"),
            "validation": result.model_dump(mode="json"),
        }

        if not result.is_valid:
            message = summarize_errors(result)
            logger.warning(f"[PIPELINE] Record {record.id} rejected by Guardian: {message}")
            metadata["raw_response"] = generated.raw_response
            self.store.update_generation_status(
                record.id, GenerationStatus.FAILED, error=message, metadata=metadata
            )
            return

        program = TrainingProgram.model_validate(generated.candidate)
        artifacts = PipelineArtifacts(
            volume_landmarks=landmarks,
            weak_point_analysis=weak_points,
            periodization_model=plan.model_name,
            ai_model_version=generated.model_name,
        )
        self.store.update_generation_status(
            record.id,
            GenerationStatus.COMPLETED,
            program=program,
            metadata=metadata,
            artifacts=artifacts,
        )
        logger.info(
            f"[PIPELINE] Completed record {record.id} with {len(result.warnings)} warning(s) "
            f"in {metadata['elapsed_seconds']}s"
        )

    @staticmethod
    def _failure_metadata(error: Exception, started: float) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "processing_timestamp": datetime.now(timezone.utc).isoformat(),
            "elapsed_seconds": round(time.monotonic() - started, 3),
            "error_type": type(error).__name__,
        }
        if isinstance(error, MalformedOutputError):
            metadata["raw_response"] = error.raw_response
        return metadata

    def _try_mark_failed(self, record_id: str, message: str) -> None:
        try:
            self.store.update_generation_status(record_id, GenerationStatus.FAILED, error=message)
        except PersistenceError as e:
            logger.error(f"[PIPELINE] Could not mark record {record_id} as failed: {e}")


def build_orchestrator(settings: Settings, store: Optional[GenerationStore] = None) -> PipelineOrchestrator:
    """
    Wire an orchestrator from settings, using OpenAI for generation.

    Args:
        settings: Runtime configuration
        store: Store to use; defaults to a SqlGenerationStore on settings.database_url
    """
    service = OpenAITextService(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        max_tokens=settings.llm_max_tokens,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout_seconds,
    )
    generator = ProgramGenerator(
        service,
        max_attempts=settings.generation_max_attempts,
        backoff_seconds=settings.generation_retry_backoff_seconds,
    )
    return PipelineOrchestrator(
        store=store or SqlGenerationStore.from_url(settings.database_url),
        generator=generator,
    )
