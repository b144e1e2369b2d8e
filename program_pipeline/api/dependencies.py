"""
FastAPI dependencies.

Routes obtain the store and orchestrator through these functions so tests
can swap them with ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends

from program_pipeline.config import get_settings
from program_pipeline.database import SqlGenerationStore
from program_pipeline.pipeline import PipelineOrchestrator, build_orchestrator


@lru_cache
def get_store() -> SqlGenerationStore:
    return SqlGenerationStore.from_url(get_settings().database_url)


def get_orchestrator(store: SqlGenerationStore = Depends(get_store)) -> PipelineOrchestrator:
    return build_orchestrator(get_settings(), store)
