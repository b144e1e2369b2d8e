"""
Generation API Routes

Endpoints for creating, running and inspecting program generation records.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from program_pipeline.api.dependencies import get_orchestrator, get_store
from program_pipeline.api.models.requests import GenerationRequest
from program_pipeline.api.models.responses import GenerationCreatedResponse
from program_pipeline.database import GenerationStore
from program_pipeline.exceptions import (
    GenerationConflictError,
    PersistenceError,
    RecordNotFoundError,
)
from program_pipeline.pipeline import PipelineOrchestrator
from program_pipeline.schemas import GenerationRecord, GenerationStatus

router = APIRouter()


@router.post(
    "/generations",
    response_model=GenerationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_generation(
    request: GenerationRequest, store: GenerationStore = Depends(get_store)
) -> GenerationCreatedResponse:
    """
    Create a pending generation record for a profile.

    Args:
        request: GenerationRequest with the user's onboarding answers

    Returns:
        GenerationCreatedResponse with the new record id

    Raises:
        HTTPException: If the record cannot be stored
    """
    try:
        record_id = store.create_generation_record(request.user_profile)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create generation record: {str(e)}",
        )
    return GenerationCreatedResponse(record_id=record_id, status=GenerationStatus.PENDING)


@router.post("/generations/{record_id}/run", response_model=GenerationRecord)
def run_generation(
    record_id: str, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)
) -> GenerationRecord:
    """
    Run the generation pipeline for a record.

    A failed pipeline run is not an HTTP error: the returned record carries
    status ``failed`` and the reason.

    Raises:
        HTTPException: 404 for an unknown record, 409 if the record is
            processing or completed, 500 if results cannot be persisted
    """
    try:
        return orchestrator.run(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except GenerationConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Generation failed: {str(e)}",
        )


@router.get("/generations/{record_id}", response_model=GenerationRecord)
def get_generation(record_id: str, store: GenerationStore = Depends(get_store)) -> GenerationRecord:
    """Fetch a generation record and, once completed, its program."""
    try:
        return store.get_generation_record(record_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
