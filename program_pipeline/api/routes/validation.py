"""
Validation API Routes

Endpoint for running the Guardian on a candidate program.
"""

from fastapi import APIRouter

from program_pipeline.api.models.requests import ProgramValidationRequest
from program_pipeline.guardian import GuardianValidator
from program_pipeline.schemas import ValidationResult

router = APIRouter()


@router.post("/validate", response_model=ValidationResult)
async def validate_program(request: ProgramValidationRequest) -> ValidationResult:
    """
    Validate a candidate program against schema, scientific and structural rules.

    An invalid program is a normal response (``is_valid`` false), not an
    HTTP error.

    Args:
        request: ProgramValidationRequest with the candidate JSON

    Returns:
        ValidationResult with every error and warning found
    """
    return GuardianValidator().validate(request.program)
