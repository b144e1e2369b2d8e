"""
API Response Models

Pydantic models for API responses.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from program_pipeline.schemas import (
    GenerationStatus,
    InjurySummary,
    PeriodizationPlan,
    VolumeLandmarks,
    VolumeParameters,
    WeakPointProtocol,
)


class GenerationCreatedResponse(BaseModel):
    """Response for POST /api/generations."""

    record_id: str = Field(..., description="Id of the new generation record")
    status: GenerationStatus = Field(..., description="Initial status (always pending)")


class ProfileAnalysisResponse(BaseModel):
    """Response for POST /api/profiles/analyze."""

    volume_parameters: VolumeParameters
    injuries: InjurySummary
    volume_landmarks: Dict[str, VolumeLandmarks]
    weak_point_analysis: Optional[WeakPointProtocol] = Field(
        None, description="Null when the profile lacks complete 1RM estimates"
    )
    periodization_plan: PeriodizationPlan
