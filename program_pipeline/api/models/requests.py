"""
API Request Models

Pydantic models for API request validation.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field

from program_pipeline.schemas import UserProfile


class GenerationRequest(BaseModel):
    """Request model for creating a generation record."""

    user_profile: UserProfile = Field(..., description="Onboarding answers to generate a program for")


class ProfileAnalysisRequest(BaseModel):
    """Request model for profile analysis without generation."""

    user_profile: UserProfile = Field(..., description="Onboarding answers to analyze")


class ProgramValidationRequest(BaseModel):
    """Request model for validating a candidate program."""

    program: Dict[str, Any] = Field(..., description="Candidate program as JSON (camelCase keys)")
