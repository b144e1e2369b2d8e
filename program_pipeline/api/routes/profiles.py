"""
Profile API Routes

Endpoint for previewing what the pipeline infers from a profile, without
calling the generative service.
"""

from fastapi import APIRouter

from program_pipeline.api.models.requests import ProfileAnalysisRequest
from program_pipeline.api.models.responses import ProfileAnalysisResponse
from program_pipeline.enrichment import ProfileEnricher
from program_pipeline.periodization import PeriodizationPlanner
from program_pipeline.volume import VolumeLandmarkCalculator
from program_pipeline.weak_points import WeakPointAnalyzer

router = APIRouter()


@router.post("/profiles/analyze", response_model=ProfileAnalysisResponse)
async def analyze_profile(request: ProfileAnalysisRequest) -> ProfileAnalysisResponse:
    """
    Enrich a profile and compute landmarks, weak points and the periodization plan.

    Args:
        request: ProfileAnalysisRequest with onboarding answers

    Returns:
        ProfileAnalysisResponse with every pre-generation artifact
    """
    enriched = ProfileEnricher().enrich(request.user_profile)
    landmarks = VolumeLandmarkCalculator().calculate_all_landmarks(enriched.volume_parameters)
    weak_points = WeakPointAnalyzer().analyze_profile(request.user_profile)
    plan = PeriodizationPlanner().plan(enriched, landmarks)

    return ProfileAnalysisResponse(
        volume_parameters=enriched.volume_parameters,
        injuries=enriched.injuries,
        volume_landmarks=landmarks,
        weak_point_analysis=weak_points,
        periodization_plan=plan,
    )
