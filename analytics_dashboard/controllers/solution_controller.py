"""
Failure remediation endpoints
"""
from fastapi import APIRouter, Depends

from analytics_dashboard.core.auth import get_current_user
from analytics_dashboard.services import ResolutionService, static_guide
from analytics_dashboard.schemas import (
    AuthedUser,
    GenerateSolutionRequest,
    ResolutionGuide,
    SolutionResponse,
)

router = APIRouter(tags=["Resolution"])


def get_resolution_service() -> ResolutionService:
    return ResolutionService()


@router.post("/generate-solution", response_model=SolutionResponse)
async def generate_solution(
    p: GenerateSolutionRequest,
    current_user: AuthedUser = Depends(get_current_user),
    service: ResolutionService = Depends(get_resolution_service),
):
    """
    Explain an error message in one sentence and suggest three fixes.

    400 without errorMessage, 500 when the text service fails or answers
    with anything but {explanation, fixes[3]}.
    """
    return await service.generate_solution(p.error_message)


@router.get("/resolution-guide/{category}", response_model=ResolutionGuide)
def resolution_guide(category: str, current_user: AuthedUser = Depends(get_current_user)):
    """Canned steps for an error category; never calls out"""
    return static_guide(category)
