"""
Schemas for failure remediation (static guides and generated solutions)
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from analytics_dashboard.schemas.base import CamelModel


class GenerateSolutionRequest(CamelModel):
    error_message: Optional[str] = None


class SolutionResponse(BaseModel):
    explanation: str
    fixes: List[str] = Field(min_length=3, max_length=3)
    source: Literal["generated", "static"] = "generated"


class ResolutionStep(BaseModel):
    id: str
    title: str
    description: str
    code: Optional[str] = None


class ResolutionGuide(BaseModel):
    category: str
    steps: List[ResolutionStep]
