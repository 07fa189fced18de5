"""
Schemas for prompt history (server API and client cache share them)
"""
from typing import List, Literal, Optional
from datetime import datetime
from pydantic import Field, field_validator

from analytics_dashboard.schemas.base import CamelModel

HistoryStatus = Literal["success", "error", "pending"]


def _unique(values: Optional[List[str]]) -> List[str]:
    """Tags behave as a set but keep first-seen order"""
    seen: List[str] = []
    for v in values or []:
        if v not in seen:
            seen.append(v)
    return seen


class PromptHistoryItem(CamelModel):
    id: str
    prompt: str
    sql_query: Optional[str] = None
    timestamp: datetime
    execution_time: Optional[int] = None
    status: HistoryStatus
    result_count: Optional[int] = None
    chart_types: List[str] = Field(default_factory=list)
    is_favorite: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, v):
        return _unique(v)

    @field_validator("chart_types", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class PromptHistoryCreate(CamelModel):
    """POST /history body. id/timestamp are accepted so the client's id survives"""
    id: Optional[str] = None
    prompt: Optional[str] = None
    sql_query: Optional[str] = None
    timestamp: Optional[datetime] = None
    execution_time: Optional[int] = None
    status: HistoryStatus = "pending"
    result_count: Optional[int] = None
    chart_types: Optional[List[str]] = None
    is_favorite: bool = False
    tags: Optional[List[str]] = None
    updated_at: Optional[datetime] = None


class PromptHistoryUpdate(CamelModel):
    """PATCH /history/{id} body; only provided fields change"""
    is_favorite: Optional[bool] = None
    tags: Optional[List[str]] = None
    status: Optional[HistoryStatus] = None
    execution_time: Optional[int] = None
    result_count: Optional[int] = None
    updated_at: Optional[datetime] = None


class HistoryStats(CamelModel):
    total: int
    successful: int
    favorites: int
    success_rate: float
