"""
Schemas for the prompt → query → visualization endpoints
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from analytics_dashboard.schemas.base import CamelModel

ChartType = Literal["line", "bar", "area", "pie", "scatter"]
Complexity = Literal["low", "medium", "high"]


class ChartConfig(CamelModel):
    """Declarative chart config, independent of the rendering technology"""
    type: ChartType
    x_axis: Optional[str] = None
    y_axis: Optional[str] = None
    data_key: Optional[str] = None
    title: Optional[str] = None


class PromptRequest(BaseModel):
    # Optional so a missing prompt yields the dashboard's own 400 message
    prompt: Optional[str] = None
    context: Optional[Dict[str, Any]] = None


class QueryGenerationResponse(CamelModel):
    sql_query: str
    explanation: str
    estimated_complexity: Complexity
    suggested_charts: List[ChartConfig]


class ExecuteQueryRequest(CamelModel):
    sql_query: Optional[str] = None


class QueryResult(CamelModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    row_count: int = 0
    execution_time: int = 0  # ms


class McpQueryMetadata(CamelModel):
    row_count: int = 0
    columns: List[str] = Field(default_factory=list)
    data_types: List[str] = Field(default_factory=list)
    execution_time: int = 0


class McpVisualization(CamelModel):
    suggested_charts: List[str] = Field(default_factory=list)
    chart_config: Dict[str, Any] = Field(default_factory=dict)


class McpQueryResponse(CamelModel):
    prompt: str
    query: Optional[str] = None
    data: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: McpQueryMetadata = Field(default_factory=McpQueryMetadata)
    visualization: McpVisualization = Field(default_factory=McpVisualization)
