"""
Prompt → query → data endpoints
"""
import logging
from fastapi import APIRouter, Depends

from analytics_dashboard.core.auth import get_current_user
from analytics_dashboard.core.errors import ApiError
from analytics_dashboard.pipeline.prompt_classifier import generate_sql_from_prompt
from analytics_dashboard.services import QueryService
from analytics_dashboard.schemas import (
    AuthedUser,
    ExecuteQueryRequest,
    McpQueryResponse,
    PromptRequest,
    QueryGenerationResponse,
    QueryResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Queries"])


def get_query_service() -> QueryService:
    """Dependency; tests override it with an injected backend/transport"""
    return QueryService()


@router.post("/prompt-to-query", response_model=QueryGenerationResponse)
def prompt_to_query(
    p: PromptRequest,
    current_user: AuthedUser = Depends(get_current_user),
):
    """
    Map a prompt to one of the canned SQL templates.

    Pure keyword mapping; nothing is executed.
    """
    try:
        return generate_sql_from_prompt(p.prompt)
    except ValueError as e:
        raise ApiError(400, str(e))


@router.post("/execute-query", response_model=QueryResult)
def execute_query(
    p: ExecuteQueryRequest,
    current_user: AuthedUser = Depends(get_current_user),
    service: QueryService = Depends(get_query_service),
):
    """
    Execute SQL on the configured backend.

    Queries containing drop/delete/truncate/alter/create/insert/update
    (anywhere, any case) are rejected with 400 before execution.
    """
    return service.execute_sql(p.sql_query)


@router.post("/mcp-query", response_model=McpQueryResponse)
async def mcp_query(
    p: PromptRequest,
    current_user: AuthedUser = Depends(get_current_user),
    service: QueryService = Depends(get_query_service),
):
    """
    Answer a prompt through the workflow service (build + execute).

    Build and execution failures both surface as
    500 {"error": "Failed to execute MCP query", "details": ...}.
    """
    logger.info(f"Workflow query from {current_user.email}: '{(p.prompt or '')[:50]}'")
    return await service.run_workflow(p.prompt)
