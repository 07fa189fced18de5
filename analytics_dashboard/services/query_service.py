"""
Service for query execution orchestration
Runs denylist-checked SQL on a backend, or forwards prompts to the workflow service
"""
import time
import logging
from typing import Any, Dict, List, Optional

import httpx

from analytics_dashboard.core.config import settings
from analytics_dashboard.core.errors import ApiError, ConfigurationError
from analytics_dashboard.pipeline.llm import build_workflow_instruction
from analytics_dashboard.pipeline.sql import (
    QueryBackend,
    ReadOnlySqlBackend,
    SampleDataBackend,
    find_dangerous_pattern,
)
from analytics_dashboard.pipeline.workflow import (
    SuperglueClient,
    WorkflowBuildError,
    WorkflowExecutionError,
    WorkflowFailed,
    WorkflowSucceeded,
    WorkflowUnrecognized,
    parse_workflow_result,
)
from analytics_dashboard.schemas import (
    McpQueryMetadata,
    McpQueryResponse,
    McpVisualization,
    QueryResult,
)

logger = logging.getLogger(__name__)

SUPERGLUE_KEY_MISSING = (
    "Superglue API key not configured. Please set SUPERGLUE_API_KEY environment variable."
)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    return "string"


def default_backend() -> QueryBackend:
    """Read-only SQL when ANALYTICS_DB_URL is set, sample data otherwise"""
    if settings.ANALYTICS_DB_URL:
        return ReadOnlySqlBackend(url=settings.ANALYTICS_DB_URL)
    return SampleDataBackend(failure_rate=settings.SIMULATED_FAILURE_RATE)


class QueryService:
    """
    Executes queries for the dashboard

    Args:
        backend: Backend for raw SQL execution
        superglue_api_key: Workflow service key; settings.SUPERGLUE_API_KEY when omitted
        workflow_transport: Optional httpx transport for the workflow client
    """

    def __init__(
        self,
        backend: Optional[QueryBackend] = None,
        superglue_api_key: Optional[str] = None,
        workflow_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.backend = backend or default_backend()
        self.superglue_api_key = superglue_api_key if superglue_api_key is not None else settings.SUPERGLUE_API_KEY
        self.workflow_transport = workflow_transport

    def execute_sql(self, sql: Optional[str]) -> QueryResult:
        """
        Execute a SQL string after the denylist check

        Raises:
            ApiError: 400 for missing/dangerous SQL (backend never called),
                500 when the backend fails
        """
        if not sql or not sql.strip():
            raise ApiError(400, "SQL query is required")

        pattern = find_dangerous_pattern(sql)
        if pattern:
            logger.warning(f"Rejected query containing '{pattern}'")
            raise ApiError(400, "Query contains potentially dangerous operations")

        started = time.perf_counter()
        try:
            result = self.backend.execute(sql)
        except Exception as e:
            logger.error(f"Query execution failed: {e}", exc_info=True)
            raise ApiError(500, "Failed to execute query")
        measured = _elapsed_ms(started)

        execution_time = result.reported_execution_time
        if execution_time is None:
            execution_time = measured

        logger.info(f"Query returned {len(result.data)} rows in {execution_time}ms")
        return QueryResult(
            data=result.data,
            columns=result.columns,
            row_count=len(result.data),
            execution_time=execution_time,
        )

    def _workflow_client(self) -> SuperglueClient:
        if not self.superglue_api_key:
            raise ConfigurationError(SUPERGLUE_KEY_MISSING)
        return SuperglueClient(api_key=self.superglue_api_key, transport=self.workflow_transport)

    async def run_workflow(self, prompt: Optional[str]) -> McpQueryResponse:
        """
        Answer a prompt through the workflow service

        Args:
            prompt: Natural-language request

        Returns:
            McpQueryResponse shaped from whichever result variant came back

        Raises:
            ApiError: 400 missing prompt, 500 missing key / build or execution
                failure / unsuccessful workflow run
        """
        if not prompt or not prompt.strip():
            raise ApiError(400, "Prompt is required")

        client = self._workflow_client()

        started = time.perf_counter()
        try:
            raw = await client.run(build_workflow_instruction(prompt))
        except WorkflowBuildError as e:
            logger.error(f"Workflow build failed for prompt '{prompt[:50]}': {e}", exc_info=True)
            raise ApiError(500, "Failed to execute MCP query", details=str(e))
        except WorkflowExecutionError as e:
            logger.error(f"Workflow execution failed for prompt '{prompt[:50]}': {e}", exc_info=True)
            raise ApiError(500, "Failed to execute MCP query", details=str(e))
        measured = _elapsed_ms(started)

        outcome = parse_workflow_result(raw)

        if isinstance(outcome, WorkflowFailed):
            logger.warning(f"Workflow reported failure: {outcome.error}")
            raise ApiError(500, f"Workflow execution failed: {outcome.error}")

        if isinstance(outcome, WorkflowSucceeded):
            execution_time = outcome.reported_execution_time
            if execution_time is None:
                execution_time = measured
            metadata = outcome.metadata
            rows = outcome.rows
            return McpQueryResponse(
                prompt=prompt,
                query=outcome.query,
                data=rows,
                metadata=McpQueryMetadata(
                    row_count=metadata.get("rowCount") or len(rows),
                    columns=metadata.get("columns") or (list(rows[0].keys()) if rows else []),
                    data_types=metadata.get("dataTypes") or [],
                    execution_time=execution_time,
                ),
                visualization=McpVisualization(
                    suggested_charts=outcome.visualization.get("suggestedCharts") or ["table"],
                    chart_config=outcome.visualization.get("chartConfig") or {},
                ),
            )

        if isinstance(outcome, WorkflowUnrecognized):
            rows = self._rows_from_payload(outcome.payload)
            first = rows[0] if rows else {}
            return McpQueryResponse(
                prompt=prompt,
                query="Generated SQL query (parsing failed)",
                data=rows,
                metadata=McpQueryMetadata(
                    row_count=len(rows),
                    columns=list(first.keys()) or ["result"],
                    data_types=[_infer_type(v) for v in first.values()] or ["text"],
                    execution_time=measured,
                ),
                visualization=McpVisualization(suggested_charts=["table"], chart_config={"type": "table"}),
            )

        # WorkflowEmpty
        return McpQueryResponse(
            prompt=prompt,
            data=[{"message": "No data available"}],
            metadata=McpQueryMetadata(
                row_count=1,
                columns=["message"],
                data_types=["text"],
                execution_time=measured,
            ),
            visualization=McpVisualization(suggested_charts=["text"], chart_config={"type": "text"}),
        )

    @staticmethod
    def _rows_from_payload(payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, list):
            return [row if isinstance(row, dict) else {"result": row} for row in payload]
        return [{"result": payload}]
