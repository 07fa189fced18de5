"""
Dashboard orchestration: prompt submission → query → charts → history
"""
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Optional

from analytics_dashboard.client.api_client import ApiClient, ApiClientError
from analytics_dashboard.client.history_cache import HistoryCache
from analytics_dashboard.schemas import ChartConfig, McpQueryResponse, PromptHistoryItem, QueryResult
from analytics_dashboard.services.chart_service import ChartRenderState, ChartService

logger = logging.getLogger(__name__)

INVALID_RESPONSE = "Invalid response from server"


@dataclass
class DashboardState:
    prompt: str = ""
    is_loading: bool = False
    query: Optional[str] = None
    result: Optional[QueryResult] = None
    render: Optional[ChartRenderState] = None
    error: Optional[str] = None
    history_item_id: Optional[str] = None

    @property
    def charts(self) -> List[ChartConfig]:
        return self.render.charts if self.render else []


def to_query_result(response: McpQueryResponse, measured_ms: int = 0) -> QueryResult:
    """
    Normalize a workflow response into a QueryResult

    The execution time reported by the server wins; the locally measured
    round trip is only used when none was reported.
    """
    columns = list(response.metadata.columns)
    if not columns and response.data:
        columns = list(response.data[0].keys())
    return QueryResult(
        data=response.data,
        columns=columns,
        row_count=response.metadata.row_count or len(response.data),
        execution_time=response.metadata.execution_time or measured_ms,
    )


def chart_suggestions(response: McpQueryResponse) -> List[Any]:
    suggestions: List[Any] = list(response.visualization.suggested_charts)
    config = response.visualization.chart_config
    if isinstance(config, dict) and config.get("type"):
        suggestions.insert(0, config)
    return suggestions


class DashboardOrchestrator:
    """
    Drives one dashboard session

    Each submission takes a fresh token; only the latest submission may
    update the state. Older completions are still written to history.
    """

    def __init__(
        self,
        api: ApiClient,
        history: HistoryCache,
        chart_service: Optional[ChartService] = None,
    ):
        self.api = api
        self.history = history
        self.chart_service = chart_service or ChartService()
        self.state = DashboardState()
        self._tokens = itertools.count(1)
        self._current_token = 0

    def _is_current(self, token: int) -> bool:
        return token == self._current_token

    def _record_failure(self, prompt: str, token: int, message: str) -> PromptHistoryItem:
        item = self.history.add_prompt(prompt, status="error", execution_time=0)
        if self._is_current(token):
            self.state.is_loading = False
            self.state.error = message
            self.state.query = None
            self.state.result = None
            self.state.render = None
            self.state.history_item_id = item.id
        return item

    async def submit_prompt(self, prompt: str) -> Optional[PromptHistoryItem]:
        """
        Run a prompt through the workflow endpoint and record the attempt

        Returns:
            The history item written for this attempt, or None for an empty prompt
        """
        prompt = (prompt or "").strip()
        if not prompt:
            self.state.error = "Prompt is required"
            return None

        token = next(self._tokens)
        self._current_token = token
        self.state.prompt = prompt
        self.state.is_loading = True
        self.state.error = None

        started = time.perf_counter()
        try:
            response = await self.api.mcp_query(prompt)
        except ApiClientError as e:
            logger.warning(f"Prompt failed ({e.status_code}): {e.message}")
            return self._record_failure(prompt, token, e.message)
        except ValueError as e:
            # Non-JSON body or a payload that does not match McpQueryResponse
            logger.error(f"Unreadable query response for prompt {prompt!r}: {e}")
            return self._record_failure(prompt, token, INVALID_RESPONSE)

        measured_ms = int((time.perf_counter() - started) * 1000)
        result = to_query_result(response, measured_ms)
        render = self.chart_service.render_state(result, chart_suggestions(response))

        item = self.history.add_prompt(
            prompt,
            sql_query=response.query,
            execution_time=result.execution_time,
            status="success",
            result_count=result.row_count,
            chart_types=[chart.type for chart in render.charts],
        )

        if not self._is_current(token):
            logger.info(f"Discarding stale result for prompt: {prompt}")
            return item

        self.state.is_loading = False
        self.state.query = response.query
        self.state.result = result
        self.state.render = render
        self.state.history_item_id = item.id
        return item

    async def select_history_item(self, item_id: str) -> Optional[PromptHistoryItem]:
        """Successful entries are re-run; anything else is loaded for editing"""
        item = self.history.get(item_id)
        if item is None:
            return None

        self.state.prompt = item.prompt
        if item.status == "success":
            return await self.submit_prompt(item.prompt)
        return item
