"""Tests for the dashboard orchestrator."""

import asyncio
import json

import httpx
import pytest

from analytics_dashboard.client import ApiClient, DashboardOrchestrator, HistoryCache, LocalStore
from analytics_dashboard.client.dashboard import INVALID_RESPONSE
from analytics_dashboard.services.chart_service import NO_DATA_MESSAGE


def mcp_response(prompt, data=None, columns=None, charts=None, execution_time=42, query=None):
    data = [{"month": "2024-01", "revenue": 100}, {"month": "2024-02", "revenue": 140}] if data is None else data
    return {
        "prompt": prompt,
        "query": query or f"SELECT month, revenue FROM sales -- {prompt}",
        "data": data,
        "metadata": {
            "rowCount": len(data),
            "columns": columns if columns is not None else (list(data[0].keys()) if data else []),
            "dataTypes": [],
            "executionTime": execution_time,
        },
        "visualization": {"suggestedCharts": charts if charts is not None else ["line"], "chartConfig": {}},
    }


class FakeServer:
    """Handler for httpx.MockTransport answering POST /mcp-query."""

    def __init__(self, respond=None):
        self.prompts = []
        self.respond = respond or (lambda prompt: httpx.Response(200, json=mcp_response(prompt)))

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/mcp-query"
        prompt = json.loads(request.content)["prompt"]
        self.prompts.append(prompt)
        response = self.respond(prompt)
        if asyncio.iscoroutine(response):
            response = await response
        return response


def _orchestrator(server):
    api = ApiClient(base_url="http://testserver", access_token="t", transport=httpx.MockTransport(server))
    return DashboardOrchestrator(api, HistoryCache(store=LocalStore()))


@pytest.mark.asyncio
async def test_successful_prompt_updates_state_and_history():
    orchestrator = _orchestrator(FakeServer())

    item = await orchestrator.submit_prompt("Wie hat sich der Umsatz entwickelt?")

    state = orchestrator.state
    assert state.is_loading is False
    assert state.error is None
    assert state.result.row_count == 2
    assert state.result.execution_time == 42
    assert state.render.kind == "charts"
    assert [c.type for c in state.charts] == ["line"]
    assert state.history_item_id == item.id

    assert item.status == "success"
    assert item.chart_types == ["line"]
    assert item.execution_time == 42
    assert item.result_count == 2
    assert item.sql_query.startswith("SELECT month, revenue")


@pytest.mark.asyncio
async def test_unsupported_suggestion_falls_back_to_bar_chart():
    orchestrator = _orchestrator(FakeServer(lambda p: httpx.Response(200, json=mcp_response(p, charts=["table"]))))

    item = await orchestrator.submit_prompt("Umsatz")

    assert item.chart_types == ["bar"]
    assert orchestrator.state.charts[0].y_axis == "revenue"


@pytest.mark.asyncio
async def test_empty_data_shows_placeholder():
    orchestrator = _orchestrator(FakeServer(lambda p: httpx.Response(200, json=mcp_response(p, data=[]))))

    item = await orchestrator.submit_prompt("Umsatz 1999")

    assert orchestrator.state.render.kind == "no_data"
    assert orchestrator.state.render.message == NO_DATA_MESSAGE
    assert item.status == "success"
    assert item.chart_types == []


@pytest.mark.asyncio
async def test_failed_prompt_records_error():
    orchestrator = _orchestrator(FakeServer(lambda p: httpx.Response(
        500, json={"error": "Failed to execute MCP query", "details": "integration offline"},
    )))

    item = await orchestrator.submit_prompt("Umsatz")

    assert orchestrator.state.error == "Failed to execute MCP query"
    assert orchestrator.state.result is None
    assert orchestrator.state.is_loading is False
    assert item.status == "error"
    assert item.execution_time == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"data": "not rows"}),
    httpx.Response(200, text="<html>gateway</html>"),
])
async def test_malformed_response_records_error(response):
    orchestrator = _orchestrator(FakeServer(lambda p: response))

    item = await orchestrator.submit_prompt("Umsatz")

    assert orchestrator.state.is_loading is False
    assert orchestrator.state.error == INVALID_RESPONSE
    assert orchestrator.state.history_item_id == item.id
    assert item.status == "error"
    assert item.execution_time == 0


@pytest.mark.asyncio
async def test_empty_prompt_is_not_sent():
    server = FakeServer()
    orchestrator = _orchestrator(server)

    assert await orchestrator.submit_prompt("   ") is None

    assert orchestrator.state.error == "Prompt is required"
    assert server.prompts == []
    assert orchestrator.history.items == []


@pytest.mark.asyncio
async def test_stale_completion_does_not_overwrite_newer_result():
    gate = asyncio.Event()

    async def respond(prompt):
        if prompt == "slow":
            await gate.wait()
        return httpx.Response(200, json=mcp_response(prompt, query=f"SELECT {prompt}"))

    orchestrator = _orchestrator(FakeServer(respond))

    slow = asyncio.create_task(orchestrator.submit_prompt("slow"))
    await asyncio.sleep(0)
    await orchestrator.submit_prompt("fast")
    gate.set()
    stale_item = await slow

    assert orchestrator.state.prompt == "fast"
    assert orchestrator.state.query == "SELECT fast"
    # The stale attempt is still part of the history
    assert stale_item.status == "success"
    assert {i.prompt for i in orchestrator.history.items} == {"slow", "fast"}


@pytest.mark.asyncio
async def test_selecting_successful_item_reruns_it():
    server = FakeServer()
    orchestrator = _orchestrator(server)
    item = await orchestrator.submit_prompt("Umsatz")

    await orchestrator.select_history_item(item.id)

    assert server.prompts == ["Umsatz", "Umsatz"]
    assert len(orchestrator.history.items) == 2


@pytest.mark.asyncio
async def test_selecting_failed_item_only_loads_prompt():
    server = FakeServer()
    orchestrator = _orchestrator(server)
    failed = orchestrator.history.add_prompt("Kaputte Anfrage", status="error", execution_time=0)

    result = await orchestrator.select_history_item(failed.id)

    assert result == failed
    assert orchestrator.state.prompt == "Kaputte Anfrage"
    assert server.prompts == []


@pytest.mark.asyncio
async def test_selecting_unknown_item():
    assert await _orchestrator(FakeServer()).select_history_item("nope") is None
