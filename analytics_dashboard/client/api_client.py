"""HTTP client for the dashboard API.

Thin wrapper around httpx.AsyncClient. Error responses raise ApiClientError
carrying the server's ``error`` message and status code.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from analytics_dashboard.schemas import (
    McpQueryResponse,
    PromptHistoryItem,
    ResolutionGuide,
    SolutionResponse,
    TransactionListResponse,
)

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    """Non-2xx response or transport failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiClient:
    """Async client for the dashboard endpoints."""

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """Create the underlying httpx client.

        Args:
            base_url: API base URL.
            access_token: JWT from /auth/callback, sent as a bearer token.
            transport: Optional transport (tests use httpx.ASGITransport or MockTransport).
            timeout: Request timeout in seconds.
        """
        headers = {}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _raise_for_status(self, resp: httpx.Response) -> None:
        """Raise ApiClientError on non-2xx responses."""
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("error", resp.text) if isinstance(body, dict) else resp.text
            raise ApiClientError(message=str(message), status_code=resp.status_code)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ApiClientError(message=f"Request to {url} failed: {e}") from e
        self._raise_for_status(resp)
        return resp

    # History

    async def list_history(self, limit: int = 1000, **filters: Any) -> List[PromptHistoryItem]:
        params = {"limit": limit, **{k: v for k, v in filters.items() if v is not None}}
        resp = await self._request("GET", "/history", params=params)
        return [PromptHistoryItem.model_validate(item) for item in resp.json()]

    async def create_history(self, item: Dict[str, Any]) -> PromptHistoryItem:
        resp = await self._request("POST", "/history", json=item)
        return PromptHistoryItem.model_validate(resp.json())

    async def update_history(self, item_id: str, changes: Dict[str, Any]) -> PromptHistoryItem:
        resp = await self._request("PATCH", f"/history/{item_id}", json=changes)
        return PromptHistoryItem.model_validate(resp.json())

    async def delete_history(self, item_id: str) -> None:
        await self._request("DELETE", f"/history/{item_id}")

    async def clear_history(self) -> None:
        await self._request("DELETE", "/history")

    # Queries

    async def mcp_query(self, prompt: str) -> McpQueryResponse:
        resp = await self._request("POST", "/mcp-query", json={"prompt": prompt})
        return McpQueryResponse.model_validate(resp.json())

    # Transactions & remediation

    async def list_transactions(
        self,
        merchant_id: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> TransactionListResponse:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if merchant_id:
            params["merchant_id"] = merchant_id
        if search:
            params["search"] = search
        resp = await self._request("GET", "/transactions", params=params)
        return TransactionListResponse.model_validate(resp.json())

    async def generate_solution(self, error_message: str) -> SolutionResponse:
        resp = await self._request("POST", "/generate-solution", json={"errorMessage": error_message})
        return SolutionResponse.model_validate(resp.json())

    async def resolution_guide(self, category: str) -> ResolutionGuide:
        resp = await self._request("GET", f"/resolution-guide/{category}")
        return ResolutionGuide.model_validate(resp.json())
