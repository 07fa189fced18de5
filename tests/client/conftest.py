"""Fixtures for client SDK tests."""

from typing import Callable, Dict

import httpx
import pytest

from analytics_dashboard.client import ApiClient


@pytest.fixture
def api_factory(app, auth_headers: Dict[str, str]) -> Callable[[], ApiClient]:
    """ApiClient talking to the in-process app through httpx.ASGITransport."""
    token = auth_headers["Authorization"].split(" ", 1)[1]

    def make() -> ApiClient:
        return ApiClient(
            base_url="http://testserver",
            access_token=token,
            transport=httpx.ASGITransport(app=app),
        )

    return make
