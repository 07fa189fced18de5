"""Root-level pytest fixtures.

Provides:
- An in-memory database wired into a fresh app instance
- A signed-in user with a merchant assignment
- Factories for httpx mock transports standing in for the workflow
  service and the text-generation API
"""

import json
import os
import random
from collections.abc import Generator
from typing import Any, Callable, Dict, Optional

# Settings are read at import time; keep tests independent of a local .env
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["SIMULATED_FAILURE_RATE"] = "0"
os.environ["SUPERADMIN_EMAIL"] = ""
os.environ["SUPERGLUE_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["UNKNOWN_EVENT_STATUS"] = "success"
os.environ["SOLUTION_STATIC_FALLBACK"] = "0"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from analytics_dashboard.core.database import Database
from analytics_dashboard.core.security import create_access_token
from analytics_dashboard.main import create_app
from analytics_dashboard.models import Merchant, User, UserMerchant
from analytics_dashboard.pipeline.sql import SampleDataBackend


# ============================================================================
# Database / app
# ============================================================================


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database with all tables created."""
    db = Database("sqlite:///:memory:")
    db.init_db()
    yield db
    db.close()


@pytest.fixture
def session(database: Database) -> Generator[Session, None, None]:
    with database.session() as s:
        yield s


@pytest.fixture
def app(database: Database):
    application = create_app(database)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


# ============================================================================
# Users & merchants
# ============================================================================


@pytest.fixture
def merchant(session: Session) -> Merchant:
    m = Merchant(id="merchant_008", name="Alpine Outfitters", category="Sport")
    session.add(m)
    session.commit()
    return m


@pytest.fixture
def user(session: Session, merchant: Merchant) -> User:
    """Active user who administers merchant_008."""
    u = User(id="user-1", email="ana@example.com", status="active")
    session.add(u)
    session.commit()
    UserMerchant.create(session, u.id, merchant.id, role="admin")
    return u


def bearer(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user_id})}"}


@pytest.fixture
def auth_headers(user: User) -> Dict[str, str]:
    return bearer(user.id)


@pytest.fixture
def other_user(session: Session) -> User:
    """Active user without any merchant assignment."""
    u = User(id="user-2", email="ben@example.com", status="active")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def other_headers(other_user: User) -> Dict[str, str]:
    return bearer(other_user.id)


# ============================================================================
# Collaborator transports
# ============================================================================


@pytest.fixture
def sample_backend() -> SampleDataBackend:
    return SampleDataBackend(failure_rate=0.0, rng=random.Random(7))


@pytest.fixture
def workflow_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for a fake GraphQL workflow service.

    Args (of the returned factory):
        execute_result: Value of data.executeWorkflow
        build_errors: GraphQL errors returned for buildWorkflow
        execute_status: HTTP status for the execute call
    """

    def factory(
        execute_result: Any = None,
        build_errors: Optional[list] = None,
        execute_status: int = 200,
        calls: Optional[list] = None,
    ) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if calls is not None:
                calls.append(body)
            if "buildWorkflow" in body["query"]:
                if build_errors:
                    return httpx.Response(200, json={"errors": build_errors})
                return httpx.Response(200, json={"data": {"buildWorkflow": {
                    "id": "wf-1",
                    "steps": [{"id": "step-1", "apiConfig": {"id": "api-1", "body": "{}"}}],
                }}})
            if execute_status != 200:
                return httpx.Response(execute_status, text="upstream down")
            return httpx.Response(200, json={"data": {"executeWorkflow": execute_result}})

        return httpx.MockTransport(handler)

    return factory


@pytest.fixture
def llm_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for a fake chat-completions endpoint answering with fixed content."""

    def factory(content: str = "", status: int = 200, calls: Optional[list] = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if calls is not None:
                calls.append(json.loads(request.content))
            if status != 200:
                return httpx.Response(status, json={"error": {"message": "boom"}})
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        return httpx.MockTransport(handler)

    return factory
