"""Shared test fixtures and configuration for the test suite."""

import sys
from datetime import date
from pathlib import Path
from typing import Generator

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer
from fastapi.testclient import TestClient

# Add the parent directory to the path for imports
sys.path.append(str(Path(__file__).parent.parent))

from taskboard.auth.session import LocalSessionProvider
from taskboard.config import Settings
from taskboard.main import create_app
from taskboard.models.task import TaskStatus
from taskboard.schemas import TaskFormData
from taskboard.services.dashboard import Dashboard
from taskboard.services.memory_store import InMemoryTaskStoreClient
from taskboard.services.notifications import NotificationCenter
from taskboard.services.task_state import TaskStateContainer

from fakes import FakeClock, FakeHostedStore


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings writing logs to a temporary directory."""
    return Settings(
        store_backend="memory",
        log_dir=tmp_path / "logs",
        log_level="DEBUG",
        environment="test",
    )


@pytest_asyncio.fixture
async def session_provider() -> LocalSessionProvider:
    """Session provider with a signed-in user."""
    provider = LocalSessionProvider()
    await provider.initialize()
    await provider.sign_in("user@example.com", "secret")
    return provider


@pytest.fixture
def store(session_provider) -> InMemoryTaskStoreClient:
    """In-memory store scoped to the signed-in user."""
    return InMemoryTaskStoreClient(session_provider)


@pytest.fixture
def container(store, session_provider) -> TaskStateContainer:
    """Empty task collection backed by the in-memory store."""
    return TaskStateContainer(store, session_provider)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dashboard(container, clock) -> Dashboard:
    """Dashboard with a controllable notification clock."""
    return Dashboard(container, NotificationCenter(timeout_seconds=3.0, clock=clock))


@pytest.fixture
def client(test_settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_in_client(client) -> TestClient:
    """Test client with an authenticated session."""
    response = client.post(
        "/auth/sign-in", json={"email": "user@example.com", "password": "secret"}
    )
    assert response.status_code == 200
    return client


@pytest_asyncio.fixture
async def hosted_store():
    """Fake hosted store served on a local port."""
    fake = FakeHostedStore()
    server = TestServer(fake.app)
    await server.start_server()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
def rest_settings(hosted_store, tmp_path) -> Settings:
    """Settings pointing at the fake hosted store."""
    return Settings(
        store_backend="rest",
        store_url=hosted_store.base_url,
        store_api_key=FakeHostedStore.API_KEY,
        store_timeout_seconds=5.0,
        log_dir=tmp_path / "logs",
        environment="test",
    )


# Test data fixtures
@pytest.fixture
def sample_form() -> TaskFormData:
    """Sample task form data for testing."""
    return TaskFormData(
        title="Write report",
        description="Quarterly numbers",
        status=TaskStatus.PENDING,
        due_date=date(2030, 1, 15),
    )


@pytest.fixture
def sample_task_data():
    """Sample task request body for testing."""
    return {
        "title": "Write report",
        "description": "Quarterly numbers",
        "status": "Pending",
        "due_date": "2099-01-15",
    }

