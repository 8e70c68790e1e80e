"""Common test fixtures for the notes API and client."""

import pytest
from fastapi.testclient import TestClient

from domains.core import register_core_services, reset_service_registry
from tests.helpers import register

# 测试中使用较低的哈希迭代次数
FAST_HASH_ITERATIONS = 1_000


@pytest.fixture(params=["asyncio"])
def anyio_backend(request):
    """Restrict anyio tests to asyncio only (trio is not installed)."""
    return request.param


@pytest.fixture
def registry():
    """Fresh service registry backed by the in-memory store."""
    reset_service_registry()
    registry = register_core_services(storage_backend="memory", hash_iterations=FAST_HASH_ITERATIONS)
    yield registry
    reset_service_registry()


@pytest.fixture
def store(registry):
    return registry.get("notes_store")


@pytest.fixture
def notebook_service(registry):
    return registry.get("notebook_service")


@pytest.fixture
def app(registry):
    from app.main import create_application
    return create_application()


@pytest.fixture
def client(app):
    """TestClient used as a context manager so HTTP and WebSocket share one event loop."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def alice(client):
    """Registered and signed-in user; returns the user id."""
    return register(client, "alice", "1234")
