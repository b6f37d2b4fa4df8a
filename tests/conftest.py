"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - memory_storage: In-process key/value surface backed by a dict
    - session_store: SessionStore over memory_storage, already loaded
    - async_client: HTTPX client for API testing

Implements async fixtures with proper cleanup, scoped per test.
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from smartchat.api import app
from smartchat.sessions.storage import MappingKeyValueStore
from smartchat.sessions.store import SessionStore


@pytest.fixture
def memory_storage() -> MappingKeyValueStore:
    """Return an empty dict-backed key/value store."""
    return MappingKeyValueStore({})


@pytest.fixture
def session_store(memory_storage: MappingKeyValueStore) -> SessionStore:
    """Return a loaded store holding a single default session."""
    store = SessionStore(memory_storage)
    store.load_all()
    return store


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
