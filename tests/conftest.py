"""Shared test fixtures for the kerkerker test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fakes import FakeSourceQuery, InMemoryStore

from kerkerker.infrastructure.persistence.source_registry_store import (
    StoreSourceRegistry,
)


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def registries(store: InMemoryStore) -> dict[str, StoreSourceRegistry]:
    """VOD + shorts registries sharing one in-memory store."""
    return {
        "vod": StoreSourceRegistry(store, "vod"),
        "shorts": StoreSourceRegistry(store, "shorts"),
    }


@pytest.fixture()
def fake_query() -> FakeSourceQuery:
    return FakeSourceQuery()


@pytest.fixture()
def mock_store() -> AsyncMock:
    """Mock StorePort."""
    mock = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    mock.set = AsyncMock()
    mock.delete = AsyncMock(return_value=True)
    mock.exists = AsyncMock(return_value=False)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock
