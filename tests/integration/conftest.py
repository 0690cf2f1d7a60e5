"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheStore,
StoreSourceRegistry, HttpxSourceQuery) with mocked HTTP via respx.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from kerkerker.infrastructure.storage.diskcache_adapter import DiskcacheStore


@pytest.fixture()
async def http_client():
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
async def diskcache(tmp_path: Path):
    """Real DiskcacheStore backed by tmp_path (auto-cleaned)."""
    store = DiskcacheStore(directory=tmp_path / "store", max_concurrent=5)
    async with store:
        yield store


@pytest.fixture()
def respx_mock():
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
