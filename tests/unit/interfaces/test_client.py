"""Tests for the search stream consumer."""

from __future__ import annotations

import httpx
import pytest
import respx
from fakes import InMemoryStore, make_item

from kerkerker.domain.entities.search import DoneEvent, InitEvent, ResultEvent
from kerkerker.infrastructure.config import AppConfig, SearchConfig
from kerkerker.infrastructure.streaming.sse import encode_event
from kerkerker.interfaces.client import SearchStreamClient, SearchStreamError

_BASE = "http://kerkerker.test"
_URL = f"{_BASE}/api/v1/search-stream"


def _stream_body(*events) -> bytes:
    return b"".join(encode_event(e) for e in events)


_FULL = _stream_body(
    InitEvent(total_sources=2),
    ResultEvent("b", "B", (make_item("b", "1"),)),
    ResultEvent("a", "A", (make_item("a", "1"), make_item("a", "2"))),
    DoneEvent(),
)


@pytest.fixture()
async def http_client():
    async with httpx.AsyncClient(base_url=_BASE) as client:
        yield client


@pytest.fixture()
def cache() -> InMemoryStore:
    return InMemoryStore()


class TestStream:
    @respx.mock
    async def test_yields_running_aggregate(self, http_client) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        client = SearchStreamClient(http_client)

        snapshots = []
        async for agg in client.stream("hero"):
            snapshots.append((agg.completed, agg.result_count, agg.done))

        assert snapshots == [(0, 0, False), (1, 1, False), (2, 3, False), (2, 3, True)]

    @respx.mock
    async def test_search_returns_final_view(self, http_client) -> None:
        route = respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        client = SearchStreamClient(http_client)

        agg = await client.search("hero", "shorts", page=2)

        assert agg.done is True
        assert agg.total == 2
        assert agg.by_source == {"b": 1, "a": 2}
        params = route.calls.last.request.url.params
        assert (params["q"], params["catalog"], params["page"]) == ("hero", "shorts", "2")

    @respx.mock
    async def test_error_response_raises(self, http_client) -> None:
        respx.get(_URL).mock(
            return_value=httpx.Response(
                404,
                json={
                    "code": 404,
                    "message": "No enabled vod sources configured",
                    "data": None,
                    "error": "no_sources_configured",
                },
            )
        )
        client = SearchStreamClient(http_client)

        with pytest.raises(SearchStreamError) as exc_info:
            await client.search("hero")
        assert exc_info.value.status_code == 404
        assert exc_info.value.error == "no_sources_configured"

    @respx.mock
    async def test_truncated_stream_not_done(self, http_client, cache) -> None:
        body = _stream_body(InitEvent(total_sources=2), ResultEvent("a", "A"))
        respx.get(_URL).mock(return_value=httpx.Response(200, content=body))
        client = SearchStreamClient(http_client, cache=cache)

        agg = await client.search("hero")

        assert agg.done is False
        assert agg.completed == 1
        assert cache.data == {}


class TestKeywordCache:
    @respx.mock
    async def test_done_aggregate_cached_and_reused(self, http_client, cache) -> None:
        route = respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        client = SearchStreamClient(http_client, cache=cache, cache_ttl=600)

        first = await client.search("hero")
        second = await client.search("hero")

        assert route.call_count == 1
        assert second == first
        assert list(cache.ttls.values()) == [600]

    @respx.mock
    async def test_from_config_uses_configured_ttl(self, http_client, cache) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        config = AppConfig(search=SearchConfig(client_cache_ttl_seconds=120))
        client = SearchStreamClient.from_config(http_client, config, cache=cache)

        await client.search("hero")

        assert list(cache.ttls.values()) == [120]

    @respx.mock
    async def test_refresh_bypasses_cache(self, http_client, cache) -> None:
        route = respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        client = SearchStreamClient(http_client, cache=cache)

        await client.search("hero")
        await client.search("hero", refresh=True)

        assert route.call_count == 2

    @respx.mock
    async def test_catalogs_cached_separately(self, http_client, cache) -> None:
        route = respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        client = SearchStreamClient(http_client, cache=cache)

        await client.search("hero", "vod")
        await client.search("hero", "shorts")

        assert route.call_count == 2

    @respx.mock
    async def test_cache_failure_falls_through(self, http_client, cache) -> None:
        respx.get(_URL).mock(return_value=httpx.Response(200, content=_FULL))
        cache.fail = True
        client = SearchStreamClient(http_client, cache=cache)

        agg = await client.search("hero")

        assert agg.done is True
