"""Consumer of the search event stream.

``SearchStreamClient`` reads ``/api/v1/search-stream`` incrementally and
folds every event into a :class:`SearchAggregate`.  When the stream
reports ``done`` the frozen aggregate is kept in a short-lived,
keyword-keyed cache so a repeat search is answered without re-querying
the upstreams.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog

from kerkerker.domain.entities.search import SearchAggregate
from kerkerker.domain.ports.store import StoreError, StorePort
from kerkerker.infrastructure.config.schema import AppConfig
from kerkerker.infrastructure.streaming.sse import SseDecoder

log = structlog.get_logger(__name__)

SEARCH_STREAM_PATH = "/api/v1/search-stream"


class SearchStreamError(Exception):
    """The server refused to open a search stream."""

    def __init__(self, status_code: int, body: dict[str, Any] | None) -> None:
        message = (body or {}).get("message") or f"HTTP {status_code}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}

    @property
    def error(self) -> str | None:
        return self.body.get("error")


def _cache_key(catalog: str, keyword: str) -> str:
    return f"search_cache:{catalog}:{keyword.strip()}"


class SearchStreamClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        cache: StorePort | None = None,
        cache_ttl: int = 600,
        path: str = SEARCH_STREAM_PATH,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._path = path

    @classmethod
    def from_config(
        cls,
        http_client: httpx.AsyncClient,
        config: AppConfig,
        *,
        cache: StorePort | None = None,
    ) -> SearchStreamClient:
        """Client whose keyword cache lives for ``search.client_cache_ttl_seconds``."""
        return cls(
            http_client,
            cache=cache,
            cache_ttl=config.search.client_cache_ttl_seconds,
        )

    async def stream(
        self,
        keyword: str,
        catalog: str = "vod",
        *,
        page: int = 1,
        refresh: bool = False,
    ) -> AsyncIterator[SearchAggregate]:
        """Yield the running aggregate after every applied event.

        A cached aggregate is yielded once, already done, unless
        ``refresh`` is set.
        """
        if not refresh:
            cached = await self._load_cached(catalog, keyword)
            if cached is not None:
                log.debug("search_cache_hit", keyword=keyword, catalog=catalog)
                yield cached
                return

        aggregate = SearchAggregate(keyword=keyword)
        decoder = SseDecoder()
        params = {"q": keyword, "catalog": catalog, "page": page}

        async with self._http.stream("GET", self._path, params=params) as resp:
            if resp.status_code != 200:
                await resp.aread()
                raise SearchStreamError(resp.status_code, _json_or_none(resp))

            async for chunk in resp.aiter_bytes():
                for payload in decoder.feed(chunk):
                    aggregate.apply(payload)
                    yield aggregate
                if aggregate.done:
                    break
            else:
                for payload in decoder.close():
                    aggregate.apply(payload)
                    yield aggregate

        if aggregate.done:
            await self._store_cached(catalog, aggregate)
        else:
            log.warning(
                "search_stream_ended_early",
                keyword=keyword,
                completed=aggregate.completed,
                total=aggregate.total,
            )

    async def search(
        self,
        keyword: str,
        catalog: str = "vod",
        *,
        page: int = 1,
        refresh: bool = False,
    ) -> SearchAggregate:
        """Consume the whole stream and return the final aggregate."""
        final = SearchAggregate(keyword=keyword)
        async for aggregate in self.stream(
            keyword, catalog, page=page, refresh=refresh
        ):
            final = aggregate
        return final

    async def _load_cached(self, catalog: str, keyword: str) -> SearchAggregate | None:
        if self._cache is None or self._cache_ttl <= 0:
            return None
        try:
            raw = await self._cache.get(_cache_key(catalog, keyword))
        except StoreError as e:
            log.warning("search_cache_read_failed", keyword=keyword, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return SearchAggregate.from_payload(json.loads(raw))
        except (TypeError, ValueError):
            log.warning("search_cache_entry_invalid", keyword=keyword)
            return None

    async def _store_cached(self, catalog: str, aggregate: SearchAggregate) -> None:
        if self._cache is None or self._cache_ttl <= 0:
            return
        try:
            await self._cache.set(
                _cache_key(catalog, aggregate.keyword),
                json.dumps(aggregate.to_payload(), ensure_ascii=False),
                ttl=self._cache_ttl,
            )
        except StoreError as e:
            log.warning(
                "search_cache_write_failed", keyword=aggregate.keyword, error=str(e)
            )


def _json_or_none(resp: httpx.Response) -> dict[str, Any] | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
