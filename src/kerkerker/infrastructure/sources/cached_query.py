"""Caching decorator around a SourceQueryPort."""

from __future__ import annotations

import hashlib
import json
from typing import Any

import structlog

from kerkerker.domain.entities.search import CatalogPage, NormalizedResultItem
from kerkerker.domain.entities.sources import SourceDescriptor
from kerkerker.domain.ports.source_query import SourceQueryPort
from kerkerker.domain.ports.store import StorePort

log = structlog.get_logger(__name__)


def _cache_key(kind: str, source: SourceDescriptor, *parts: object) -> str:
    """Deterministic key over every source field that shapes the request.

    Editing ``api``, ``typeId`` or ``searchParams`` yields a new key.
    """
    raw = ":".join(
        [
            source.key,
            source.api,
            str(source.type_id),
            json.dumps(sorted(source.search_params.items())),
            *(str(p) for p in parts),
        ]
    )
    return f"{kind}:{hashlib.sha256(raw.encode()).hexdigest()[:16]}"


class CachedSourceQuery:
    """Serve repeat queries from the store.

    Only successful, non-empty results are cached; failures always reach
    the wrapped adapter.  A TTL of 0 disables caching for that call type.
    Store errors are logged and ignored.
    """

    def __init__(
        self,
        inner: SourceQueryPort,
        store: StorePort,
        *,
        search_ttl: int = 300,
        list_ttl: int = 300,
        detail_ttl: int = 3600,
    ) -> None:
        self._inner = inner
        self._store = store
        self._search_ttl = search_ttl
        self._list_ttl = list_ttl
        self._detail_ttl = detail_ttl

    async def _read(self, key: str, ttl: int) -> Any:
        if ttl <= 0:
            return None
        try:
            cached = await self._store.get(key)
        except Exception:
            log.warning("query_cache_read_error", cache_key=key, exc_info=True)
            return None
        if cached is not None:
            log.debug("query_cache_hit", cache_key=key)
        return cached

    async def _write(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        try:
            await self._store.set(key, value, ttl=ttl)
        except Exception:
            log.warning("query_cache_store_error", cache_key=key, exc_info=True)

    async def search(
        self, source: SourceDescriptor, keyword: str, page: int = 1
    ) -> list[NormalizedResultItem]:
        key = _cache_key("search", source, keyword.lower().strip(), page)
        cached = await self._read(key, self._search_ttl)
        if cached is not None:
            return cached
        items = await self._inner.search(source, keyword, page)
        if items:
            await self._write(key, items, self._search_ttl)
        return items

    async def list_page(self, source: SourceDescriptor, page: int = 1) -> CatalogPage:
        key = _cache_key("list", source, page)
        cached = await self._read(key, self._list_ttl)
        if cached is not None:
            return cached
        result = await self._inner.list_page(source, page)
        if result.items:
            await self._write(key, result, self._list_ttl)
        return result

    async def detail(
        self, source: SourceDescriptor, ids: str
    ) -> list[NormalizedResultItem]:
        key = _cache_key("detail", source, ids)
        cached = await self._read(key, self._detail_ttl)
        if cached is not None:
            return cached
        items = await self._inner.detail(source, ids)
        if items:
            await self._write(key, items, self._detail_ttl)
        return items
