"""Source query adapter: one bounded httpx call per source."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

import httpx
import structlog

from kerkerker.domain.entities.search import CatalogPage, NormalizedResultItem
from kerkerker.domain.entities.sources import SourceDescriptor
from kerkerker.domain.ports.source_query import (
    SourceQueryError,
    UnsupportedSourceKind,
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamParseError,
    UpstreamTimeout,
)
from kerkerker.infrastructure.sources.maccms import MAPPERS, MacCmsJsonMapper

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

T = TypeVar("T")


class HttpxSourceQuery:
    """Implements ``SourceQueryPort`` on a shared ``httpx.AsyncClient``.

    The whole call (connect, send, read, parse) is bounded by the source's
    ``timeout_seconds`` or ``default_timeout``.  Never retries.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        default_timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        mappers: Mapping[str, MacCmsJsonMapper] | None = None,
    ) -> None:
        self._http = http_client
        self._default_timeout = default_timeout
        self._user_agent = user_agent
        self._mappers = dict(mappers) if mappers is not None else MAPPERS

    def timeout_for(self, source: SourceDescriptor) -> float:
        return source.timeout_seconds or self._default_timeout

    def _mapper(self, source: SourceDescriptor) -> MacCmsJsonMapper:
        mapper = self._mappers.get(source.kind)
        if mapper is None:
            raise UnsupportedSourceKind(
                source.key, f"no mapper for source type {source.kind!r}"
            )
        return mapper

    async def _call(
        self,
        source: SourceDescriptor,
        params: dict[str, str],
        parse: Callable[[Any], T],
    ) -> T:
        timeout = self.timeout_for(source)

        async def _fetch_and_parse() -> T:
            resp = await self._http.get(
                source.api,
                params=params,
                headers={"User-Agent": self._user_agent},
                timeout=timeout,
            )
            if not resp.is_success:
                raise UpstreamHttpError(source.key, resp.status_code)
            try:
                payload = resp.json()
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise UpstreamParseError(source.key, f"invalid JSON: {e}") from e
            try:
                return parse(payload)
            except (ValueError, TypeError, AttributeError) as e:
                raise UpstreamParseError(source.key, str(e)) from e

        try:
            return await asyncio.wait_for(_fetch_and_parse(), timeout=timeout)
        except (TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeout(source.key, f"no response within {timeout}s") from e
        except SourceQueryError:
            raise
        except httpx.HTTPError as e:
            raise UpstreamConnectionError(source.key, str(e) or type(e).__name__) from e

    async def search(
        self, source: SourceDescriptor, keyword: str, page: int = 1
    ) -> list[NormalizedResultItem]:
        mapper = self._mapper(source)
        try:
            params = mapper.search_params(source, keyword, page)
        except ValueError as e:
            raise SourceQueryError(source.key, str(e)) from e
        items = await self._call(
            source, params, lambda payload: mapper.parse_items(source, payload)
        )
        log.debug(
            "source_search_done", source=source.key, keyword=keyword, count=len(items)
        )
        return items

    async def list_page(self, source: SourceDescriptor, page: int = 1) -> CatalogPage:
        mapper = self._mapper(source)
        params = mapper.list_params(source, page)
        return await self._call(
            source, params, lambda payload: mapper.parse_page(source, payload)
        )

    async def detail(
        self, source: SourceDescriptor, ids: str
    ) -> list[NormalizedResultItem]:
        mapper = self._mapper(source)
        params = mapper.detail_params(source, ids)
        return await self._call(
            source, params, lambda payload: mapper.parse_items(source, payload)
        )
