"""Streaming fan-out search across every enabled source.

keyword -> registry snapshot -> one concurrent adapter call per source
-> init / result xN / done events, in completion order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Protocol

import structlog

from kerkerker.domain.entities.search import (
    DoneEvent,
    EmptyKeyword,
    InitEvent,
    NoSourcesConfigured,
    NormalizedResultItem,
    ResultEvent,
    SearchError,
    SearchEvent,
)
from kerkerker.domain.entities.sources import Catalog, SourceDescriptor
from kerkerker.domain.ports.source_query import (
    SourceQueryPort,
    UnsupportedSourceKind,
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamParseError,
    UpstreamTimeout,
)
from kerkerker.domain.ports.source_registry import SourceRegistryPort

log = structlog.get_logger(__name__)


class _Metrics(Protocol):
    def record_source_query(
        self,
        key: str,
        duration_ns: int,
        result_count: int,
        *,
        error_kind: str | None = None,
    ) -> None: ...

    def session_started(self) -> None: ...

    def session_finished(self, duration_ns: int, *, cancelled: bool) -> None: ...


_ERROR_KINDS: tuple[tuple[type[Exception], str], ...] = (
    (UpstreamTimeout, "timeout"),
    (UpstreamHttpError, "http_error"),
    (UpstreamParseError, "parse_error"),
    (UpstreamConnectionError, "connection_error"),
    (UnsupportedSourceKind, "unsupported_kind"),
    (TimeoutError, "timeout"),
)


def _error_kind(exc: Exception) -> str:
    for exc_type, kind in _ERROR_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return "error"


class FanOutSession:
    """One search request, from dispatch to ``done``.

    The source list is a snapshot taken at open time.  Each adapter call
    writes only its own slot in ``results_by_source`` / ``errors``;
    completions reach the consumer one at a time through ``events()``.
    """

    def __init__(
        self,
        *,
        keyword: str,
        catalog: Catalog,
        page: int,
        sources: Sequence[SourceDescriptor],
        query: SourceQueryPort,
        semaphore: asyncio.Semaphore | None = None,
        metrics: _Metrics | None = None,
    ) -> None:
        self.keyword = keyword
        self.catalog = catalog
        self.page = page
        self.sources: tuple[SourceDescriptor, ...] = tuple(sources)
        self.completed = 0
        self.results_by_source: dict[str, list[NormalizedResultItem]] = {}
        self.errors: dict[str, str] = {}
        self._query = query
        self._semaphore = semaphore
        self._metrics = metrics
        self._started = False

    @property
    def total(self) -> int:
        return len(self.sources)

    @property
    def is_done(self) -> bool:
        return self.completed == self.total

    def _slot(self) -> AbstractAsyncContextManager[object]:
        return self._semaphore if self._semaphore is not None else nullcontext()

    async def _query_one(self, source: SourceDescriptor) -> ResultEvent:
        """Run one adapter call; every outcome becomes a ResultEvent."""
        t0 = time.perf_counter_ns()
        items: list[NormalizedResultItem] = []
        error_kind: str | None = None
        try:
            async with self._slot():
                items = await self._query.search(source, self.keyword, self.page)
        except Exception as e:
            error_kind = _error_kind(e)
            self.errors[source.key] = error_kind
            log.warning(
                "source_query_failed",
                source=source.key,
                keyword=self.keyword,
                error_kind=error_kind,
                error=str(e),
            )
            items = []

        if self._metrics is not None:
            self._metrics.record_source_query(
                source.key,
                time.perf_counter_ns() - t0,
                len(items),
                error_kind=error_kind,
            )

        self.results_by_source[source.key] = items
        return ResultEvent(
            source_key=source.key,
            source_name=source.name,
            results=tuple(items),
        )

    async def events(self) -> AsyncIterator[SearchEvent]:
        """Yield ``init``, one ``result`` per source, then ``done``.

        Closing the iterator early cancels every in-flight adapter call.
        """
        if self._started:
            raise RuntimeError("FanOutSession.events() can only be iterated once")
        self._started = True

        t0 = time.perf_counter_ns()
        if self._metrics is not None:
            self._metrics.session_started()

        tasks = [
            asyncio.create_task(self._query_one(source), name=f"search:{source.key}")
            for source in self.sources
        ]
        try:
            yield InitEvent(total_sources=self.total)
            for next_done in asyncio.as_completed(tasks):
                event = await next_done
                self.completed += 1
                yield event
            yield DoneEvent()
        finally:
            pending = [t for t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

            duration_ns = time.perf_counter_ns() - t0
            cancelled = not self.is_done
            if self._metrics is not None:
                self._metrics.session_finished(duration_ns, cancelled=cancelled)
            log.info(
                "search_session_cancelled" if cancelled else "search_session_done",
                keyword=self.keyword,
                catalog=self.catalog,
                total=self.total,
                completed=self.completed,
                failed=len(self.errors),
                results=sum(len(v) for v in self.results_by_source.values()),
                duration_ms=round(duration_ns / 1_000_000, 1),
            )


class SearchStreamUseCase:
    """Opens fan-out sessions against the VOD or shorts registry.

    ``max_concurrent`` bounds how many sources of one session are queried
    at once; 0 queries all of them together.
    """

    def __init__(
        self,
        *,
        registries: Mapping[Catalog, SourceRegistryPort],
        query: SourceQueryPort,
        max_concurrent: int = 0,
        metrics: _Metrics | None = None,
    ) -> None:
        self._registries = registries
        self._query = query
        self._max_concurrent = max_concurrent
        self._metrics = metrics

    async def open(
        self, keyword: str, catalog: Catalog = "vod", page: int = 1
    ) -> FanOutSession:
        """Snapshot enabled sources and prepare a session.

        Raises:
            EmptyKeyword: keyword is blank.
            NoSourcesConfigured: the registry has no enabled source.
        """
        keyword = (keyword or "").strip()
        if not keyword:
            raise EmptyKeyword("Search keyword must not be empty")
        if page < 1:
            raise SearchError("page must be >= 1")

        registry = self._registries.get(catalog)
        if registry is None:
            raise SearchError(f"Unknown catalog: {catalog!r}")

        sources = await registry.list_sources()
        if not sources:
            raise NoSourcesConfigured(f"No enabled {catalog} sources configured")

        semaphore = (
            asyncio.Semaphore(self._max_concurrent) if self._max_concurrent > 0 else None
        )
        log.info(
            "search_session_open",
            keyword=keyword,
            catalog=catalog,
            page=page,
            sources=[s.key for s in sources],
        )
        return FanOutSession(
            keyword=keyword,
            catalog=catalog,
            page=page,
            sources=sources,
            query=self._query,
            semaphore=semaphore,
            metrics=self._metrics,
        )
