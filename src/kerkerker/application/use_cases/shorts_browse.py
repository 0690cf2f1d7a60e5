"""Single-source browsing of the shorts catalog (no fan-out)."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from kerkerker.domain.entities.search import (
    CatalogPage,
    ItemNotFound,
    NoSourcesConfigured,
    NormalizedResultItem,
)
from kerkerker.domain.entities.sources import SourceDescriptor
from kerkerker.domain.ports.source_query import SourceQueryPort
from kerkerker.domain.ports.source_registry import SourceRegistryPort

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ShortsPage:
    source: SourceDescriptor
    sources: list[SourceDescriptor]
    page: CatalogPage


class ShortsBrowseUseCase:
    """List and detail calls against one shorts source.

    A missing or unknown ``source_key`` falls back to the first enabled
    source.
    """

    def __init__(self, registry: SourceRegistryPort, query: SourceQueryPort) -> None:
        self._registry = registry
        self._query = query

    async def _resolve(
        self, source_key: str | None
    ) -> tuple[SourceDescriptor, list[SourceDescriptor]]:
        sources = await self._registry.list_sources()
        if not sources:
            raise NoSourcesConfigured("No enabled shorts sources configured")
        if source_key:
            for source in sources:
                if source.key == source_key:
                    return source, sources
            log.debug("shorts_source_fallback", requested=source_key)
        return sources[0], sources

    async def list_page(
        self, page: int = 1, source_key: str | None = None
    ) -> ShortsPage:
        source, sources = await self._resolve(source_key)
        result = await self._query.list_page(source, max(page, 1))
        return ShortsPage(source=source, sources=sources, page=result)

    async def detail(
        self, ids: str, source_key: str | None = None
    ) -> tuple[SourceDescriptor, NormalizedResultItem]:
        """Return the first matching record.

        Raises:
            ItemNotFound: the upstream has no record for ``ids``.
        """
        source, _ = await self._resolve(source_key)
        items = await self._query.detail(source, ids)
        if not items:
            raise ItemNotFound(ids)
        return source, items[0]
