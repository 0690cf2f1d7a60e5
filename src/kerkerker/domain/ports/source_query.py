"""Port for querying one upstream source and normalizing its response."""

from __future__ import annotations

from typing import Protocol

from kerkerker.domain.entities.search import CatalogPage, NormalizedResultItem
from kerkerker.domain.entities.sources import SourceDescriptor


class SourceQueryError(Exception):
    """A single upstream query failed; other sources are unaffected."""

    def __init__(self, source_key: str, message: str) -> None:
        super().__init__(f"[{source_key}] {message}")
        self.source_key = source_key


class UpstreamTimeout(SourceQueryError):
    pass


class UpstreamHttpError(SourceQueryError):
    def __init__(self, source_key: str, status_code: int) -> None:
        super().__init__(source_key, f"upstream returned HTTP {status_code}")
        self.status_code = status_code


class UpstreamParseError(SourceQueryError):
    pass


class UpstreamConnectionError(SourceQueryError):
    """DNS, connect or TLS failure before any HTTP status was received."""


class UnsupportedSourceKind(SourceQueryError):
    pass


class SourceQueryPort(Protocol):
    """One call per source; each call bounded by the source's timeout."""

    async def search(
        self, source: SourceDescriptor, keyword: str, page: int = 1
    ) -> list[NormalizedResultItem]: ...

    async def list_page(
        self, source: SourceDescriptor, page: int = 1
    ) -> CatalogPage: ...

    async def detail(
        self, source: SourceDescriptor, ids: str
    ) -> list[NormalizedResultItem]: ...
