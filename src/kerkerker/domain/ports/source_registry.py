"""Port for one persistent, ordered registry of source descriptors."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from kerkerker.domain.entities.sources import Catalog, SourceDescriptor


class SourceRegistryPort(Protocol):
    """Async interface over the VOD or shorts source collection.

    Reads return descriptors ordered by ``(priority, insertion)`` and
    always hit the backing store.  Writes are validated before anything
    is persisted; a rejected write leaves the stored collection untouched.
    """

    catalog: Catalog

    async def list_sources(
        self, *, include_disabled: bool = False
    ) -> list[SourceDescriptor]: ...

    async def get(self, key: str) -> SourceDescriptor: ...

    async def replace_all(
        self, sources: Sequence[SourceDescriptor]
    ) -> list[SourceDescriptor]: ...

    async def merge(
        self, sources: Sequence[SourceDescriptor]
    ) -> tuple[list[SourceDescriptor], int]: ...

    async def add(self, source: SourceDescriptor) -> SourceDescriptor: ...

    async def update(
        self, key: str, changes: Mapping[str, Any]
    ) -> SourceDescriptor: ...

    async def delete(self, key: str) -> None: ...
    async def clear(self) -> None: ...
    async def set_enabled(self, key: str, enabled: bool) -> SourceDescriptor: ...
    async def reorder(self, keys: Sequence[str]) -> list[SourceDescriptor]: ...

    async def get_selected(self) -> SourceDescriptor | None: ...
    async def set_selected(self, key: str) -> None: ...
    async def selected_key(self) -> str | None: ...
