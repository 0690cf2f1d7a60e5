"""Source registry backed by StorePort (diskcache/redis).

Each registry keeps two documents:

- ``{catalog}_sources``: the whole descriptor collection as one JSON
  array, so a bulk replace is a single write and readers see either the
  old or the new set.
- ``{catalog}_source_selection``: the selection singleton (fixed id 1).
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping, Sequence
from dataclasses import asdict, fields, replace
from datetime import datetime, timezone
from typing import Any

import structlog

from kerkerker.domain.entities.sources import (
    Catalog,
    DuplicateSourceKey,
    InvalidSource,
    RegistryStorageError,
    SourceDescriptor,
    SourceNotFound,
    SourceSelection,
    resolve_selection,
    sort_sources,
    validate_batch,
    validate_source,
)
from kerkerker.domain.ports.store import StoreError, StorePort

log = structlog.get_logger(__name__)

_SELECTION_ID = 1
_DESCRIPTOR_FIELDS = frozenset(f.name for f in fields(SourceDescriptor))
_IMMUTABLE_FIELDS = frozenset({"key", "sort_order", "created_at", "updated_at"})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _serialize_sources(sources: Sequence[SourceDescriptor]) -> str:
    return json.dumps([asdict(s) for s in sources], ensure_ascii=False)


def _deserialize_sources(data: str) -> list[SourceDescriptor]:
    docs = json.loads(data)
    return [
        SourceDescriptor(**{k: v for k, v in d.items() if k in _DESCRIPTOR_FIELDS})
        for d in docs
    ]


class StoreSourceRegistry:
    """Persistent, ordered registry of one catalog's sources.

    Every read goes to the store; there is no in-process cache.
    Read-modify-write operations are serialized by a per-registry lock.
    """

    def __init__(self, store: StorePort, catalog: Catalog) -> None:
        self.store = store
        self.catalog: Catalog = catalog
        self._sources_key = f"{catalog}_sources"
        self._selection_key = f"{catalog}_source_selection"
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _load(self) -> list[SourceDescriptor]:
        try:
            data = await self.store.get(self._sources_key)
        except StoreError as e:
            raise RegistryStorageError(str(e)) from e
        if data is None:
            return []
        try:
            return _deserialize_sources(data)
        except (json.JSONDecodeError, TypeError) as e:
            log.error(
                "source_registry_corrupt", catalog=self.catalog, error=str(e)
            )
            raise RegistryStorageError(
                f"{self._sources_key} document is unreadable"
            ) from e

    async def _save(self, sources: Sequence[SourceDescriptor]) -> None:
        try:
            await self.store.set(self._sources_key, _serialize_sources(sources))
        except StoreError as e:
            raise RegistryStorageError(str(e)) from e

    async def _load_selection(self) -> SourceSelection:
        try:
            data = await self.store.get(self._selection_key)
        except StoreError as e:
            raise RegistryStorageError(str(e)) from e
        if data is None:
            return SourceSelection()
        try:
            doc = json.loads(data)
        except json.JSONDecodeError:
            log.warning("source_selection_corrupt", catalog=self.catalog)
            return SourceSelection()
        return SourceSelection(
            selected_key=doc.get("selected_key"),
            updated_at=doc.get("updated_at"),
        )

    @staticmethod
    def _find(sources: Sequence[SourceDescriptor], key: str) -> int:
        for idx, source in enumerate(sources):
            if source.key == key:
                return idx
        raise SourceNotFound(key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_sources(
        self, *, include_disabled: bool = False
    ) -> list[SourceDescriptor]:
        sources = await self._load()
        if not include_disabled:
            sources = [s for s in sources if s.enabled]
        return sort_sources(sources)

    async def get(self, key: str) -> SourceDescriptor:
        sources = await self._load()
        return sources[self._find(sources, key)]

    async def selected_key(self) -> str | None:
        return (await self._load_selection()).selected_key

    async def get_selected(self) -> SourceDescriptor | None:
        selection = await self._load_selection()
        return resolve_selection(selection.selected_key, await self._load())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def replace_all(
        self, sources: Sequence[SourceDescriptor]
    ) -> list[SourceDescriptor]:
        """Swap the whole collection in one write.

        ``sort_order`` becomes the batch index and a missing ``priority``
        defaults to the index.
        """
        validate_batch(sources)
        now = _now_iso()
        staged = [
            replace(
                source,
                priority=source.priority if source.priority is not None else idx,
                sort_order=idx,
                created_at=source.created_at or now,
                updated_at=now,
            )
            for idx, source in enumerate(sources)
        ]
        async with self._lock:
            await self._save(staged)
        log.info("sources_replaced", catalog=self.catalog, count=len(staged))
        return sort_sources(staged)

    async def merge(
        self, sources: Sequence[SourceDescriptor]
    ) -> tuple[list[SourceDescriptor], int]:
        """Append the descriptors whose key is not stored yet.

        Stored descriptors win over incoming ones with the same key.
        Returns ``(added, skipped)``.
        """
        validate_batch(sources)
        async with self._lock:
            existing = await self._load()
            known = {s.key for s in existing}
            next_order = max((s.sort_order for s in existing), default=-1) + 1
            now = _now_iso()
            added: list[SourceDescriptor] = []
            for source in sources:
                if source.key in known:
                    continue
                order = next_order + len(added)
                added.append(
                    replace(
                        source,
                        priority=source.priority
                        if source.priority is not None
                        else order,
                        sort_order=order,
                        created_at=source.created_at or now,
                        updated_at=now,
                    )
                )
            if added:
                await self._save([*existing, *added])
        log.info(
            "sources_merged",
            catalog=self.catalog,
            added=len(added),
            skipped=len(sources) - len(added),
        )
        return added, len(sources) - len(added)

    async def add(self, source: SourceDescriptor) -> SourceDescriptor:
        validate_source(source)
        async with self._lock:
            sources = await self._load()
            if any(s.key == source.key for s in sources):
                raise DuplicateSourceKey(source.key)
            now = _now_iso()
            added = replace(
                source,
                priority=source.priority if source.priority is not None else 0,
                sort_order=max((s.sort_order for s in sources), default=-1) + 1,
                created_at=now,
                updated_at=now,
            )
            await self._save([*sources, added])
        log.info("source_added", catalog=self.catalog, key=added.key)
        return added

    async def update(self, key: str, changes: Mapping[str, Any]) -> SourceDescriptor:
        unknown = set(changes) - _DESCRIPTOR_FIELDS
        if unknown:
            raise InvalidSource(f"Unknown source fields: {sorted(unknown)}")
        if "key" in changes and changes["key"] != key:
            raise InvalidSource("Source key is immutable")

        editable = {k: v for k, v in changes.items() if k not in _IMMUTABLE_FIELDS}
        async with self._lock:
            sources = await self._load()
            idx = self._find(sources, key)
            updated = replace(sources[idx], **editable, updated_at=_now_iso())
            if updated.priority is None:
                updated = replace(updated, priority=0)
            validate_source(updated)
            sources[idx] = updated
            await self._save(sources)
        log.info(
            "source_updated", catalog=self.catalog, key=key, fields=sorted(editable)
        )
        return updated

    async def set_enabled(self, key: str, enabled: bool) -> SourceDescriptor:
        return await self.update(key, {"enabled": enabled})

    async def delete(self, key: str) -> None:
        async with self._lock:
            sources = await self._load()
            idx = self._find(sources, key)
            del sources[idx]
            await self._save(sources)
        log.info("source_deleted", catalog=self.catalog, key=key)

    async def clear(self) -> None:
        async with self._lock:
            await self._save([])
        log.warning("sources_cleared", catalog=self.catalog)

    async def reorder(self, keys: Sequence[str]) -> list[SourceDescriptor]:
        """Set ``priority`` to the list position for each given key.

        Unlisted descriptors keep their priority.
        """
        if len(set(keys)) != len(keys):
            raise InvalidSource("Reorder list contains duplicate keys")
        async with self._lock:
            sources = await self._load()
            positions = {key: pos for pos, key in enumerate(keys)}
            for key in keys:
                self._find(sources, key)
            now = _now_iso()
            sources = [
                replace(s, priority=positions[s.key], updated_at=now)
                if s.key in positions
                else s
                for s in sources
            ]
            await self._save(sources)
        log.info("sources_reordered", catalog=self.catalog, keys=list(keys))
        return sort_sources(sources)

    async def set_selected(self, key: str) -> None:
        sources = await self._load()
        self._find(sources, key)
        doc = {"id": _SELECTION_ID, "selected_key": key, "updated_at": _now_iso()}
        try:
            await self.store.set(self._selection_key, json.dumps(doc))
        except StoreError as e:
            raise RegistryStorageError(str(e)) from e
        log.info("source_selected", catalog=self.catalog, key=key)
