"""Source management: registry CRUD, selection, config import/export."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from kerkerker.domain.entities.sources import (
    CATALOGS,
    Catalog,
    SourceDescriptor,
    SourceNotFound,
    validate_batch,
)
from kerkerker.domain.ports.source_registry import SourceRegistryPort

log = structlog.get_logger(__name__)

ImportMode = Literal["merge", "replace"]


@dataclass(frozen=True)
class RegistryView:
    sources: list[SourceDescriptor]
    selected: SourceDescriptor | None


@dataclass(frozen=True)
class CatalogBundle:
    """One catalog's part of an exported/imported configuration."""

    sources: list[SourceDescriptor] = field(default_factory=list)
    selected: str | None = None


@dataclass
class ImportReport:
    mode: ImportMode
    added: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    selected: dict[str, str | None] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "added": dict(self.added),
            "skipped": dict(self.skipped),
            "selected": dict(self.selected),
        }


class SourceAdminUseCase:
    """Data operations behind the source admin screens."""

    def __init__(self, registries: Mapping[Catalog, SourceRegistryPort]) -> None:
        self._registries = registries

    def registry(self, catalog: Catalog) -> SourceRegistryPort:
        try:
            return self._registries[catalog]
        except KeyError:
            raise ValueError(f"Unknown catalog: {catalog!r}") from None

    # ------------------------------------------------------------------
    # Registry views
    # ------------------------------------------------------------------

    async def view(
        self, catalog: Catalog, *, include_disabled: bool = False
    ) -> RegistryView:
        registry = self.registry(catalog)
        return RegistryView(
            sources=await registry.list_sources(include_disabled=include_disabled),
            selected=await registry.get_selected(),
        )

    async def replace(
        self,
        catalog: Catalog,
        sources: Sequence[SourceDescriptor],
        selected: str | None = None,
    ) -> list[SourceDescriptor]:
        """Replace the whole registry, then optionally update the selection.

        An unknown ``selected`` key is rejected before anything is written.
        The source set and the selection are two store writes: if the
        selection write fails the new set stays stored with the previous
        selection, which reads resolve through the usual fallback when its
        key is gone.
        """
        validate_batch(sources)
        if selected and selected not in {s.key for s in sources}:
            raise SourceNotFound(selected)
        registry = self.registry(catalog)
        stored = await registry.replace_all(sources)
        if selected:
            await registry.set_selected(selected)
        return stored

    async def select(self, catalog: Catalog, key: str) -> SourceDescriptor | None:
        registry = self.registry(catalog)
        await registry.set_selected(key)
        return await registry.get_selected()

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_config(self) -> dict[Catalog, CatalogBundle]:
        bundles: dict[Catalog, CatalogBundle] = {}
        for catalog in CATALOGS:
            registry = self.registry(catalog)
            bundles[catalog] = CatalogBundle(
                sources=await registry.list_sources(include_disabled=True),
                selected=await registry.selected_key(),
            )
        return bundles

    async def import_config(
        self,
        bundles: Mapping[Catalog, CatalogBundle],
        mode: ImportMode = "merge",
    ) -> ImportReport:
        """Import source lists for one or both catalogs.

        ``merge`` keeps existing sources and appends only unseen keys;
        ``replace`` swaps the whole set.  Every bundle is validated before
        any registry is written.  Catalogs with no sources are left alone.
        """
        for bundle in bundles.values():
            validate_batch(bundle.sources)

        report = ImportReport(mode=mode)
        for catalog, bundle in bundles.items():
            if not bundle.sources:
                continue
            registry = self.registry(catalog)

            if mode == "merge":
                added, skipped = await registry.merge(bundle.sources)
                stored = await registry.list_sources(include_disabled=True)
                current = await registry.selected_key()
                if current in {s.key for s in stored}:
                    selected = current
                else:
                    selected = stored[0].key if stored else None
                report.added[catalog] = len(added)
                report.skipped[catalog] = skipped
            else:
                keys = {s.key for s in bundle.sources}
                current = None
                selected = (
                    bundle.selected
                    if bundle.selected in keys
                    else bundle.sources[0].key
                )
                await registry.replace_all(bundle.sources)
                report.added[catalog] = len(bundle.sources)
                report.skipped[catalog] = 0

            if selected and selected != current:
                await registry.set_selected(selected)
            report.selected[catalog] = selected

        log.info(
            "config_imported",
            mode=mode,
            added=report.added,
            skipped=report.skipped,
        )
        return report
