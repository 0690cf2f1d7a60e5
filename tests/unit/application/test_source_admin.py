"""Tests for source admin operations and config import/export."""

from __future__ import annotations

import pytest
from fakes import InMemoryStore, make_source

from kerkerker.application.use_cases.source_admin import (
    CatalogBundle,
    SourceAdminUseCase,
)
from kerkerker.domain.entities.sources import (
    DuplicateSourceKey,
    InvalidSource,
    RegistryStorageError,
    SourceNotFound,
)
from kerkerker.domain.ports.store import StoreError
from kerkerker.infrastructure.persistence.source_registry_store import (
    StoreSourceRegistry,
)


@pytest.fixture()
def admin(registries) -> SourceAdminUseCase:
    return SourceAdminUseCase(registries=registries)


class TestReplace:
    async def test_replace_with_selection(self, admin, registries) -> None:
        await admin.replace("vod", [make_source("a"), make_source("b")], "b")
        view = await admin.view("vod")
        assert [s.key for s in view.sources] == ["a", "b"]
        assert view.selected.key == "b"

    async def test_unknown_selection_rejected_before_write(
        self, admin, registries
    ) -> None:
        await admin.replace("vod", [make_source("old")])
        with pytest.raises(SourceNotFound):
            await admin.replace("vod", [make_source("a")], "ghost")
        assert [s.key for s in await registries["vod"].list_sources()] == ["old"]

    async def test_invalid_batch_rejected(self, admin) -> None:
        with pytest.raises(InvalidSource):
            await admin.replace("vod", [make_source("a", name="")])

    async def test_catalogs_are_independent(self, admin) -> None:
        await admin.replace("vod", [make_source("v")])
        await admin.replace("shorts", [make_source("s")])
        assert [s.key for s in (await admin.view("vod")).sources] == ["v"]
        assert [s.key for s in (await admin.view("shorts")).sources] == ["s"]

    async def test_unknown_catalog(self, admin) -> None:
        with pytest.raises(ValueError):
            admin.registry("music")  # type: ignore[arg-type]

    async def test_failed_selection_write_keeps_new_set(self) -> None:
        class SelectionWriteFails(InMemoryStore):
            async def set(self, key, value, *, ttl=None) -> None:
                if key.endswith("_source_selection") and self.data.get(key):
                    raise StoreError("selection write refused")
                await super().set(key, value, ttl=ttl)

        store = SelectionWriteFails()
        admin = SourceAdminUseCase(
            {c: StoreSourceRegistry(store, c) for c in ("vod", "shorts")}
        )
        await admin.replace("vod", [make_source("a"), make_source("b")], "a")

        with pytest.raises(RegistryStorageError):
            await admin.replace("vod", [make_source("c"), make_source("d")], "d")

        view = await admin.view("vod")
        assert [s.key for s in view.sources] == ["c", "d"]
        # Stale "a" selection resolves to the first enabled source.
        assert view.selected.key == "c"


class TestSelect:
    async def test_select_returns_effective_source(self, admin) -> None:
        await admin.replace("shorts", [make_source("a"), make_source("b")])
        selected = await admin.select("shorts", "b")
        assert selected.key == "b"

    async def test_select_unknown_key(self, admin) -> None:
        await admin.replace("shorts", [make_source("a")])
        with pytest.raises(SourceNotFound):
            await admin.select("shorts", "ghost")


class TestExport:
    async def test_export_includes_disabled_and_raw_selection(self, admin) -> None:
        await admin.replace(
            "vod", [make_source("a"), make_source("b", enabled=False)], "a"
        )
        bundles = await admin.export_config()

        assert [s.key for s in bundles["vod"].sources] == ["a", "b"]
        assert bundles["vod"].selected == "a"
        assert bundles["shorts"].sources == []
        assert bundles["shorts"].selected is None


class TestImport:
    async def test_merge_appends_only_new_keys(self, admin, registries) -> None:
        await admin.replace("vod", [make_source("a", name="Original")], "a")

        report = await admin.import_config(
            {
                "vod": CatalogBundle(
                    sources=[make_source("a", name="Incoming"), make_source("b")],
                    selected="b",
                )
            },
            mode="merge",
        )

        sources = await registries["vod"].list_sources()
        assert [s.key for s in sources] == ["a", "b"]
        assert sources[0].name == "Original"
        assert report.added == {"vod": 1}
        assert report.skipped == {"vod": 1}
        # Merge keeps the current selection when it is still valid.
        assert report.selected == {"vod": "a"}

    async def test_merge_preserves_disabled_sources(self, admin, registries) -> None:
        await admin.replace("vod", [make_source("off", enabled=False)])
        await admin.import_config(
            {"vod": CatalogBundle(sources=[make_source("new")])}, mode="merge"
        )
        all_sources = await registries["vod"].list_sources(include_disabled=True)
        assert {s.key: s.enabled for s in all_sources} == {"off": False, "new": True}

    async def test_replace_swaps_set_and_uses_bundle_selection(
        self, admin, registries
    ) -> None:
        await admin.replace("shorts", [make_source("old")])

        report = await admin.import_config(
            {
                "shorts": CatalogBundle(
                    sources=[make_source("x"), make_source("y")], selected="y"
                )
            },
            mode="replace",
        )

        assert [s.key for s in await registries["shorts"].list_sources()] == [
            "x",
            "y",
        ]
        assert (await registries["shorts"].get_selected()).key == "y"
        assert report.to_payload()["selected"] == {"shorts": "y"}

    async def test_replace_with_unknown_selection_picks_first(
        self, admin, registries
    ) -> None:
        await admin.import_config(
            {"vod": CatalogBundle(sources=[make_source("x")], selected="ghost")},
            mode="replace",
        )
        assert await registries["vod"].selected_key() == "x"

    async def test_empty_bundle_leaves_catalog_untouched(
        self, admin, registries
    ) -> None:
        await admin.replace("shorts", [make_source("keep")])
        await admin.import_config(
            {
                "vod": CatalogBundle(sources=[make_source("v")]),
                "shorts": CatalogBundle(sources=[]),
            },
            mode="replace",
        )
        assert [s.key for s in await registries["shorts"].list_sources()] == ["keep"]

    async def test_invalid_bundle_writes_nothing(self, admin, registries, store) -> None:
        writes_before = store.writes
        with pytest.raises(DuplicateSourceKey):
            await admin.import_config(
                {
                    "vod": CatalogBundle(sources=[make_source("v")]),
                    "shorts": CatalogBundle(
                        sources=[make_source("s"), make_source("s")]
                    ),
                },
                mode="replace",
            )
        assert store.writes == writes_before
        assert await registries["vod"].list_sources() == []

    async def test_export_then_import_round_trip(self, admin, registries) -> None:
        await admin.replace(
            "vod",
            [make_source("a", type_id=3), make_source("b", enabled=False)],
            "a",
        )
        await admin.replace("shorts", [make_source("s")], "s")
        exported = await admin.export_config()

        await registries["vod"].clear()
        await registries["shorts"].clear()
        await admin.import_config(exported, mode="replace")

        vod = await registries["vod"].list_sources(include_disabled=True)
        assert [(s.key, s.enabled, s.type_id) for s in vod] == [
            ("a", True, 3),
            ("b", False, None),
        ]
        assert await registries["vod"].selected_key() == "a"
        assert await registries["shorts"].selected_key() == "s"
