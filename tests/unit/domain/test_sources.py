"""Tests for source descriptors, ordering and selection fallback."""

from __future__ import annotations

import pytest
from fakes import make_source

from kerkerker.domain.entities.sources import (
    DuplicateSourceKey,
    InvalidSource,
    resolve_selection,
    sort_sources,
    validate_batch,
    validate_source,
)


class TestSortSources:
    def test_orders_by_priority(self) -> None:
        sources = [
            make_source("c", priority=2, sort_order=0),
            make_source("a", priority=0, sort_order=1),
            make_source("b", priority=1, sort_order=2),
        ]
        assert [s.key for s in sort_sources(sources)] == ["a", "b", "c"]

    def test_insertion_order_breaks_priority_ties(self) -> None:
        sources = [
            make_source("late", priority=0, sort_order=5),
            make_source("early", priority=0, sort_order=1),
        ]
        assert [s.key for s in sort_sources(sources)] == ["early", "late"]

    def test_missing_priority_sorts_as_zero(self) -> None:
        sources = [
            make_source("one", priority=1, sort_order=0),
            make_source("none", priority=None, sort_order=1),
        ]
        assert [s.key for s in sort_sources(sources)] == ["none", "one"]


class TestResolveSelection:
    def test_stored_key_wins_when_enabled(self) -> None:
        sources = [make_source("a", priority=0), make_source("b", priority=1)]
        assert resolve_selection("b", sources).key == "b"

    def test_falls_back_to_first_enabled_when_key_unknown(self) -> None:
        sources = [make_source("a", priority=1), make_source("b", priority=0)]
        assert resolve_selection("ghost", sources).key == "b"

    def test_falls_back_when_selected_source_disabled(self) -> None:
        sources = [
            make_source("a", priority=0, enabled=False),
            make_source("b", priority=1),
        ]
        assert resolve_selection("a", sources).key == "b"

    def test_no_selection_uses_first_enabled(self) -> None:
        sources = [make_source("a", priority=3), make_source("b", priority=2)]
        assert resolve_selection(None, sources).key == "b"

    def test_none_when_nothing_enabled(self) -> None:
        sources = [make_source("a", enabled=False)]
        assert resolve_selection("a", sources) is None

    def test_none_for_empty_registry(self) -> None:
        assert resolve_selection(None, []) is None


class TestValidateSource:
    @pytest.mark.parametrize("field", ["key", "name", "api"])
    def test_rejects_blank_required_field(self, field: str) -> None:
        source = make_source("a", **{field: "   "})
        with pytest.raises(InvalidSource, match=field):
            validate_source(source)

    def test_rejects_unsupported_kind(self) -> None:
        with pytest.raises(InvalidSource, match="unsupported type"):
            validate_source(make_source("a", kind="xml"))

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(InvalidSource, match="timeoutSeconds"):
            validate_source(make_source("a", timeout_seconds=0))

    def test_accepts_valid_descriptor(self) -> None:
        validate_source(make_source("a", timeout_seconds=5.0, type_id=3))


class TestValidateBatch:
    def test_duplicate_key_rejected(self) -> None:
        with pytest.raises(DuplicateSourceKey) as exc_info:
            validate_batch([make_source("a"), make_source("b"), make_source("a")])
        assert exc_info.value.key == "a"

    def test_invalid_member_rejects_batch(self) -> None:
        with pytest.raises(InvalidSource):
            validate_batch([make_source("a"), make_source("b", api="")])

    def test_empty_batch_is_valid(self) -> None:
        validate_batch([])
