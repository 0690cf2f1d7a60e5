"""Tests for result normalization helpers, stream events and the aggregate."""

from __future__ import annotations

from fakes import make_item

from kerkerker.domain.entities.search import (
    DoneEvent,
    Episode,
    InitEvent,
    NormalizedResultItem,
    ResultEvent,
    SearchAggregate,
    parse_episodes,
)


class TestParseEpisodes:
    def test_parses_name_url_pairs(self) -> None:
        raw = "第1集$https://a.example/1.m3u8#第2集$https://a.example/2.m3u8"
        assert parse_episodes(raw) == [
            Episode("第1集", "https://a.example/1.m3u8"),
            Episode("第2集", "https://a.example/2.m3u8"),
        ]

    def test_uses_only_first_play_group(self) -> None:
        raw = "EP1$https://a/1.m3u8$$$EP1$https://b/1.mp4#EP2$https://b/2.mp4"
        assert parse_episodes(raw) == [Episode("EP1", "https://a/1.m3u8")]

    def test_trims_whitespace(self) -> None:
        raw = " EP1 $ https://a/1.m3u8 #\nEP2$https://a/2.m3u8 "
        assert parse_episodes(raw) == [
            Episode("EP1", "https://a/1.m3u8"),
            Episode("EP2", "https://a/2.m3u8"),
        ]

    def test_drops_malformed_segments(self) -> None:
        raw = "EP1$https://a/1.m3u8#broken#$https://nameless#EP3$#EP4$https://a/4.m3u8"
        assert [e.name for e in parse_episodes(raw)] == ["EP1", "EP4"]

    def test_empty_and_none(self) -> None:
        assert parse_episodes("") == []
        assert parse_episodes(None) == []
        assert parse_episodes("#  #") == []


class TestPayloads:
    def test_item_payload_is_camel_case(self) -> None:
        item = NormalizedResultItem(
            id="7", title="Hero", source_key="src", type_name="Action"
        )
        payload = item.to_payload()
        assert payload["typeName"] == "Action"
        assert payload["sourceKey"] == "src"
        assert payload["cover"] == ""
        assert payload["episodes"] == []

    def test_init_event(self) -> None:
        assert InitEvent(total_sources=3).to_payload() == {
            "type": "init",
            "totalSources": 3,
        }

    def test_result_event_count_matches_results(self) -> None:
        event = ResultEvent(
            source_key="a",
            source_name="A",
            results=(make_item("a", "1"), make_item("a", "2")),
        )
        payload = event.to_payload()
        assert payload["type"] == "result"
        assert payload["count"] == 2
        assert len(payload["results"]) == 2
        assert payload["sourceName"] == "A"

    def test_empty_result_event(self) -> None:
        payload = ResultEvent(source_key="a", source_name="A").to_payload()
        assert payload["count"] == 0
        assert payload["results"] == []

    def test_done_event(self) -> None:
        assert DoneEvent().to_payload() == {"type": "done"}


class TestSearchAggregate:
    def _result(self, key: str, n: int) -> dict:
        items = [make_item(key, str(i)).to_payload() for i in range(n)]
        return {"type": "result", "sourceKey": key, "count": n, "results": items}

    def test_accumulates_in_arrival_order(self) -> None:
        agg = SearchAggregate(keyword="hero")
        agg.apply({"type": "init", "totalSources": 2})
        agg.apply(self._result("b", 1))
        agg.apply(self._result("a", 2))
        agg.apply({"type": "done"})

        assert agg.total == 2
        assert agg.completed == 2
        assert agg.done is True
        assert agg.by_source == {"b": 1, "a": 2}
        assert [r["sourceKey"] for r in agg.results] == ["b", "a", "a"]
        assert agg.result_count == 3

    def test_identical_titles_from_different_sources_kept(self) -> None:
        agg = SearchAggregate()
        agg.apply({"type": "init", "totalSources": 2})
        for key in ("a", "b"):
            item = make_item(key, "1", title="Same").to_payload()
            agg.apply(
                {"type": "result", "sourceKey": key, "count": 1, "results": [item]}
            )
        assert [r["title"] for r in agg.results] == ["Same", "Same"]

    def test_frozen_after_done(self) -> None:
        agg = SearchAggregate()
        agg.apply({"type": "init", "totalSources": 1})
        agg.apply({"type": "done"})
        agg.apply(self._result("late", 3))
        assert agg.result_count == 0
        assert agg.completed == 0

    def test_unknown_event_type_ignored(self) -> None:
        agg = SearchAggregate()
        agg.apply({"type": "heartbeat"})
        assert agg.to_payload()["done"] is False

    def test_payload_round_trip(self) -> None:
        agg = SearchAggregate(keyword="k")
        agg.apply({"type": "init", "totalSources": 1})
        agg.apply(self._result("a", 1))
        agg.apply({"type": "done"})

        restored = SearchAggregate.from_payload(agg.to_payload())
        assert restored == agg
