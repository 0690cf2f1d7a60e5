"""Normalized search results and the fan-out event protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# Separates alternative play groups ("line A$$$line B") in MacCMS payloads.
_PLAY_GROUP_SEP = "$$$"
_EPISODE_SEP = "#"
_NAME_URL_SEP = "$"


@dataclass(frozen=True)
class Episode:
    name: str
    url: str

    def to_payload(self) -> dict[str, str]:
        return {"name": self.name, "url": self.url}


@dataclass(frozen=True)
class NormalizedResultItem:
    """A search/browse record reshaped into the common schema.

    Optional text fields default to ``""`` so renderers never see ``None``.
    """

    id: str
    title: str
    source_key: str
    cover: str = ""
    remarks: str = ""
    year: str = ""
    type_name: str = ""
    blurb: str = ""
    actor: str = ""
    director: str = ""
    area: str = ""
    updated: str = ""
    episodes: tuple[Episode, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "cover": self.cover,
            "remarks": self.remarks,
            "year": self.year,
            "typeName": self.type_name,
            "blurb": self.blurb,
            "actor": self.actor,
            "director": self.director,
            "area": self.area,
            "updated": self.updated,
            "episodes": [e.to_payload() for e in self.episodes],
            "sourceKey": self.source_key,
        }


@dataclass(frozen=True)
class CatalogPage:
    """One page of a single source's catalog listing."""

    page: int
    page_count: int
    total: int
    items: list[NormalizedResultItem] = field(default_factory=list)


def parse_episodes(play_url: str | None) -> list[Episode]:
    """Parse ``"name$url#name$url"`` into episodes.

    Only the first play group is used.  Segments without both a name and
    a url are dropped; the rest still parse.
    """
    if not play_url:
        return []

    first_group = play_url.split(_PLAY_GROUP_SEP, 1)[0]
    episodes: list[Episode] = []
    for part in first_group.split(_EPISODE_SEP):
        if not part.strip():
            continue
        pieces = part.split(_NAME_URL_SEP)
        if len(pieces) < 2:
            continue
        name, url = pieces[0].strip(), pieces[1].strip()
        if name and url:
            episodes.append(Episode(name=name, url=url))
    return episodes


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------

EventType = Literal["init", "result", "done"]


@dataclass(frozen=True)
class InitEvent:
    total_sources: int
    type: EventType = "init"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "totalSources": self.total_sources}


@dataclass(frozen=True)
class ResultEvent:
    source_key: str
    source_name: str
    results: tuple[NormalizedResultItem, ...] = ()
    type: EventType = "result"

    @property
    def count(self) -> int:
        return len(self.results)

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "sourceKey": self.source_key,
            "sourceName": self.source_name,
            "count": self.count,
            "results": [r.to_payload() for r in self.results],
        }


@dataclass(frozen=True)
class DoneEvent:
    type: EventType = "done"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type}


SearchEvent = InitEvent | ResultEvent | DoneEvent


class SearchError(Exception):
    """Session-level search failure, raised before any stream exists."""


class EmptyKeyword(SearchError):
    pass


class NoSourcesConfigured(SearchError):
    pass


class ItemNotFound(Exception):
    """An upstream detail lookup returned no record."""

    def __init__(self, ids: str) -> None:
        super().__init__(f"No item found for ids={ids!r}")
        self.ids = ids


# ---------------------------------------------------------------------------
# Consumer side
# ---------------------------------------------------------------------------


@dataclass
class SearchAggregate:
    """Running view a consumer builds from decoded event payloads.

    Results are kept in arrival order and never merged across sources:
    the same title from two sources is two playback options.
    """

    keyword: str = ""
    total: int = 0
    completed: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)
    by_source: dict[str, int] = field(default_factory=dict)
    done: bool = False

    def apply(self, payload: dict[str, Any]) -> None:
        if self.done:
            return
        event_type = payload.get("type")
        if event_type == "init":
            self.total = int(payload.get("totalSources", 0))
        elif event_type == "result":
            results = payload.get("results") or []
            self.results.extend(results)
            self.by_source[str(payload.get("sourceKey", ""))] = int(
                payload.get("count", len(results))
            )
            self.completed += 1
        elif event_type == "done":
            self.done = True

    @property
    def result_count(self) -> int:
        return len(self.results)

    def to_payload(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "total": self.total,
            "completed": self.completed,
            "results": list(self.results),
            "bySource": dict(self.by_source),
            "done": self.done,
        }

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> SearchAggregate:
        return cls(
            keyword=data.get("keyword", ""),
            total=data.get("total", 0),
            completed=data.get("completed", 0),
            results=list(data.get("results", [])),
            by_source=dict(data.get("bySource", {})),
            done=data.get("done", False),
        )
