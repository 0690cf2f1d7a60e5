"""MacCMS JSON protocol: request parameters and response normalization.

Most public VOD/short-drama catalogs expose the same ``api.php/provide/vod``
endpoint.  Records look like::

    {"vod_id": 1, "vod_name": "...", "vod_pic": "...",
     "vod_play_url": "第1集$https://a.m3u8#第2集$https://b.m3u8$$$..."}
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from kerkerker.domain.entities.search import (
    CatalogPage,
    NormalizedResultItem,
    parse_episodes,
)
from kerkerker.domain.entities.sources import SourceDescriptor

log = structlog.get_logger(__name__)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _render_template(
    templates: Mapping[str, str], *, keyword: str, page: int, type_id: int | None
) -> dict[str, str]:
    values = {
        "keyword": keyword,
        "page": str(page),
        "type_id": "" if type_id is None else str(type_id),
    }
    try:
        rendered = {name: tmpl.format_map(values) for name, tmpl in templates.items()}
    except (KeyError, ValueError) as e:
        raise ValueError(f"Bad searchParams template: {e}") from e
    # Drop params whose only content was an unset placeholder.
    return {k: v for k, v in rendered.items() if v != ""}


class MacCmsJsonMapper:
    """Mapper for sources of kind ``json``."""

    kind = "json"

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def search_params(
        self, source: SourceDescriptor, keyword: str, page: int
    ) -> dict[str, str]:
        if source.search_params:
            return _render_template(
                source.search_params,
                keyword=keyword,
                page=page,
                type_id=source.type_id,
            )
        params = {"ac": "detail", "wd": keyword, "pg": str(page)}
        if source.type_id:
            params["t"] = str(source.type_id)
        return params

    def list_params(self, source: SourceDescriptor, page: int) -> dict[str, str]:
        params = {"pg": str(page)}
        if source.type_id:
            params["t"] = str(source.type_id)
        return params

    def detail_params(self, source: SourceDescriptor, ids: str) -> dict[str, str]:
        return {"ac": "detail", "ids": ids}

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def to_item(
        self, source: SourceDescriptor, record: Mapping[str, Any]
    ) -> NormalizedResultItem:
        return NormalizedResultItem(
            id=_text(record.get("vod_id")),
            title=_text(record.get("vod_name")),
            source_key=source.key,
            cover=_text(record.get("vod_pic")),
            remarks=_text(record.get("vod_remarks")),
            year=_text(record.get("vod_year")),
            type_name=_text(record.get("type_name")),
            blurb=_text(record.get("vod_blurb") or record.get("vod_content")),
            actor=_text(record.get("vod_actor")),
            director=_text(record.get("vod_director")),
            area=_text(record.get("vod_area")),
            updated=_text(record.get("vod_time")),
            episodes=tuple(parse_episodes(_text(record.get("vod_play_url")))),
        )

    def parse_items(
        self, source: SourceDescriptor, payload: Any
    ) -> list[NormalizedResultItem]:
        """Map ``payload["list"]``; raises ``ValueError`` when it is missing."""
        if not isinstance(payload, Mapping):
            raise ValueError(f"Expected JSON object, got {type(payload).__name__}")
        records = payload.get("list")
        if not isinstance(records, list):
            raise ValueError("Response has no 'list' array")

        items: list[NormalizedResultItem] = []
        for record in records:
            if not isinstance(record, Mapping):
                log.debug("maccms_record_skipped", source=source.key)
                continue
            items.append(self.to_item(source, record))
        return items

    def parse_page(self, source: SourceDescriptor, payload: Any) -> CatalogPage:
        items = self.parse_items(source, payload)
        return CatalogPage(
            page=_int(payload.get("page"), 1),
            page_count=_int(payload.get("pagecount"), 1),
            total=_int(payload.get("total"), len(items)),
            items=items,
        )


MAPPERS: dict[str, MacCmsJsonMapper] = {MacCmsJsonMapper.kind: MacCmsJsonMapper()}
