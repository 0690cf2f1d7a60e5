"""Wire shapes for source descriptors (camelCase JSON)."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from kerkerker.domain.entities.sources import SourceDescriptor

# Descriptor fields that a patch may not set to null.
_NON_NULLABLE_FIELDS = frozenset({"key", "name", "api", "kind", "enabled", "use_play_url"})


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SourceIn(_Wire):
    """One descriptor as sent by admin screens and config exports.

    ``key``/``name``/``api`` default to empty so that missing values are
    reported by registry validation with the field name.
    """

    key: str = ""
    name: str = ""
    api: str = ""
    type: str = "json"
    priority: int | None = None
    enabled: bool = True
    type_id: int | None = Field(default=None, alias="typeId")
    timeout_seconds: float | None = Field(default=None, alias="timeoutSeconds")
    search_params: dict[str, str] = Field(default_factory=dict, alias="searchParams")
    play_url: str | None = Field(default=None, alias="playUrl")
    use_play_url: bool = Field(default=True, alias="usePlayUrl")
    search_proxy: str | None = Field(default=None, alias="searchProxy")
    parse_proxy: str | None = Field(default=None, alias="parseProxy")
    parse_token: str | None = Field(default=None, alias="parseToken")
    parse_id: str | None = Field(default=None, alias="parseId")

    def to_descriptor(self) -> SourceDescriptor:
        return SourceDescriptor(
            key=self.key.strip(),
            name=self.name.strip(),
            api=self.api.strip(),
            kind=self.type,
            priority=self.priority,
            enabled=self.enabled,
            type_id=self.type_id,
            timeout_seconds=self.timeout_seconds,
            search_params=dict(self.search_params),
            play_url=self.play_url,
            use_play_url=self.use_play_url,
            search_proxy=self.search_proxy,
            parse_proxy=self.parse_proxy,
            parse_token=self.parse_token,
            parse_id=self.parse_id,
        )


class SourcePatch(_Wire):
    """Partial update; only fields present in the body are applied."""

    key: str | None = None
    name: str | None = None
    api: str | None = None
    type: str | None = None
    priority: int | None = None
    enabled: bool | None = None
    type_id: int | None = Field(default=None, alias="typeId")
    timeout_seconds: float | None = Field(default=None, alias="timeoutSeconds")
    search_params: dict[str, str] | None = Field(default=None, alias="searchParams")
    play_url: str | None = Field(default=None, alias="playUrl")
    use_play_url: bool | None = Field(default=None, alias="usePlayUrl")
    search_proxy: str | None = Field(default=None, alias="searchProxy")
    parse_proxy: str | None = Field(default=None, alias="parseProxy")
    parse_token: str | None = Field(default=None, alias="parseToken")
    parse_id: str | None = Field(default=None, alias="parseId")

    def to_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        if "type" in changes:
            changes["kind"] = changes.pop("type")
        if "search_params" in changes and changes["search_params"] is None:
            changes["search_params"] = {}
        return {
            k: v
            for k, v in changes.items()
            if v is not None or k not in _NON_NULLABLE_FIELDS
        }


class ReplaceSourcesBody(_Wire):
    sources: list[SourceIn]
    selected: str | None = None


class SelectBody(_Wire):
    selected: str = Field(min_length=1)


class ReorderBody(_Wire):
    keys: list[str]


class ConfigBundleBody(_Wire):
    vod_sources: list[SourceIn] = Field(default_factory=list, alias="vodSources")
    vod_selected: str | None = Field(default=None, alias="vodSelected")
    shorts_sources: list[SourceIn] = Field(default_factory=list, alias="shortsSources")
    shorts_selected: str | None = Field(default=None, alias="shortsSelected")
    mode: Literal["merge", "replace"] = "merge"


def source_to_wire(source: SourceDescriptor) -> dict[str, Any]:
    return {
        "key": source.key,
        "name": source.name,
        "api": source.api,
        "type": source.kind,
        "priority": source.priority,
        "enabled": source.enabled,
        "sortOrder": source.sort_order,
        "typeId": source.type_id,
        "timeoutSeconds": source.timeout_seconds,
        "searchParams": dict(source.search_params),
        "playUrl": source.play_url,
        "usePlayUrl": source.use_play_url,
        "searchProxy": source.search_proxy,
        "parseProxy": source.parse_proxy,
        "parseToken": source.parse_token,
        "parseId": source.parse_id,
        "createdAt": source.created_at,
        "updatedAt": source.updated_at,
    }


def source_summary(source: SourceDescriptor) -> dict[str, str]:
    return {"key": source.key, "name": source.name}
