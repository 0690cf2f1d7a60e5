"""Source descriptors, selection fallback, and registry errors."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Literal

Catalog = Literal["vod", "shorts"]
CATALOGS: tuple[Catalog, ...] = ("vod", "shorts")

# Upstream response dialects understood by the query adapter.
SUPPORTED_KINDS: frozenset[str] = frozenset({"json"})


@dataclass(frozen=True)
class SourceDescriptor:
    """One configured upstream catalog API.

    ``priority`` orders reads and fan-out (lower first); ``None`` means
    "not given" and is resolved by the registry on write.  ``sort_order``
    is the insertion position and breaks priority ties.  Playback fields
    (``play_url`` .. ``parse_id``) are opaque to search and only passed
    through.
    """

    key: str
    name: str
    api: str
    kind: str = "json"
    priority: int | None = None
    enabled: bool = True
    sort_order: int = 0

    # Query shaping
    type_id: int | None = None
    timeout_seconds: float | None = None
    search_params: dict[str, str] = field(default_factory=dict)

    # Playback resolution (VOD only)
    play_url: str | None = None
    use_play_url: bool = True
    search_proxy: str | None = None
    parse_proxy: str | None = None
    parse_token: str | None = None
    parse_id: str | None = None

    created_at: str | None = None
    updated_at: str | None = None

    @property
    def order_key(self) -> tuple[int, int]:
        return (self.priority or 0, self.sort_order)


@dataclass(frozen=True)
class SourceSelection:
    """Singleton selection record of one registry."""

    selected_key: str | None = None
    updated_at: str | None = None


class SourceRegistryError(Exception):
    """Base class for registry failures."""


class SourceNotFound(SourceRegistryError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown source key: {key!r}")
        self.key = key


class DuplicateSourceKey(SourceRegistryError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Source key already exists: {key!r}")
        self.key = key


class InvalidSource(SourceRegistryError):
    """A descriptor failed write-time validation; nothing was written."""


class RegistryStorageError(SourceRegistryError):
    """The backing store failed while reading or writing the registry."""


def sort_sources(sources: Iterable[SourceDescriptor]) -> list[SourceDescriptor]:
    """Order by ``(priority, insertion order)``."""
    return sorted(sources, key=lambda s: s.order_key)


def resolve_selection(
    selected_key: str | None,
    sources: Sequence[SourceDescriptor],
) -> SourceDescriptor | None:
    """Resolve the effective selected source.

    Returns the stored selection when it names an enabled descriptor,
    otherwise the first enabled descriptor by ``(priority, insertion)``,
    or ``None`` when nothing is enabled.  Pure: never writes the fallback
    back.
    """
    enabled = sort_sources(s for s in sources if s.enabled)
    if selected_key:
        for source in enabled:
            if source.key == selected_key:
                return source
    return enabled[0] if enabled else None


def validate_source(source: SourceDescriptor) -> None:
    """Raise ``InvalidSource`` unless the descriptor is writable."""
    for attr in ("key", "name", "api"):
        value = getattr(source, attr)
        if not isinstance(value, str) or not value.strip():
            raise InvalidSource(f"Source is missing required field {attr!r}")
    if source.kind not in SUPPORTED_KINDS:
        raise InvalidSource(
            f"Source {source.key!r} has unsupported type {source.kind!r}"
        )
    if source.timeout_seconds is not None and source.timeout_seconds <= 0:
        raise InvalidSource(f"Source {source.key!r} timeoutSeconds must be > 0")


def validate_batch(sources: Sequence[SourceDescriptor]) -> None:
    """Validate every descriptor and reject duplicate keys inside the batch."""
    seen: set[str] = set()
    for source in sources:
        validate_source(source)
        if source.key in seen:
            raise DuplicateSourceKey(source.key)
        seen.add(source.key)
