from .search import (
    CatalogPage,
    DoneEvent,
    EmptyKeyword,
    Episode,
    InitEvent,
    ItemNotFound,
    NoSourcesConfigured,
    NormalizedResultItem,
    ResultEvent,
    SearchAggregate,
    SearchError,
    SearchEvent,
    parse_episodes,
)
from .sources import (
    CATALOGS,
    Catalog,
    DuplicateSourceKey,
    InvalidSource,
    RegistryStorageError,
    SourceDescriptor,
    SourceNotFound,
    SourceRegistryError,
    SourceSelection,
    resolve_selection,
    sort_sources,
    validate_batch,
    validate_source,
)

__all__ = [
    "CATALOGS",
    "Catalog",
    "CatalogPage",
    "DoneEvent",
    "DuplicateSourceKey",
    "EmptyKeyword",
    "Episode",
    "InitEvent",
    "ItemNotFound",
    "InvalidSource",
    "NoSourcesConfigured",
    "NormalizedResultItem",
    "RegistryStorageError",
    "ResultEvent",
    "SearchAggregate",
    "SearchError",
    "SearchEvent",
    "SourceDescriptor",
    "SourceNotFound",
    "SourceRegistryError",
    "SourceSelection",
    "parse_episodes",
    "resolve_selection",
    "sort_sources",
    "validate_batch",
    "validate_source",
]
