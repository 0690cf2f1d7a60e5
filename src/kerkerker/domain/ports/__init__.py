from .source_query import (
    SourceQueryError,
    SourceQueryPort,
    UnsupportedSourceKind,
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamParseError,
    UpstreamTimeout,
)
from .source_registry import SourceRegistryPort
from .store import StoreError, StorePort

__all__ = [
    "SourceQueryError",
    "SourceQueryPort",
    "SourceRegistryPort",
    "StoreError",
    "StorePort",
    "UnsupportedSourceKind",
    "UpstreamConnectionError",
    "UpstreamHttpError",
    "UpstreamParseError",
    "UpstreamTimeout",
]
