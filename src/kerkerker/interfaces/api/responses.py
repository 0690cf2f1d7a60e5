"""JSON envelope ``{code, message, data}`` and error-to-status mapping."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from kerkerker.domain.entities.search import (
    EmptyKeyword,
    ItemNotFound,
    NoSourcesConfigured,
    SearchError,
)
from kerkerker.domain.entities.sources import (
    DuplicateSourceKey,
    InvalidSource,
    RegistryStorageError,
    SourceNotFound,
)
from kerkerker.domain.ports.source_query import SourceQueryError

log = structlog.get_logger(__name__)

# First match wins; subclasses must precede their bases.
_ERROR_MAP: tuple[tuple[type[Exception], int, str], ...] = (
    (InvalidSource, 400, "invalid_request"),
    (EmptyKeyword, 400, "invalid_request"),
    (NoSourcesConfigured, 404, "no_sources_configured"),
    (SearchError, 400, "invalid_request"),
    (SourceNotFound, 404, "source_not_found"),
    (ItemNotFound, 404, "item_not_found"),
    (DuplicateSourceKey, 409, "duplicate_source_key"),
    (RegistryStorageError, 500, "persistence_error"),
    (SourceQueryError, 502, "upstream_error"),
    (ValidationError, 400, "invalid_request"),
    (ValueError, 400, "invalid_request"),
)

HANDLED_ERRORS: tuple[type[Exception], ...] = tuple(e for e, _, _ in _ERROR_MAP)


def ok(data: Any = None, *, message: str = "ok") -> JSONResponse:
    return JSONResponse({"code": 200, "message": message, "data": data})


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "code": status_code,
            "message": message,
            "data": None,
            "error": error,
        },
    )


def _message(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        return f"{loc}: {first.get('msg', 'invalid value')}" if loc else str(exc)
    if isinstance(exc, RegistryStorageError):
        return "Source storage is unavailable"
    return str(exc)


def error_for(exc: Exception) -> JSONResponse:
    """Translate a domain/validation exception into an error envelope."""
    for exc_type, status_code, error in _ERROR_MAP:
        if isinstance(exc, exc_type):
            if status_code >= 500:
                log.error("request_failed", error=error, detail=str(exc))
            return error_response(status_code, error, _message(exc))
    raise exc
