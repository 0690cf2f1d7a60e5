"""Single-source shorts browsing (list page, detail)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from kerkerker.application.use_cases.shorts_browse import ShortsBrowseUseCase
from kerkerker.interfaces.api.responses import (
    HANDLED_ERRORS,
    error_for,
    error_response,
    ok,
)
from kerkerker.interfaces.api.sources.schemas import source_summary
from kerkerker.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/shorts", tags=["shorts"])


def _use_case(request: Request) -> ShortsBrowseUseCase:
    state = cast(AppState, request.app.state)
    return ShortsBrowseUseCase(
        registry=state.registries["shorts"], query=state.source_query
    )


@router.get("/list")
async def shorts_list(
    request: Request,
    pg: int = Query(default=1, description="Page number."),
    source: str | None = Query(default=None, description="Shorts source key."),
) -> JSONResponse:
    try:
        result = await _use_case(request).list_page(pg, source)
    except HANDLED_ERRORS as e:
        return error_for(e)
    return ok(
        {
            "page": result.page.page,
            "pagecount": result.page.page_count,
            "total": result.page.total,
            "list": [item.to_payload() for item in result.page.items],
            "source": result.source.key,
            "sources": [source_summary(s) for s in result.sources],
        }
    )


@router.get("/detail")
async def shorts_detail(
    request: Request,
    ids: str | None = Query(default=None, description="Upstream record id(s)."),
    source: str | None = Query(default=None, description="Shorts source key."),
) -> JSONResponse:
    if not ids:
        return error_response(400, "invalid_request", "Missing 'ids' parameter")
    try:
        src, item = await _use_case(request).detail(ids, source)
    except HANDLED_ERRORS as e:
        return error_for(e)
    return ok({**item.to_payload(), "source": src.key})
