"""Streaming fan-out search endpoint."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse
from starlette.responses import Response

from kerkerker.application.use_cases.search_stream import SearchStreamUseCase
from kerkerker.domain.entities.sources import CATALOGS
from kerkerker.infrastructure.streaming.sse import (
    SSE_HEADERS,
    SSE_MEDIA_TYPE,
    encode_stream,
)
from kerkerker.interfaces.api.responses import (
    HANDLED_ERRORS,
    error_for,
    error_response,
)
from kerkerker.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["search"])


@router.get("/search-stream")
async def search_stream(
    request: Request,
    q: str = Query(default="", description="Search keyword."),
    catalog: str = Query(default="vod", description="vod | shorts"),
    page: int = Query(default=1, description="Upstream result page."),
) -> Response:
    """Stream ``init``, one ``result`` per enabled source, then ``done``.

    Configuration errors are returned as plain JSON before any stream
    is opened.
    """
    state = cast(AppState, request.app.state)
    if catalog not in CATALOGS:
        return error_response(400, "invalid_request", f"Unknown catalog: {catalog!r}")

    uc = SearchStreamUseCase(
        registries=state.registries,
        query=state.source_query,
        max_concurrent=state.config.search.max_concurrent_sources,
        metrics=getattr(state, "metrics", None),
    )
    try:
        session = await uc.open(q, catalog, page)  # type: ignore[arg-type]
    except HANDLED_ERRORS as e:
        return error_for(e)

    return StreamingResponse(
        encode_stream(session.events()),
        media_type=SSE_MEDIA_TYPE,
        headers=SSE_HEADERS,
    )
