"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from kerkerker.domain.entities.sources import CATALOGS, RegistryStorageError
from kerkerker.infrastructure.config import AppConfig
from kerkerker.interfaces.app_state import AppState
from kerkerker.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (store, HTTP client, registries) are created in lifespan().
    """
    app = FastAPI(
        title="Kerkerker",
        description="Multi-source VOD and short-drama search aggregator",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.ready = False

    from kerkerker.interfaces.api.search.router import router as search_router
    from kerkerker.interfaces.api.shorts.router import router as shorts_browse_router
    from kerkerker.interfaces.api.sources.router import (
        config_router,
        shorts_router,
        vod_router,
    )
    from kerkerker.interfaces.api.stats.router import router as stats_router

    app.include_router(search_router, prefix="/api/v1")
    app.include_router(vod_router, prefix="/api/v1")
    app.include_router(shorts_router, prefix="/api/v1")
    app.include_router(config_router, prefix="/api/v1")
    app.include_router(shorts_browse_router, prefix="/api/v1")
    app.include_router(stats_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, Any]:
        """Liveness probe: 200 as long as the process is running."""
        registries = getattr(app.state, "registries", None) or {}
        sources: dict[str, int | None] = {}
        for catalog in CATALOGS:
            registry = registries.get(catalog)
            if registry is None:
                sources[catalog] = 0
                continue
            try:
                sources[catalog] = len(await registry.list_sources())
            except RegistryStorageError:
                sources[catalog] = None
        return {"status": "ok", "sources": sources}

    @app.get("/api/v1/readyz")
    async def readyz() -> Response:
        """Readiness probe: 200 after startup when the store answers, else 503."""
        store = getattr(app.state, "store", None)
        if app.state.ready and store is not None and await store.ping():
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
