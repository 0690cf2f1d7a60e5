"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from kerkerker.domain.entities.sources import CATALOGS
from kerkerker.infrastructure.metrics import MetricsCollector
from kerkerker.infrastructure.persistence.source_registry_store import (
    StoreSourceRegistry,
)
from kerkerker.infrastructure.sources import CachedSourceQuery, HttpxSourceQuery
from kerkerker.infrastructure.storage import create_store
from kerkerker.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Store (registries and the query cache live in it)
        2. HTTP client (one pooled client for every upstream call)
        3. Source registries (VOD + shorts)
        4. Source query adapter (uses HTTP client + store)
    """
    state = cast(AppState, app.state)
    config = state.config
    state.ready = False

    # 0) Metrics collector (must exist before components that record)
    state.metrics = MetricsCollector()

    # 1) Store: one process-wide handle, closed on shutdown
    store = create_store(config.storage)
    await store.__aenter__()
    state.store = store
    log.info("store_initialized", backend=config.storage.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Source registries
    state.registries = {
        catalog: StoreSourceRegistry(store, catalog) for catalog in CATALOGS
    }
    log.info("source_registries_initialized", catalogs=list(CATALOGS))

    # 4) Source query adapter (+ result cache)
    state.source_query = CachedSourceQuery(
        HttpxSourceQuery(
            state.http_client,
            default_timeout=config.http_timeout_seconds,
            user_agent=config.http_user_agent,
        ),
        store,
        search_ttl=config.search.result_ttl_seconds,
        list_ttl=config.search.list_ttl_seconds,
        detail_ttl=config.search.detail_ttl_seconds,
    )
    log.info(
        "source_query_initialized",
        max_concurrent_sources=config.search.max_concurrent_sources,
        result_ttl=config.search.result_ttl_seconds,
    )

    state.ready = True
    log.info("app_startup_complete")

    try:
        yield
    finally:
        state.ready = False

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.store.aclose()
        log.info("store_closed")

        log.info("app_shutdown_complete")
