"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from kerkerker.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from kerkerker.domain.entities.sources import Catalog
    from kerkerker.domain.ports import (
        SourceQueryPort,
        SourceRegistryPort,
        StorePort,
    )
    from kerkerker.infrastructure.metrics import MetricsCollector


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    store: StorePort
    http_client: httpx.AsyncClient

    # Domain Ports
    registries: dict[Catalog, SourceRegistryPort]
    source_query: SourceQueryPort

    # Metrics (zero-impact in-memory counters)
    metrics: MetricsCollector

    # Readiness (True between startup completion and shutdown)
    ready: bool
