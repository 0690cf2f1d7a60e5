"""Store factory - builds the configured persistence adapter."""

from __future__ import annotations

import structlog

from kerkerker.domain.ports.store import StorePort
from kerkerker.infrastructure.config.schema import StorageBackend, StorageConfig
from kerkerker.infrastructure.storage.diskcache_adapter import DiskcacheStore
from kerkerker.infrastructure.storage.redis_adapter import RedisStore

log = structlog.get_logger(__name__)


def create_store(config: StorageConfig) -> StorePort:
    """Create a store adapter for ``config.backend``.

    Raises:
        ValueError: If the backend is unknown.
    """
    backend: StorageBackend = config.backend
    if backend == "diskcache":
        log.info(
            "store_factory_create",
            backend=backend,
            directory=str(config.directory),
            max_concurrent=config.max_concurrent,
        )
        return DiskcacheStore(
            directory=config.directory,
            max_concurrent=config.max_concurrent,
        )
    if backend == "redis":
        log.info(
            "store_factory_create",
            backend=backend,
            url=config.redis_url,
            max_concurrent=config.max_concurrent,
        )
        return RedisStore(
            url=config.redis_url,
            max_concurrent=config.max_concurrent,
            health_check_interval=config.health_check_interval_seconds,
        )
    raise ValueError(
        f"Unknown storage backend: {backend!r}. Must be 'diskcache' or 'redis'."
    )
