"""Redis store - async persistence via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from kerkerker.domain.ports.store import StoreError

log = structlog.get_logger(__name__)


class RedisStore:
    """Async Redis store backed by one process-wide connection pool.

    - The pool is created on ``__aenter__`` and closed on ``aclose``.
    - Idle connections are health-checked by redis-py at most once per
      ``health_check_interval`` seconds instead of on every command.
    - Values are pickled (consistent with the diskcache store).

    Args:
        url: Redis URL (e.g. `redis://localhost:6379/0`).
        ttl_seconds: Default TTL (None = never expire).
        max_concurrent: Max parallel Redis ops.
        health_check_interval: Seconds between connection health pings.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int | None = None,
        max_concurrent: int = 50,
        health_check_interval: float = 30.0,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.health_check_interval = health_check_interval
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "redis_store_init",
            url=url,
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
            health_check_interval=health_check_interval,
        )

    async def __aenter__(self) -> RedisStore:
        if self._client is None:
            self._client = Redis.from_url(
                self.url,
                decode_responses=False,
                health_check_interval=int(self.health_check_interval),
            )
            try:
                await self._client.ping()
                log.info("redis_connected", url=self.url)
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                await self.aclose()
                raise StoreError(f"Cannot connect to {self.url}: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _require_open(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with store:'")
        return self._client

    async def get(self, key: str) -> Any | None:
        client = self._require_open()
        async with self._semaphore:
            try:
                raw = await client.get(key)
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                raise StoreError(f"get {key!r} failed: {e}") from e
        if raw is None:
            log.debug("store_miss", key=key)
            return None
        try:
            return pickle.loads(raw)
        except pickle.UnpicklingError as e:
            raise StoreError(f"Corrupt value at {key!r}: {e}") from e

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._require_open()
        expire_time = ttl if ttl is not None else self.default_ttl
        packed = pickle.dumps(value)

        async with self._semaphore:
            try:
                if expire_time:
                    await client.setex(key, expire_time, packed)
                else:
                    await client.set(key, packed)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                raise StoreError(f"set {key!r} failed: {e}") from e
        log.debug("store_set", key=key, ttl=expire_time, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                deleted = await self._client.delete(key)
            except RedisError as e:
                raise StoreError(f"delete {key!r} failed: {e}") from e
        return deleted > 0

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.exists(key) > 0
            except RedisError as e:
                raise StoreError(f"exists {key!r} failed: {e}") from e

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            log.warning("redis_ping_failed", url=self.url, error=str(e))
            return False
