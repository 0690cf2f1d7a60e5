"""Diskcache store - SQLite-backed persistence without a daemon process."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Optional

import structlog
from diskcache import Cache as DiskCache
from diskcache import Timeout as DiskTimeout

from kerkerker.domain.ports.store import StoreError

log = structlog.get_logger(__name__)

_BACKEND_ERRORS = (OSError, sqlite3.Error, DiskTimeout)


class DiskcacheStore:
    """Async wrapper for diskcache.Cache (sync-only library).

    - Uses `asyncio.to_thread` for I/O (no blocking of the event loop).
    - Semaphore prevents too many parallel disk writes (SQLite lock contention).
    - Backend failures surface as ``StoreError``.

    Args:
        directory: SQLite DB path.
        ttl_seconds: Default TTL for `set()` without explicit value
            (None = never expire).
        max_concurrent: Max parallel disk ops.
    """

    def __init__(
        self,
        directory: str | Path = "./.data/kerkerker",
        ttl_seconds: int | None = None,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_store_init",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )

    async def __aenter__(self) -> DiskcacheStore:
        if self._cache is None:
            try:
                self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            except _BACKEND_ERRORS as e:
                raise StoreError(f"Cannot open store at {self.directory}: {e}") from e
            log.info("diskcache_opened", path=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    def _require_open(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError(
                "Store not initialized. Use 'async with store:' or await store.__aenter__()"
            )
        return self._cache

    async def get(self, key: str) -> Optional[Any]:
        cache = self._require_open()
        async with self._semaphore:
            try:
                value = await asyncio.to_thread(cache.get, key, default=None)
            except _BACKEND_ERRORS as e:
                log.error("diskcache_get_error", key=key, error=str(e))
                raise StoreError(f"get {key!r} failed: {e}") from e
        log.debug("store_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        cache = self._require_open()
        expire_time = ttl if ttl is not None else self.default_ttl

        async with self._semaphore:
            try:
                await asyncio.to_thread(cache.set, key, value, expire=expire_time)
            except _BACKEND_ERRORS as e:
                log.error("diskcache_set_error", key=key, error=str(e))
                raise StoreError(f"set {key!r} failed: {e}") from e
        log.debug("store_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        if self._cache is None:
            return False

        async with self._semaphore:
            try:
                deleted = await asyncio.to_thread(self._cache.delete, key)
            except _BACKEND_ERRORS as e:
                raise StoreError(f"delete {key!r} failed: {e}") from e
        log.debug("store_delete", key=key, deleted=deleted)
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        if self._cache is None:
            return False
        cache = self._cache

        async with self._semaphore:
            # Cache.__contains__ checks existence + expiry
            return await asyncio.to_thread(lambda: key in cache)

    async def ping(self) -> bool:
        if self._cache is None:
            return False
        cache = self._cache
        try:
            await asyncio.to_thread(lambda: len(cache))
        except _BACKEND_ERRORS:
            log.warning("diskcache_ping_failed", directory=str(self.directory))
            return False
        return True
