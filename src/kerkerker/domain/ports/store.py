"""Store Port - backend-agnostic async key-value persistence."""

from __future__ import annotations

from typing import Any, Protocol


class StoreError(Exception):
    """The backing store could not complete an operation."""


class StorePort(Protocol):
    """Port for an async key-value store with optional TTL.

    Implementations:
      - DiskcacheStore (SQLite-based, no daemon)
      - RedisStore (Redis async client)

    Unlike a best-effort cache, failures are raised as ``StoreError`` so
    that callers persisting authoritative data can surface them.

    Each adapter MUST support async context-manager semantics:
        async with store:
            await store.set("key", value)
    """

    async def get(self, key: str) -> Any:
        """Retrieve value. None = not found / expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Set value. ``ttl=None`` uses the adapter default (no expiry)."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. True = deleted, False = did not exist."""
        ...

    async def exists(self, key: str) -> bool: ...

    async def ping(self) -> bool:
        """Cheap health check for readiness probes."""
        ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> StorePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
