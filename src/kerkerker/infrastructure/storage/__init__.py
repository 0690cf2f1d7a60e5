"""Storage Infrastructure - store backend implementations."""

from .diskcache_adapter import DiskcacheStore
from .redis_adapter import RedisStore
from .store_factory import create_store

__all__ = [
    "DiskcacheStore",
    "RedisStore",
    "create_store",
]
