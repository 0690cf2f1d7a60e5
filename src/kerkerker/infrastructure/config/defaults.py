"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "kerkerker",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "follow_redirects": True,
        "user_agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "storage": {
        "backend": "diskcache",
        "dir": "./.data/kerkerker",
        "redis_url": "redis://localhost:6379/0",
        "max_concurrent": 10,
        "health_check_interval_seconds": 30.0,
    },
    "search": {
        "max_concurrent_sources": 0,
        "result_ttl_seconds": 300,
        "list_ttl_seconds": 300,
        "detail_ttl_seconds": 3600,
        "client_cache_ttl_seconds": 600,
    },
}
