"""``kerkerker`` console entrypoint."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from kerkerker.infrastructure.config import load_config
from kerkerker.infrastructure.logging.setup import configure_logging
from kerkerker.interfaces.app import create_app

log = structlog.get_logger(__name__)

# argparse dest -> flat config key
_OVERRIDE_KEYS: dict[str, str] = {
    "storage_backend": "storage_backend",
    "storage_dir": "storage_dir",
    "redis_url": "storage_redis_url",
    "max_concurrent_sources": "search_max_concurrent_sources",
    "log_level": "log_level",
    "log_format": "log_format",
}


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="kerkerker",
        description="Multi-source VOD and short-drama search service.",
    )

    server = parser.add_argument_group("server")
    server.add_argument("--host", default=None, help="Bind host (overrides HOST env).")
    server.add_argument(
        "--port", default=None, type=int, help="Bind port (overrides PORT env)."
    )

    config = parser.add_argument_group("configuration")
    config.add_argument("--config", default=None, help="Path to YAML config file.")
    config.add_argument("--dotenv", default=None, help="Path to .env file.")

    storage = parser.add_argument_group("source registry storage")
    storage.add_argument(
        "--storage-backend",
        default=None,
        choices=["diskcache", "redis"],
        help="Where source registries and query caches live.",
    )
    storage.add_argument(
        "--storage-dir", default=None, help="diskcache directory."
    )
    storage.add_argument("--redis-url", default=None, help="Redis connection URL.")

    search = parser.add_argument_group("search")
    search.add_argument(
        "--max-concurrent-sources",
        default=None,
        type=int,
        help="Upstreams queried at once per search (0 = all).",
    )

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    logging_group.add_argument(
        "--log-format", default=None, choices=["json", "console"]
    )

    return parser.parse_args(list(argv) if argv is not None else None)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat config keys for every flag that was given."""
    return {
        key: getattr(args, dest)
        for dest, key in _OVERRIDE_KEYS.items()
        if getattr(args, dest) is not None
    }


def start(argv: Iterable[str] | None = None) -> None:
    """Load config once, then serve the app with it."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7979"))

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=build_cli_overrides(args),
    )

    log_config = configure_logging(config)
    log.info(
        "starting_server",
        host=host,
        port=port,
        storage=config.storage.backend,
        max_concurrent_sources=config.search.max_concurrent_sources,
    )

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )


if __name__ == "__main__":
    raise SystemExit(start())
