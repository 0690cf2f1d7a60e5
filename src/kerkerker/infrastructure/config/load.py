"""Build the kerkerker ``AppConfig`` from its layers.

Layers, weakest first: built-in defaults, an optional YAML file, the
process environment (``KERKERKER_*``, optionally seeded from a ``.env``
file) and finally CLI flags.  Every layer may use either the sectioned
shape (``storage: {backend: redis}``) or flat keys (``storage_backend``);
both are folded into the sectioned shape before merging.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

_SECTION_KEYS: set[str] = {"http", "logging", "storage", "search"}
_TOP_LEVEL_KEYS: tuple[str, ...] = ("app_name", "environment")

_FLAT_MAP: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "storage_backend": ("storage", "backend"),
    "storage_dir": ("storage", "dir"),
    "storage_redis_url": ("storage", "redis_url"),
    "storage_max_concurrent": ("storage", "max_concurrent"),
    "storage_health_check_interval_seconds": (
        "storage",
        "health_check_interval_seconds",
    ),
    "search_max_concurrent_sources": ("search", "max_concurrent_sources"),
    "search_result_ttl_seconds": ("search", "result_ttl_seconds"),
    "search_list_ttl_seconds": ("search", "list_ttl_seconds"),
    "search_detail_ttl_seconds": ("search", "detail_ttl_seconds"),
    "search_client_cache_ttl_seconds": ("search", "client_cache_ttl_seconds"),
}


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into ``base`` in place; nested sections merge per key."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, Mapping):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _normalize_layer(data: Mapping[str, Any]) -> dict[str, Any]:
    """Fold one layer into ``{section: {key: value}}`` plus top-level keys.

    A flat key wins over the same setting inside a section block of the
    same layer.  Unknown keys are dropped here and left for the schema.
    """
    out: dict[str, Any] = {
        section: dict(data[section])
        for section in _SECTION_KEYS
        if isinstance(data.get(section), Mapping)
    }
    for key in _TOP_LEVEL_KEYS:
        if key in data:
            out[key] = data[key]

    for flat_key, (section, section_key) in _FLAT_MAP.items():
        if flat_key in data:
            out.setdefault(section, {})[section_key] = data[flat_key]
    return out


def _read_yaml_config(config_path: Path) -> dict[str, Any]:
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def _require(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(path)
    return path


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Merge all layers and validate the result.

    Only reads: the storage directory and log sinks are created later by
    the components that use them.  A given ``.env`` file never overrides
    variables that are already set in the environment.
    """
    if dotenv_path is not None:
        load_dotenv(_require(dotenv_path), override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml_config(_require(config_path)))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _deep_merge(merged, _normalize_layer(layer))
    return AppConfig.model_validate(merged)
