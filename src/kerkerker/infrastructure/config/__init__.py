from __future__ import annotations

from .load import load_config
from .schema import AppConfig, EnvOverrides, SearchConfig, StorageConfig

__all__ = ["AppConfig", "EnvOverrides", "SearchConfig", "StorageConfig", "load_config"]
