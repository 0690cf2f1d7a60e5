"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
StorageBackend = Literal["diskcache", "redis"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class StorageConfig(BaseModel):
    """Persistent store holding the source registries (backend-agnostic)."""

    backend: StorageBackend = Field(
        default="diskcache",
        description="Store backend: 'diskcache' (SQLite) or 'redis'",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./.data/kerkerker"),
        validation_alias=AliasChoices("dir", "directory"),
        description="Diskcache SQLite DB path",
    )

    # Redis settings
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (only when backend=redis)",
    )
    health_check_interval_seconds: float = Field(
        default=30.0,
        description="Minimum seconds between Redis connection health pings.",
    )

    max_concurrent: int = Field(
        default=10,
        description="Max parallel store ops (semaphore limit)",
    )

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_directory(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("max_concurrent")
    @classmethod
    def _validate_max_concurrent(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("storage.max_concurrent must be > 0")
        return v

    @field_validator("health_check_interval_seconds")
    @classmethod
    def _validate_health_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("storage.health_check_interval_seconds must be >= 0")
        return v


class SearchConfig(BaseModel):
    """Fan-out search and single-source browse tuning."""

    max_concurrent_sources: int = Field(
        default=0,
        description="Max sources queried at once per session. 0 = unbounded.",
    )
    result_ttl_seconds: int = Field(
        default=300,
        description="TTL for cached per-source search results. 0 = disabled.",
    )
    list_ttl_seconds: int = Field(
        default=300,
        description="TTL for cached catalog list pages. 0 = disabled.",
    )
    detail_ttl_seconds: int = Field(
        default=3600,
        description="TTL for cached detail lookups. 0 = disabled.",
    )
    client_cache_ttl_seconds: int = Field(
        default=600,
        description="TTL for frozen search aggregates kept by the stream client.",
    )

    @field_validator("max_concurrent_sources")
    @classmethod
    def _validate_max_concurrent(cls, v: int) -> int:
        if v < 0:
            raise ValueError("search.max_concurrent_sources must be >= 0")
        return v

    @field_validator(
        "result_ttl_seconds",
        "list_ttl_seconds",
        "detail_ttl_seconds",
        "client_cache_ttl_seconds",
    )
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("TTL values must be >= 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/storage/search).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="kerkerker", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default per-source upstream timeout (seconds).",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Follow upstream redirects.",
    )
    http_user_agent: str = Field(
        default="Mozilla/5.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent header sent to upstream sources.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # Storage (YAML section: storage.*)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    # Search (YAML section: search.*)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "storage": {
                "backend": self.storage.backend,
                "dir": str(self.storage.directory),
                "redis_url": self.storage.redis_url,
                "max_concurrent": self.storage.max_concurrent,
                "health_check_interval_seconds": (
                    self.storage.health_check_interval_seconds
                ),
            },
            "search": self.search.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read KERKERKER_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - KERKERKER_HTTP_TIMEOUT_SECONDS
    - KERKERKER_LOG_LEVEL
    - KERKERKER_STORAGE_BACKEND
    - KERKERKER_SEARCH_MAX_CONCURRENT_SOURCES
    """

    model_config = SettingsConfigDict(
        env_prefix="KERKERKER_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    storage_backend: Optional[StorageBackend] = None
    storage_dir: Optional[Path] = None
    storage_redis_url: Optional[str] = None
    storage_max_concurrent: Optional[int] = None
    storage_health_check_interval_seconds: Optional[float] = None

    search_max_concurrent_sources: Optional[int] = None
    search_result_ttl_seconds: Optional[int] = None
    search_list_ttl_seconds: Optional[int] = None
    search_detail_ttl_seconds: Optional[int] = None
    search_client_cache_ttl_seconds: Optional[int] = None

    @field_validator("storage_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
