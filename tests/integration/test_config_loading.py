"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from kerkerker.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a sectioned YAML config and return its path."""
    config = {
        "app_name": "kerkerker-test",
        "environment": "test",
        "http": {"timeout_seconds": 6.0, "user_agent": "TestAgent/1.0"},
        "logging": {"level": "DEBUG", "format": "console"},
        "storage": {"dir": str(tmp_path / "store"), "max_concurrent": 4},
        "search": {"max_concurrent_sources": 8, "result_ttl_seconds": 60},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "kerkerker"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 10.0
        assert config.log_format == "console"
        assert config.storage.backend == "diskcache"
        assert config.storage.health_check_interval_seconds == 30.0
        assert config.search.max_concurrent_sources == 0
        assert config.search.result_ttl_seconds == 300
        assert config.search.detail_ttl_seconds == 3600
        assert config.search.client_cache_ttl_seconds == 600

    def test_prod_defaults_to_json_logs(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"

    def test_loading_creates_no_files(self, tmp_path: Path) -> None:
        target = tmp_path / "never"
        load_config(cli_overrides={"storage_dir": str(target)})
        assert not target.exists()


class TestYamlOverrides:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "kerkerker-test"
        assert config.http_timeout_seconds == 6.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.storage.directory == tmp_path / "store"
        assert config.storage.max_concurrent == 4
        assert config.search.max_concurrent_sources == 8
        assert config.search.result_ttl_seconds == 60
        assert config.search.list_ttl_seconds == 300  # default preserved

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "kerkerker"

    def test_non_mapping_yaml_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(config_path=path)


class TestEnvOverrides:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KERKERKER_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("KERKERKER_HTTP_TIMEOUT_SECONDS", "3.5")
        monkeypatch.setenv("KERKERKER_SEARCH_MAX_CONCURRENT_SOURCES", "2")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 3.5
        assert config.search.max_concurrent_sources == 2
        assert config.app_name == "kerkerker-test"

    def test_env_storage_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KERKERKER_STORAGE_BACKEND", "redis")
        monkeypatch.setenv("KERKERKER_STORAGE_REDIS_URL", "redis://cache:6379/2")

        config = load_config()
        assert config.storage.backend == "redis"
        assert config.storage.redis_url == "redis://cache:6379/2"

    def test_dotenv_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        # Register an undo so the value load_dotenv writes is removed afterwards.
        monkeypatch.setenv("KERKERKER_ENVIRONMENT", "dev")
        monkeypatch.delenv("KERKERKER_ENVIRONMENT")
        dotenv = tmp_path / ".env"
        dotenv.write_text("KERKERKER_ENVIRONMENT=prod\n", encoding="utf-8")

        config = load_config(dotenv_path=dotenv)
        assert config.environment == "prod"


class TestCliOverrides:
    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KERKERKER_LOG_LEVEL", "WARNING")
        config = load_config(
            config_path=yaml_config, cli_overrides={"log_level": "ERROR"}
        )
        assert config.log_level == "ERROR"

    def test_cli_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"search": {"detail_ttl_seconds": 5}},
        )
        assert config.search.detail_ttl_seconds == 5
        assert config.search.max_concurrent_sources == 8


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"http_timeout_seconds": 0},
            {"search_result_ttl_seconds": -1},
            {"search_max_concurrent_sources": -2},
            {"storage_backend": "memcached"},
            {"log_level": "TRACE"},
            {"storage_max_concurrent": 0},
        ],
    )
    def test_invalid_values_fail_at_load(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides=overrides)
