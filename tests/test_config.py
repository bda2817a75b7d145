"""Unit tests for marktree.engine.config — MarkTreeConfig and loading."""

import pytest

from marktree.engine.config import (
    DatabaseConfig,
    LoggingConfig,
    MarkTreeConfig,
    get_config,
    load_config,
)
from marktree.engine.errors import ConfigError


class TestMarkTreeConfig:

    def test_defaults(self):
        cfg = MarkTreeConfig()
        assert cfg.name == "MarkTree"
        assert cfg.environment == "dev"
        assert cfg.database.url == "sqlite:///marktree.db"
        assert cfg.database.pool_size == 10
        assert cfg.logging.level == "INFO"
        assert cfg.logging.format == "text"
        assert cfg.logging.enabled is False

    def test_valid_environments(self):
        for env in ("dev", "staging", "prod"):
            assert MarkTreeConfig(environment=env).environment == env

    def test_invalid_environment(self):
        with pytest.raises(ValueError, match="dev/staging/prod"):
            MarkTreeConfig(environment="test")

    def test_custom_database(self):
        cfg = MarkTreeConfig(database=DatabaseConfig(url="postgresql://a:b@host/db", pool_size=20))
        assert cfg.database.url == "postgresql://a:b@host/db"
        assert cfg.database.pool_size == 20

    def test_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            LoggingConfig(level="LOUD")

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="text/json"):
            LoggingConfig(format="xml")


class TestLoadConfig:

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text(
            "marktree:\n"
            "  name: Bookmarks\n"
            "  environment: staging\n"
            "database:\n"
            "  url: sqlite://\n"
            "  create_tables: true\n"
            "logging:\n"
            "  level: debug\n"
            "  format: json\n",
            encoding="utf-8",
        )
        cfg = load_config(str(path))
        assert cfg.name == "Bookmarks"
        assert cfg.environment == "staging"
        assert cfg.database.url == "sqlite://"
        assert cfg.database.create_tables is True
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.format == "json"

    def test_missing_file_returns_defaults(self, tmp_path):
        cfg = load_config(str(tmp_path / "nonexistent.yaml"))
        assert cfg.name == "MarkTree"

    def test_auto_discovery(self, tmp_path, monkeypatch):
        (tmp_path / "marktree.yaml").write_text("name: Found\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().name == "Found"

    def test_invalid_values_raise_config_error(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text("environment: local\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc:
            load_config(str(path))
        assert exc.value.context["validation_errors"]

    def test_invalid_yaml_raises_config_error(self, tmp_path):
        path = tmp_path / "marktree.yaml"
        path.write_text("database: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_get_config_caches(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert get_config() is get_config()
