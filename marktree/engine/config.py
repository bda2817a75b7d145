"""
MarkTree Configuration — Load and validate marktree.yaml at startup.

Usage:
    from marktree.engine.config import load_config, get_config
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from marktree.engine.errors import ConfigError

CONFIG_FILE_NAME = "marktree.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for marktree.yaml
# ---------------------------------------------------------------------------

class DatabaseConfig(BaseModel):
    url: str = "sqlite:///marktree.db"
    echo: bool = False
    create_tables: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"
    enabled: bool = False
    directory: str = ".marktree/logs"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"logging.level must be a standard level name, got '{v}'")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError(f"logging.format must be text/json, got '{v}'")
        return v


class MarkTreeConfig(BaseModel):
    """Root model for marktree.yaml."""
    name: str = "MarkTree"
    environment: str = "dev"

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[MarkTreeConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for marktree.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILE_NAME).exists():
            return parent
    return current


def load_config(config_path: Optional[str] = None) -> MarkTreeConfig:
    """
    Load and validate marktree.yaml.

    Args:
        config_path: Explicit path to marktree.yaml. If None, auto-discovers.

    Returns:
        Validated MarkTreeConfig instance. Defaults when no file exists.

    Raises:
        ConfigError: the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILE_NAME)

    path = Path(config_path)
    if not path.exists():
        _config = MarkTreeConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {path}: {e}", config_path=str(path)) from e

    # Flatten an optional top-level "marktree:" section
    top = raw.get("marktree", {})
    config_data = {
        "name": top.get("name", raw.get("name", "MarkTree")),
        "environment": top.get("environment", raw.get("environment", "dev")),
        "database": raw.get("database", {}),
        "logging": raw.get("logging", {}),
    }

    try:
        _config = MarkTreeConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}", config_path=str(path),
                          validation_errors=e.errors()) from e
    return _config


def get_config() -> MarkTreeConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded config (tests, re-bootstrap)."""
    global _config
    _config = None
