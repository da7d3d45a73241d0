"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from docgraph.config.models import ConfigError, DocGraphConfig
from docgraph.config.paths import get_config_path

NS_ENV_VAR = "DOCGRAPH_NS"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("docgraph.toml"),  # Current directory
        get_config_path(),  # ~/.docgraph/config.toml (or DOCGRAPH_HOME)
    ]


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Let DOCGRAPH_NS override the configured default namespace."""
    if ns := os.environ.get(NS_ENV_VAR):
        config["ns"] = ns
    return config


def load_config(path: Path | None = None) -> DocGraphConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to the default configuration.

    Returns:
        Validated DocGraphConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the config file is invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _apply_env_overrides(raw_config)

    try:
        return DocGraphConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed: {e}") from e


def get_default_config() -> DocGraphConfig:
    """Get a default configuration for development/testing."""
    return DocGraphConfig(backend="memory")
