"""Configuration module."""

from docgraph.config.factory import create_client, create_file_client
from docgraph.config.loader import get_default_config, load_config
from docgraph.config.models import ConfigError, DocGraphConfig
from docgraph.config.paths import get_config_path, get_docgraph_home, get_store_path

__all__ = [
    "ConfigError",
    "DocGraphConfig",
    "create_client",
    "create_file_client",
    "get_config_path",
    "get_default_config",
    "get_docgraph_home",
    "get_store_path",
    "load_config",
]
