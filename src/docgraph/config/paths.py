"""Centralized path management for docgraph.

Config and file-backed stores live under a single base directory, which can
be overridden with the DOCGRAPH_HOME environment variable.

Default locations:
- Linux/macOS: ~/.docgraph
- Windows: %USERPROFILE%\\.docgraph
"""

import os
from pathlib import Path

ENV_VAR = "DOCGRAPH_HOME"


def get_docgraph_home() -> Path:
    """Get the base directory for all docgraph data.

    Resolution order:
    1. DOCGRAPH_HOME environment variable (if set)
    2. Platform default (~/.docgraph)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".docgraph"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_docgraph_home() / "config.toml"


def get_store_path() -> Path:
    """Get the default root of the file-backed document store."""
    return get_docgraph_home() / "store"
