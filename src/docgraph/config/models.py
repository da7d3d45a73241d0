"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from docgraph.config.paths import get_store_path


class ConfigError(Exception):
    """Configuration error."""

    pass


class DocGraphConfig(BaseModel):
    """Root configuration model.

    ``backend = "memory"`` keeps everything in process; ``"fs"`` wraps a
    ``FileDatabase`` rooted at ``root`` with the document adapter.
    """

    ns: str | None = None  # default namespace for create/upsert
    backend: Literal["memory", "fs"] = "memory"
    root: Path = Field(default_factory=get_store_path)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None

    @field_validator("ns")
    @classmethod
    def _validate_ns(cls, value: str | None) -> str | None:
        """A namespace is a host-like segment, not a URL or path."""
        if value is None:
            return None
        value = value.strip()
        if not value or "/" in value or any(c.isspace() for c in value):
            raise ValueError(f"invalid namespace: {value!r}")
        return value

    @field_validator("root")
    @classmethod
    def _expand_root(cls, value: Path) -> Path:
        return value.expanduser()
