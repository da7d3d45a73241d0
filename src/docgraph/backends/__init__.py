"""Bundled ``Database`` backends."""

from docgraph.backends.fs import FileDatabase
from docgraph.backends.memory import MemoryDatabase

__all__ = [
    "FileDatabase",
    "MemoryDatabase",
]
