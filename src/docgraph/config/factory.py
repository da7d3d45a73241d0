"""Build a graph client from configuration."""

from __future__ import annotations

import logging

from docgraph.adapter import DocumentDBClient, create_db_client
from docgraph.backends.fs import FileDatabase
from docgraph.config.models import DocGraphConfig
from docgraph.memory import MemoryDBClient
from docgraph.protocols import DBClient

logger = logging.getLogger(__name__)


def create_file_client(config: DocGraphConfig) -> DocumentDBClient:
    """Open the file store at ``config.root``, whatever the configured backend."""
    logger.debug("Opening file store", extra={"store.root": str(config.root)})
    return create_db_client(FileDatabase(config.root), ns=config.ns)


def create_client(config: DocGraphConfig) -> DBClient:
    """Create the ``DBClient`` selected by ``config.backend``."""
    if config.backend == "fs":
        return create_file_client(config)
    return MemoryDBClient(ns=config.ns)
