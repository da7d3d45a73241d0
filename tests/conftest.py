"""Shared test fixtures and factories."""

import logging
from pathlib import Path

import pytest

from docgraph.adapter import DocumentDBClient, create_db_client
from docgraph.backends.fs import FileDatabase
from docgraph.backends.memory import MemoryDatabase
from docgraph.config.paths import ENV_VAR
from docgraph.memory import MemoryDBClient
from docgraph.protocols import DBClient
from docgraph.types import CreateOptions, Thing

NS = "example.com"


# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def docgraph_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point DOCGRAPH_HOME at a temporary directory for every test."""
    home = tmp_path / ".docgraph"
    home.mkdir()
    monkeypatch.setenv(ENV_VAR, str(home))
    monkeypatch.delenv("DOCGRAPH_NS", raising=False)
    monkeypatch.delenv("DOCGRAPH_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def restore_root_logger():
    """Undo handler and level changes made by configure_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


# =============================================================================
# Backends and clients
# =============================================================================


@pytest.fixture
def memory_database() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
def file_database(tmp_path: Path) -> FileDatabase:
    return FileDatabase(tmp_path / "store")


@pytest.fixture
def memory_client() -> MemoryDBClient:
    return MemoryDBClient(ns=NS)


@pytest.fixture
def document_client(memory_database: MemoryDatabase) -> DocumentDBClient:
    return create_db_client(memory_database, ns=NS)


@pytest.fixture(params=["memory", "document", "file"])
def client(request: pytest.FixtureRequest, tmp_path: Path) -> DBClient:
    """Every DBClient implementation, for contract tests."""
    if request.param == "memory":
        return MemoryDBClient(ns=NS)
    if request.param == "document":
        return create_db_client(MemoryDatabase(), ns=NS)
    return create_db_client(FileDatabase(tmp_path / "store"), ns=NS)


async def make_user(db: DBClient, id: str, **data) -> Thing:
    """Create a User thing in the default test namespace."""
    return await db.create(CreateOptions(type="User", id=id, data=data))
