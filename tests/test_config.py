"""Tests for configuration loading and models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from docgraph.adapter import DocumentDBClient
from docgraph.backends.fs import FileDatabase
from docgraph.config import (
    ConfigError,
    DocGraphConfig,
    create_client,
    create_file_client,
    get_config_path,
    get_default_config,
    get_docgraph_home,
    get_store_path,
    load_config,
)
from docgraph.config.paths import ENV_VAR
from docgraph.memory import MemoryDBClient
from docgraph.types import CreateOptions


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Run from an empty directory so no stray docgraph.toml is found."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


class TestPaths:
    """Tests for DOCGRAPH_HOME resolution."""

    def test_env_override(self, docgraph_home):
        assert get_docgraph_home() == docgraph_home.resolve()
        assert get_config_path() == docgraph_home.resolve() / "config.toml"
        assert get_store_path() == docgraph_home.resolve() / "store"

    def test_platform_default(self, monkeypatch):
        monkeypatch.delenv(ENV_VAR)
        assert get_docgraph_home() == Path.home() / ".docgraph"


class TestDocGraphConfig:
    """Tests for DocGraphConfig model."""

    def test_defaults(self, docgraph_home):
        config = DocGraphConfig()
        assert config.ns is None
        assert config.backend == "memory"
        assert config.root == docgraph_home.resolve() / "store"
        assert config.log_level is None

    def test_namespace_stripped(self):
        assert DocGraphConfig(ns="  example.com ").ns == "example.com"

    @pytest.mark.parametrize("ns", ["", "a/b", "has space", "https://example.com"])
    def test_invalid_namespace(self, ns):
        with pytest.raises(ValidationError):
            DocGraphConfig(ns=ns)

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            DocGraphConfig(backend="redis")

    def test_root_expands_user(self):
        config = DocGraphConfig(root=Path("~/graph"))
        assert config.root == Path.home() / "graph"


class TestLoadConfig:
    """Tests for load_config()."""

    def test_no_file_uses_defaults(self, workdir):
        config = load_config()
        assert config.backend == "memory"
        assert config.ns is None

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            'ns = "example.com"\nbackend = "fs"\nroot = "/srv/graph"\n'
            'log_level = "DEBUG"\n'
        )
        config = load_config(path)
        assert config.ns == "example.com"
        assert config.backend == "fs"
        assert config.root == Path("/srv/graph")
        assert config.log_level == "DEBUG"

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.toml")

    def test_home_config(self, workdir, docgraph_home):
        (docgraph_home / "config.toml").write_text('ns = "home.example"\n')
        assert load_config().ns == "home.example"

    def test_working_directory_wins(self, workdir, docgraph_home):
        (docgraph_home / "config.toml").write_text('ns = "home.example"\n')
        (workdir / "docgraph.toml").write_text('ns = "local.example"\n')
        assert load_config().ns == "local.example"

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("not valid toml [[[")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(path)

    def test_validation_error(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text('backend = "redis"\n')
        with pytest.raises(ConfigError, match="validation failed"):
            load_config(path)

    def test_ns_env_override(self, workdir, monkeypatch):
        monkeypatch.setenv("DOCGRAPH_NS", "env.example")
        assert load_config().ns == "env.example"

    def test_ns_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('ns = "file.example"\n')
        monkeypatch.setenv("DOCGRAPH_NS", "env.example")
        assert load_config(path).ns == "env.example"

    def test_default_config(self):
        assert get_default_config().backend == "memory"


class TestCreateClient:
    """Tests for building clients from config."""

    def test_memory_backend(self):
        client = create_client(DocGraphConfig(ns="example.com"))
        assert isinstance(client, MemoryDBClient)

    def test_fs_backend(self, tmp_path):
        root = tmp_path / "graph"
        client = create_client(DocGraphConfig(backend="fs", root=root))
        assert isinstance(client, DocumentDBClient)
        assert isinstance(client.database, FileDatabase)
        assert client.database.root == root
        assert root.is_dir()

    async def test_fs_client_uses_namespace(self, tmp_path):
        config = DocGraphConfig(ns="example.com", backend="fs", root=tmp_path / "g")
        client = create_client(config)
        thing = await client.create(CreateOptions(type="User", id="alice"))
        assert thing.url == "https://example.com/User/alice"
        assert (tmp_path / "g" / "User" / "alice.json").exists()

    def test_file_client_ignores_backend(self, tmp_path):
        config = DocGraphConfig(ns="example.com", root=tmp_path / "g")
        client = create_file_client(config)
        assert isinstance(client, DocumentDBClient)
        assert client.database.root == tmp_path / "g"
