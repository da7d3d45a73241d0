"""Tests for entity addressing: building, resolving and parsing URLs."""

import pytest

from docgraph.errors import MalformedAddressError, NamespaceRequiredError
from docgraph.types import CreateOptions, EntityId
from docgraph.urls import create_target, entity_url, parse_url, resolve_url


class TestEntityUrl:
    def test_canonical_form(self):
        assert entity_url("example.com", "User", "alice") == (
            "https://example.com/User/alice"
        )


class TestResolveUrl:
    def test_entity_without_url(self):
        entity = EntityId(ns="example.com", type="Post", id="hello")
        assert resolve_url(entity) == "https://example.com/Post/hello"

    def test_entity_explicit_url_wins(self):
        entity = EntityId(
            ns="example.com", type="Post", id="hello", url="https://other.org/p/1"
        )
        assert resolve_url(entity) == "https://other.org/p/1"

    def test_absolute_ref_unchanged(self):
        url = "https://example.com/User/alice"
        assert resolve_url(url, "other.org") == url

    def test_type_and_id_against_namespace(self):
        assert resolve_url("User/alice", "example.com") == (
            "https://example.com/User/alice"
        )

    def test_leading_slash(self):
        assert resolve_url("/User/alice", "https://example.com") == (
            "https://example.com/User/alice"
        )

    def test_bare_id_against_type_url(self):
        assert resolve_url("alice", "https://example.com/User") == (
            "https://example.com/User/alice"
        )

    def test_type_and_id_ignore_base_type(self):
        assert resolve_url("Post/1", "https://example.com/User") == (
            "https://example.com/Post/1"
        )

    def test_bare_id_without_base_type_fails(self):
        with pytest.raises(MalformedAddressError):
            resolve_url("alice", "example.com")

    def test_relative_without_base_fails(self):
        with pytest.raises(MalformedAddressError):
            resolve_url("User/alice")

    def test_empty_ref_fails(self):
        with pytest.raises(MalformedAddressError):
            resolve_url("/", "example.com")


class TestParseUrl:
    def test_parses_triple(self):
        entity = parse_url("https://example.com/User/alice")
        assert entity.triple() == ("example.com", "User", "alice")
        assert entity.url == "https://example.com/User/alice"

    def test_id_keeps_nested_segments(self):
        entity = parse_url("https://example.com/Doc/guides/intro")
        assert entity.type == "Doc"
        assert entity.id == "guides/intro"

    def test_host_with_port(self):
        assert parse_url("http://localhost:8080/User/1").ns == "localhost:8080"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com",
            "https://example.com/",
            "https://example.com/alice",
            "User/alice",
            "not a url",
        ],
    )
    def test_malformed(self, url):
        with pytest.raises(MalformedAddressError) as exc_info:
            parse_url(url)
        assert exc_info.value.code == "malformed_address"
        assert exc_info.value.address == url

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            parse_url("https://example.com/only-one")

    @pytest.mark.parametrize(
        ("ns", "type", "id"),
        [
            ("example.com", "User", "alice"),
            ("api.mdx.org.ai", "Post", "2024/hello-world"),
            ("localhost:3000", "Thing", "x_1"),
        ],
    )
    def test_round_trip(self, ns, type, id):
        url = resolve_url(EntityId(ns=ns, type=type, id=id))
        assert parse_url(url).triple() == (ns, type, id)


class TestCreateTarget:
    def test_from_options(self):
        target = create_target(CreateOptions(type="User", id="alice"), "example.com")
        assert target == EntityId(
            ns="example.com",
            type="User",
            id="alice",
            url="https://example.com/User/alice",
        )

    def test_generated_id(self):
        target = create_target(CreateOptions(type="User"), "example.com")
        assert target.id
        assert target.url == f"https://example.com/User/{target.id}"

    def test_url_supplies_namespace_and_id(self):
        options = CreateOptions(type="Doc", url="https://docs.io/Doc/guides/intro")
        target = create_target(options)
        assert (target.ns, target.id) == ("docs.io", "guides/intro")

    def test_explicit_namespace_must_agree_with_url(self):
        options = CreateOptions(
            type="User", ns="example.com", url="https://other.org/User/alice"
        )
        with pytest.raises(MalformedAddressError, match="expected"):
            create_target(options)

    def test_scheme_must_be_canonical(self):
        options = CreateOptions(type="User", url="http://example.com/User/alice")
        with pytest.raises(MalformedAddressError):
            create_target(options)

    def test_namespace_required(self):
        with pytest.raises(NamespaceRequiredError):
            create_target(CreateOptions(type="User", id="alice"))
