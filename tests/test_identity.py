"""Tests for id generation and deterministic relationship identity."""

from docgraph.identity import RELATIONSHIP_ID_PREFIX, generate_id, relationship_id

A = "https://example.com/User/alice"
B = "https://example.com/User/bob"


class TestRelationshipId:
    def test_deterministic(self):
        assert relationship_id(A, "follows", B) == relationship_id(A, "follows", B)

    def test_prefixed(self):
        assert relationship_id(A, "follows", B).startswith(RELATIONSHIP_ID_PREFIX)

    def test_order_sensitive(self):
        assert relationship_id(A, "follows", B) != relationship_id(B, "follows", A)

    def test_type_sensitive(self):
        assert relationship_id(A, "follows", B) != relationship_id(A, "likes", B)

    def test_component_boundaries_matter(self):
        # Concatenating the parts would make these two triples identical
        assert relationship_id("a:b", "c", "d") != relationship_id("a", "b:c", "d")
        assert relationship_id("ab", "c", "d") != relationship_id("a", "bc", "d")


class TestGenerateId:
    def test_unique(self):
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100

    def test_url_safe(self):
        assert "/" not in generate_id()
