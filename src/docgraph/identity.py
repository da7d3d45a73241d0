"""Identifier generation for things and relationships."""

from __future__ import annotations

import hashlib
import uuid

RELATIONSHIP_ID_PREFIX = "rel_"


def generate_id() -> str:
    """Generate an id for a thing created without one."""
    return uuid.uuid4().hex


def relationship_id(from_: str, type: str, to: str) -> str:
    """Derive the identity key of the ``from -[type]-> to`` edge.

    Each component is length-prefixed before hashing so distinct triples
    can never produce the same input, and the digest is SHA-256, so the
    key is unique per triple for all practical purposes. Order matters:
    swapping ``from_`` and ``to`` yields a different id.
    """
    h = hashlib.sha256()
    for part in (from_, type, to):
        encoded = part.encode("utf-8")
        h.update(len(encoded).to_bytes(8, "big"))
        h.update(encoded)
    return f"{RELATIONSHIP_ID_PREFIX}{h.hexdigest()}"
