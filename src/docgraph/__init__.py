"""Graph-over-documents storage.

Public API:
- DBClient: Graph interface over Things (nodes) and Relationships (edges)
- MemoryDBClient: In-memory reference implementation with edge indexes
- create_db_client: Lift any ``Database`` document store into a DBClient
- resolve_url / parse_url: Canonical ``https://{ns}/{type}/{id}`` addressing

Backends:
- MemoryDatabase, FileDatabase: Bundled ``Database`` implementations
"""

from docgraph.adapter import DocumentDBClient, create_db_client
from docgraph.backends import FileDatabase, MemoryDatabase
from docgraph.errors import (
    AlreadyExistsError,
    DocumentDecodeError,
    GraphError,
    MalformedAddressError,
    NamespaceRequiredError,
    NotFoundError,
)
from docgraph.identity import generate_id, relationship_id
from docgraph.memory import MemoryDBClient
from docgraph.protocols import Database, DBClient, Document
from docgraph.types import (
    ClientStats,
    CreateOptions,
    EntityId,
    QueryOptions,
    RelateOptions,
    Relationship,
    SearchOptions,
    Thing,
)
from docgraph.urls import entity_url, parse_url, resolve_url

__all__ = [
    "AlreadyExistsError",
    "ClientStats",
    "CreateOptions",
    "DBClient",
    "Database",
    "Document",
    "DocumentDBClient",
    "DocumentDecodeError",
    "EntityId",
    "FileDatabase",
    "GraphError",
    "MalformedAddressError",
    "MemoryDBClient",
    "MemoryDatabase",
    "NamespaceRequiredError",
    "NotFoundError",
    "QueryOptions",
    "RelateOptions",
    "Relationship",
    "SearchOptions",
    "Thing",
    "create_db_client",
    "entity_url",
    "generate_id",
    "parse_url",
    "relationship_id",
    "resolve_url",
]
