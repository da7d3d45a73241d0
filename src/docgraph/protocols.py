"""Protocol definitions for graph clients and document stores.

Defines the two contracts of the package:

- ``Database``: the minimal document store a backend has to provide
  (list/search/get/set/delete over flat documents)
- ``DBClient``: the full graph interface over Things and Relationships,
  implemented by ``MemoryDBClient`` and by the adapter over any ``Database``

These protocols enable dependency injection and testing.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from docgraph.types import (
    CreateOptions,
    Direction,
    QueryOptions,
    RelateOptions,
    Relationship,
    SearchOptions,
    SortOrder,
    Thing,
)

ThingCallback = Callable[[Thing], Awaitable[None] | None]


# =============================================================================
# Document store contract
# =============================================================================


class Document(BaseModel):
    """A flat document as stored by a ``Database`` backend."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    type: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    content: str = ""
    context: str | dict[str, Any] | None = Field(default=None, alias="@context")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Document:
        return cls.model_validate(d)


@dataclass(kw_only=True)
class ListOptions:
    type: str | list[str] | None = None
    prefix: str | None = None  # document id prefix
    limit: int | None = None
    offset: int = 0
    sort_by: str | None = None
    sort_order: SortOrder = "asc"


@dataclass(kw_only=True)
class DocumentSearchOptions:
    query: str
    type: str | list[str] | None = None
    limit: int | None = None
    offset: int = 0
    fields: list[str] | None = None


@dataclass
class ListResult:
    documents: list[Document] = field(default_factory=list)
    total: int = 0
    has_more: bool = False


@dataclass
class SearchResult(ListResult):
    scores: dict[str, float] = field(default_factory=dict)  # document id -> score


@dataclass
class SetResult:
    id: str
    created: bool


@dataclass
class DeleteResult:
    id: str
    deleted: bool


@runtime_checkable
class Database(Protocol):
    """Protocol for document storage backends.

    Backends may also expose ``async def close()``; callers look it up
    with ``getattr`` since it is optional.
    """

    async def list(self, options: ListOptions | None = None) -> ListResult:
        """List documents with optional filtering and pagination."""
        ...

    async def search(self, options: DocumentSearchOptions) -> SearchResult:
        """Search documents by query."""
        ...

    async def get(self, id: str) -> Document | None:
        """Get a document by ID."""
        ...

    async def set(self, id: str, document: Document) -> SetResult:
        """Create or replace a document."""
        ...

    async def delete(self, id: str) -> DeleteResult:
        """Delete a document."""
        ...


# =============================================================================
# Graph client contract
# =============================================================================


@runtime_checkable
class DBClient(Protocol):
    """Protocol for graph operations over Things and Relationships."""

    async def list(self, options: QueryOptions | None = None) -> list[Thing]:
        """List things with optional filtering, ordering and pagination."""
        ...

    async def find(self, options: QueryOptions) -> list[Thing]:
        """Alias of ``list``."""
        ...

    async def search(self, options: SearchOptions) -> list[Thing]:
        """Search things by query string."""
        ...

    async def get(self, url: str) -> Thing | None:
        """Get a thing by URL."""
        ...

    async def get_by_id(self, ns: str, type: str, id: str) -> Thing | None:
        """Get a thing by namespace, type and id."""
        ...

    async def set(self, url: str, data: dict[str, Any]) -> Thing:
        """Create or replace the data of the thing at ``url``."""
        ...

    async def create(self, options: CreateOptions) -> Thing:
        """Create a new thing."""
        ...

    async def update(self, url: str, data: dict[str, Any]) -> Thing:
        """Merge ``data`` into an existing thing."""
        ...

    async def upsert(self, options: CreateOptions) -> Thing:
        """Create or update a thing."""
        ...

    async def delete(self, url: str) -> bool:
        """Delete a thing and every relationship touching it."""
        ...

    async def for_each(self, options: QueryOptions, callback: ThingCallback) -> None:
        """Call ``callback`` sequentially for every listed thing."""
        ...

    async def relate(self, options: RelateOptions) -> Relationship:
        """Create or overwrite a relationship."""
        ...

    async def unrelate(self, from_: str, type: str, to: str) -> bool:
        """Remove a relationship."""
        ...

    async def related(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "from",
    ) -> list[Thing]:
        """Get neighbouring things."""
        ...

    async def relationships(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "both",
    ) -> list[Relationship]:
        """Get edge records touching a thing."""
        ...

    async def references(self, url: str, type: str | None = None) -> list[Thing]:
        """Get things that point at this thing."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...
