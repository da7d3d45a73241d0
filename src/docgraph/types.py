"""Graph node and edge types, and the option objects for graph operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Direction = Literal["from", "to", "both"]
SortOrder = Literal["asc", "desc"]

DEFAULT_SEARCH_FIELDS: tuple[str, ...] = ("content", "title", "name", "description")


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_datetime(s: str | None) -> datetime | None:
    """Parse ISO datetime string, handling Z suffix and ensuring timezone awareness."""
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True)
class EntityId:
    """Namespace-scoped identity of a thing.

    ``url`` is optional; when absent the canonical
    ``https://{ns}/{type}/{id}`` form applies.
    """

    ns: str
    type: str
    id: str
    url: str | None = None

    def triple(self) -> tuple[str, str, str]:
        return (self.ns, self.type, self.id)


class Thing(BaseModel):
    """A node in the graph: an addressable entity with an open data payload."""

    model_config = ConfigDict(populate_by_name=True)

    ns: str
    type: str
    id: str
    url: str
    created_at: datetime
    updated_at: datetime
    data: dict[str, Any] = Field(default_factory=dict)
    context: str | dict[str, Any] | None = Field(default=None, alias="@context")

    @property
    def entity_id(self) -> EntityId:
        return EntityId(ns=self.ns, type=self.type, id=self.id, url=self.url)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Thing:
        return cls.model_validate(d)


class Relationship(BaseModel):
    """Typed, directed edge between two thing URLs.

    ``id`` is derived from ``(from, type, to)``, so one triple maps to
    exactly one relationship.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str
    from_: str = Field(alias="from")
    to: str
    created_at: datetime
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        # Don't serialize empty data
        if not d.get("data"):
            d.pop("data", None)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Relationship:
        return cls.model_validate(d)


@dataclass(kw_only=True)
class QueryOptions:
    """Filtering, ordering and pagination for ``list``."""

    ns: str | None = None
    type: str | None = None
    where: dict[str, Any] | None = None  # exact match on data fields
    order_by: str | None = None
    order: SortOrder = "asc"
    limit: int | None = None
    offset: int | None = None


@dataclass(kw_only=True)
class SearchOptions(QueryOptions):
    """Case-insensitive substring search plus the ``list`` filters."""

    query: str
    fields: list[str] | None = None


@dataclass(kw_only=True)
class CreateOptions:
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    ns: str | None = None
    id: str | None = None  # generated when omitted
    url: str | None = None  # must be the canonical URL when given
    context: str | dict[str, Any] | None = None


@dataclass(kw_only=True)
class RelateOptions:
    type: str
    from_: str
    to: str
    data: dict[str, Any] | None = None


@dataclass
class ClientStats:
    """Counts reported by ``MemoryDBClient.stats``."""

    things: int = 0
    relationships: int = 0
    types: dict[str, int] = field(default_factory=dict)  # "ns:type" -> count
