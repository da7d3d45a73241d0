"""In-memory graph client.

All queries run against in-memory dicts and adjacency indexes. Useful for
tests, fixtures and development; nothing is persisted.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
from typing import Any

from docgraph.errors import AlreadyExistsError, NotFoundError
from docgraph.identity import relationship_id
from docgraph.protocols import ThingCallback
from docgraph.query import apply_query, apply_search
from docgraph.types import (
    ClientStats,
    CreateOptions,
    Direction,
    QueryOptions,
    RelateOptions,
    Relationship,
    SearchOptions,
    Thing,
    utcnow,
)
from docgraph.urls import create_target, entity_url, parse_url

logger = logging.getLogger(__name__)

# Insertion-ordered set: dict keys with no values
_OrderedSet = dict[str, None]


class MemoryDBClient:
    """Reference graph client holding Things and Relationships in memory.

    Keeps two primary maps (things by URL, relationships by id) and three
    secondary indexes: ``(ns, type) -> urls``, ``url -> outbound edge ids``
    and ``url -> inbound edge ids``. Compound mutations hold a lock so the
    indexes are never observed half-updated.

    Example:
        db = MemoryDBClient(ns="example.com")
        user = await db.create(CreateOptions(type="User", data={"name": "Alice"}))
        await db.relate(RelateOptions(type="follows", from_=user.url, to=bob_url))
        following = await db.related(user.url, "follows", "from")
    """

    def __init__(self, ns: str | None = None) -> None:
        self._default_ns = ns
        self._lock = asyncio.Lock()

        self._things: dict[str, Thing] = {}
        self._relationships: dict[str, Relationship] = {}

        self._by_ns_type: dict[tuple[str, str], _OrderedSet] = {}
        self._outbound: dict[str, _OrderedSet] = {}
        self._inbound: dict[str, _OrderedSet] = {}

    # -- Queries --

    async def list(self, options: QueryOptions | None = None) -> list[Thing]:
        """List things with optional filtering, ordering and pagination."""
        options = options or QueryOptions()
        if options.ns and options.type:
            urls = self._by_ns_type.get((options.ns, options.type), {})
            candidates = [self._things[url] for url in urls]
        else:
            candidates = list(self._things.values())
        return [t.model_copy(deep=True) for t in apply_query(candidates, options)]

    async def find(self, options: QueryOptions) -> list[Thing]:
        return await self.list(options)

    async def search(self, options: SearchOptions) -> list[Thing]:
        """Search things by case-insensitive substring."""
        results = apply_search(self._things.values(), options)
        return [t.model_copy(deep=True) for t in results]

    async def get(self, url: str) -> Thing | None:
        thing = self._things.get(url)
        return thing.model_copy(deep=True) if thing else None

    async def get_by_id(self, ns: str, type: str, id: str) -> Thing | None:
        return await self.get(entity_url(ns, type, id))

    # -- Mutations --

    async def set(self, url: str, data: dict[str, Any]) -> Thing:
        """Replace a thing's data, creating the thing if needed."""
        async with self._lock:
            now = utcnow()
            existing = self._things.get(url)
            if existing:
                thing = existing.model_copy(
                    update={"data": copy.deepcopy(data), "updated_at": now}
                )
                self._things[url] = thing
                logger.debug("thing_replaced", extra={"thing.url": url})
                return thing.model_copy(deep=True)

            entity = parse_url(url)
            thing = Thing(
                ns=entity.ns,
                type=entity.type,
                id=entity.id,
                url=url,
                created_at=now,
                updated_at=now,
                data=copy.deepcopy(data),
            )
            self._insert_thing(thing)
            return thing.model_copy(deep=True)

    async def create(self, options: CreateOptions) -> Thing:
        """Create a new thing.

        Raises:
            NamespaceRequiredError: If no namespace is given or configured.
            MalformedAddressError: If an explicit URL is not canonical.
            AlreadyExistsError: If the URL is already bound.
        """
        target = create_target(options, self._default_ns)
        url = target.url

        async with self._lock:
            if url in self._things:
                raise AlreadyExistsError(url)
            now = utcnow()
            thing = Thing(
                ns=target.ns,
                type=target.type,
                id=target.id,
                url=url,
                created_at=now,
                updated_at=now,
                data=copy.deepcopy(options.data),
                context=copy.deepcopy(options.context),
            )
            self._insert_thing(thing)
        return thing.model_copy(deep=True)

    async def update(self, url: str, data: dict[str, Any]) -> Thing:
        """Shallow-merge ``data`` into an existing thing.

        Raises:
            NotFoundError: If no thing is bound to ``url``.
        """
        async with self._lock:
            existing = self._things.get(url)
            if not existing:
                raise NotFoundError(url)
            thing = existing.model_copy(
                update={
                    "data": {**existing.data, **copy.deepcopy(data)},
                    "updated_at": utcnow(),
                }
            )
            self._things[url] = thing
        return thing.model_copy(deep=True)

    async def upsert(self, options: CreateOptions) -> Thing:
        target = create_target(options, self._default_ns)
        if target.url in self._things:
            return await self.update(target.url, options.data)
        return await self.create(
            CreateOptions(
                type=target.type,
                data=options.data,
                ns=target.ns,
                id=target.id,
                context=options.context,
            )
        )

    async def delete(self, url: str) -> bool:
        """Delete a thing and every relationship touching it."""
        async with self._lock:
            thing = self._things.pop(url, None)
            if thing is None:
                return False

            key = (thing.ns, thing.type)
            urls = self._by_ns_type.get(key)
            if urls is not None:
                urls.pop(url, None)
                if not urls:
                    del self._by_ns_type[key]

            edge_ids = [
                *self._outbound.get(url, {}),
                *self._inbound.get(url, {}),
            ]
            for rel_id in edge_ids:
                self._remove_relationship(rel_id)

        logger.debug(
            "thing_deleted",
            extra={"thing.url": url, "relationships.removed": len(set(edge_ids))},
        )
        return True

    async def for_each(self, options: QueryOptions, callback: ThingCallback) -> None:
        """Call ``callback`` for each listed thing, one at a time."""
        things = await self.list(options)
        for thing in things:
            result = callback(thing)
            if inspect.isawaitable(result):
                await result

    # -- Relationships --

    async def relate(self, options: RelateOptions) -> Relationship:
        """Create a relationship, overwriting any edge with the same triple."""
        rel_id = relationship_id(options.from_, options.type, options.to)
        relationship = Relationship(
            id=rel_id,
            type=options.type,
            from_=options.from_,
            to=options.to,
            created_at=utcnow(),
            data=copy.deepcopy(options.data) or None,
        )

        async with self._lock:
            self._relationships[rel_id] = relationship
            self._outbound.setdefault(options.from_, {})[rel_id] = None
            self._inbound.setdefault(options.to, {})[rel_id] = None

        logger.debug(
            "relationship_stored",
            extra={"relationship.id": rel_id, "relationship.type": options.type},
        )
        return relationship.model_copy(deep=True)

    async def unrelate(self, from_: str, type: str, to: str) -> bool:
        rel_id = relationship_id(from_, type, to)
        async with self._lock:
            return self._remove_relationship(rel_id)

    async def related(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "from",
    ) -> list[Thing]:
        """Get things connected to ``url``.

        ``from`` returns the targets of outbound edges, ``to`` the sources
        of inbound edges, ``both`` the union without duplicates. Neighbours
        that are not stored things are skipped.
        """
        neighbours: list[str] = []
        if direction in ("from", "both"):
            neighbours.extend(rel.to for rel in self._edges(url, type, "from"))
        if direction in ("to", "both"):
            neighbours.extend(rel.from_ for rel in self._edges(url, type, "to"))

        results: list[Thing] = []
        seen: set[str] = set()
        for neighbour in neighbours:
            if neighbour in seen:
                continue
            thing = self._things.get(neighbour)
            if thing:
                results.append(thing.model_copy(deep=True))
                seen.add(neighbour)
        return results

    async def relationships(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "both",
    ) -> list[Relationship]:
        return [rel.model_copy(deep=True) for rel in self._edges(url, type, direction)]

    async def references(self, url: str, type: str | None = None) -> list[Thing]:
        """Get things that point at ``url`` (backlinks)."""
        return await self.related(url, type, "to")

    # -- Lifecycle --

    async def close(self) -> None:
        """No-op; there is nothing to release."""

    async def clear(self) -> None:
        """Drop all things, relationships and indexes."""
        async with self._lock:
            self._things.clear()
            self._relationships.clear()
            self._by_ns_type.clear()
            self._outbound.clear()
            self._inbound.clear()

    def stats(self) -> ClientStats:
        return ClientStats(
            things=len(self._things),
            relationships=len(self._relationships),
            types={
                f"{ns}:{type}": len(urls)
                for (ns, type), urls in self._by_ns_type.items()
            },
        )

    # -- Internal --

    def _insert_thing(self, thing: Thing) -> None:
        """Store a thing and index it. Caller holds the lock."""
        self._things[thing.url] = thing
        self._by_ns_type.setdefault((thing.ns, thing.type), {})[thing.url] = None
        logger.debug(
            "thing_created",
            extra={"thing.url": thing.url, "thing.type": thing.type},
        )

    def _remove_relationship(self, rel_id: str) -> bool:
        """Remove an edge from the primary map and both indexes.

        Caller holds the lock.
        """
        rel = self._relationships.pop(rel_id, None)
        if rel is None:
            return False
        for index, endpoint in ((self._outbound, rel.from_), (self._inbound, rel.to)):
            ids = index.get(endpoint)
            if ids is None:
                continue
            ids.pop(rel_id, None)
            # Clean up empty index entries to prevent unbounded accumulation
            if not ids:
                del index[endpoint]
        return True

    def _edges(
        self, url: str, type: str | None, direction: Direction
    ) -> list[Relationship]:
        edge_ids: dict[str, None] = {}
        if direction in ("from", "both"):
            edge_ids.update(self._outbound.get(url, {}))
        if direction in ("to", "both"):
            edge_ids.update(self._inbound.get(url, {}))

        results: list[Relationship] = []
        for rel_id in edge_ids:
            rel = self._relationships.get(rel_id)
            if not rel:
                continue
            if type and rel.type != type:
                continue
            results.append(rel)
        return results
