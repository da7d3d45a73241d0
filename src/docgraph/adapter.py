"""Graph client over a plain document store.

Wraps any ``Database`` (list/search/get/set/delete over flat documents) with
the full ``DBClient`` interface. The backend never learns about graphs:

- a thing is stored as document ``{type}/{id}``; namespace and timestamps
  ride along in reserved ``$``-prefixed data keys
- a relationship is stored as document ``_rel:{relationship id}`` of type
  ``_relationship`` with its own data flattened into the payload

There is no edge index: ``related``/``relationships`` scan every
relationship document on each call, which is fine for small to moderate
edge counts.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from docgraph.errors import (
    AlreadyExistsError,
    DocumentDecodeError,
    MalformedAddressError,
    NotFoundError,
)
from docgraph.identity import relationship_id
from docgraph.protocols import (
    Database,
    Document,
    DocumentSearchOptions,
    ListOptions,
    ListResult,
    ThingCallback,
)
from docgraph.query import apply_query
from docgraph.types import (
    DEFAULT_SEARCH_FIELDS,
    CreateOptions,
    Direction,
    EntityId,
    QueryOptions,
    RelateOptions,
    Relationship,
    SearchOptions,
    Thing,
    parse_datetime,
    utcnow,
)
from docgraph.urls import create_target, entity_url, parse_url

logger = logging.getLogger(__name__)

REL_PREFIX = "_rel:"
REL_TYPE = "_relationship"
DEFAULT_NAMESPACE = "default"
SCAN_PAGE_SIZE = 500

# Reserved data keys on thing documents
NS_KEY = "$ns"
TYPE_KEY = "$type"
CREATED_KEY = "$createdAt"
UPDATED_KEY = "$updatedAt"
CONTEXT_KEY = "$context"
THING_RESERVED = frozenset({NS_KEY, TYPE_KEY, CREATED_KEY, UPDATED_KEY, CONTEXT_KEY})

# Reserved payload keys on relationship documents
REL_RESERVED = frozenset({"id", "type", "from", "to", "createdAt"})


def doc_id_for(entity: EntityId) -> str:
    return f"{entity.type}/{entity.id}"


def is_relationship_doc(doc: Document) -> bool:
    return (doc.id or "").startswith(REL_PREFIX) or doc.type == REL_TYPE


def _parse_timestamp(doc_id: str, value: Any) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise DocumentDecodeError(doc_id, f"timestamp is not a string: {value!r}")
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise DocumentDecodeError(doc_id, f"invalid timestamp {value!r}") from e


def doc_to_thing(doc_id: str, doc: Document, default_ns: str | None = None) -> Thing:
    """Translate a stored document into a thing.

    Raises:
        DocumentDecodeError: If the document has no type or bad timestamps.
    """
    raw = doc.data
    type_ = doc.type or raw.get(TYPE_KEY)
    if not type_ or not isinstance(type_, str):
        raise DocumentDecodeError(doc_id, "missing type")

    ns = raw.get(NS_KEY) or default_ns or DEFAULT_NAMESPACE
    thing_id = doc_id.split("/", 1)[1] if "/" in doc_id else doc_id

    now = utcnow()
    created_at = _parse_timestamp(doc_id, raw.get(CREATED_KEY))
    updated_at = _parse_timestamp(doc_id, raw.get(UPDATED_KEY))

    return Thing(
        ns=ns,
        type=type_,
        id=thing_id,
        url=entity_url(ns, type_, thing_id),
        created_at=created_at or updated_at or now,
        updated_at=updated_at or created_at or now,
        data={k: v for k, v in raw.items() if k not in THING_RESERVED},
        context=raw.get(CONTEXT_KEY, doc.context),
    )


def thing_to_document(thing: Thing) -> Document:
    data: dict[str, Any] = {
        **thing.data,
        NS_KEY: thing.ns,
        CREATED_KEY: thing.created_at.isoformat(),
        UPDATED_KEY: thing.updated_at.isoformat(),
    }
    if thing.context is not None:
        data[CONTEXT_KEY] = thing.context
    return Document(type=thing.type, data=data, content="")


def relationship_to_document(rel: Relationship) -> Document:
    # Reserved keys win over same-named keys in the relationship data
    payload: dict[str, Any] = {
        **(rel.data or {}),
        "id": rel.id,
        "type": rel.type,
        "from": rel.from_,
        "to": rel.to,
        "createdAt": rel.created_at.isoformat(),
    }
    return Document(type=REL_TYPE, data=payload, content="")


def doc_to_relationship(doc: Document) -> Relationship:
    """Translate a ``_relationship`` document back into an edge.

    Raises:
        DocumentDecodeError: If any identity field is missing.
    """
    doc_id = doc.id or "<unknown>"
    raw = doc.data
    for key in ("id", "type", "from", "to"):
        if not isinstance(raw.get(key), str) or not raw[key]:
            raise DocumentDecodeError(doc_id, f"relationship field {key!r} missing")
    created_at = _parse_timestamp(doc_id, raw.get("createdAt"))
    if created_at is None:
        raise DocumentDecodeError(doc_id, "relationship field 'createdAt' missing")

    extra = {k: v for k, v in raw.items() if k not in REL_RESERVED}
    return Relationship(
        id=raw["id"],
        type=raw["type"],
        from_=raw["from"],
        to=raw["to"],
        created_at=created_at,
        data=extra or None,
    )


class DocumentDBClient:
    """``DBClient`` implemented on top of a ``Database`` backend."""

    def __init__(self, database: Database, ns: str | None = None) -> None:
        self._db = database
        self._default_ns = ns

    @property
    def database(self) -> Database:
        return self._db

    # -- Scanning --

    async def _collect(
        self, fetch: Callable[[int, int], Awaitable[ListResult]]
    ) -> list[Document]:
        """Read every page of a list/search call."""
        documents: list[Document] = []
        offset = 0
        while True:
            page = await fetch(offset, SCAN_PAGE_SIZE)
            documents.extend(page.documents)
            if not page.has_more or not page.documents:
                break
            offset += len(page.documents)
        return documents

    async def _thing_documents(self, type: str | None) -> list[Document]:
        docs = await self._collect(
            lambda offset, limit: self._db.list(
                ListOptions(type=type, offset=offset, limit=limit)
            )
        )
        return [d for d in docs if not is_relationship_doc(d)]

    async def _scan_relationships(self) -> list[Relationship]:
        docs = await self._collect(
            lambda offset, limit: self._db.list(
                ListOptions(type=REL_TYPE, offset=offset, limit=limit)
            )
        )
        logger.debug("relationship_scan", extra={"relationships.count": len(docs)})
        return [doc_to_relationship(d) for d in docs]

    def _to_thing(self, doc: Document) -> Thing:
        if not doc.id:
            raise DocumentDecodeError("<unknown>", "document has no id")
        return doc_to_thing(doc.id, doc, self._default_ns)

    # -- Queries --

    async def list(self, options: QueryOptions | None = None) -> list[Thing]:
        options = options or QueryOptions()
        docs = await self._thing_documents(options.type)
        return apply_query((self._to_thing(d) for d in docs), options)

    async def find(self, options: QueryOptions) -> list[Thing]:
        return await self.list(options)

    async def search(self, options: SearchOptions) -> list[Thing]:
        """Search through the backend, then apply the shared filters.

        Field matching (and relevance order when no ``order_by`` is given)
        is the backend's. Only the requested fields are sent, so reserved
        ``$`` keys never match. Things whose id contains the query are
        added after the backend hits.
        """
        fields = list(options.fields or DEFAULT_SEARCH_FIELDS)
        docs = await self._collect(
            lambda offset, limit: self._db.search(
                DocumentSearchOptions(
                    query=options.query,
                    type=options.type,
                    fields=fields,
                    offset=offset,
                    limit=limit,
                )
            )
        )
        things = [self._to_thing(d) for d in docs if not is_relationship_doc(d)]

        needle = options.query.lower()
        if needle:
            seen = {t.url for t in things}
            for doc in await self._thing_documents(options.type):
                thing = self._to_thing(doc)
                if needle in thing.id.lower() and thing.url not in seen:
                    things.append(thing)
                    seen.add(thing.url)
        return apply_query(things, options)

    async def get(self, url: str) -> Thing | None:
        try:
            entity = parse_url(url)
        except MalformedAddressError:
            return None
        doc_id = doc_id_for(entity)
        doc = await self._db.get(doc_id)
        if doc is None:
            return None
        thing = doc_to_thing(doc_id, doc, self._default_ns)
        # Document keys are not namespaced; another namespace owns this one
        if thing.ns != entity.ns:
            return None
        return thing

    async def get_by_id(self, ns: str, type: str, id: str) -> Thing | None:
        return await self.get(entity_url(ns, type, id))

    # -- Mutations --

    async def _write(
        self,
        url: str,
        entity: EntityId,
        data: dict[str, Any],
        created_at: datetime | None,
        context: str | dict[str, Any] | None,
    ) -> Thing:
        now = utcnow()
        thing = Thing(
            ns=entity.ns,
            type=entity.type,
            id=entity.id,
            url=url,
            created_at=created_at or now,
            updated_at=now,
            data=data,
            context=context,
        )
        await self._db.set(doc_id_for(entity), thing_to_document(thing))
        return thing

    async def set(self, url: str, data: dict[str, Any]) -> Thing:
        """Replace a thing's data, creating the thing if needed.

        Raises:
            AlreadyExistsError: If the document key is bound to the same
                type and id in another namespace.
        """
        entity = parse_url(url)
        doc_id = doc_id_for(entity)
        existing = await self._db.get(doc_id)
        created_at: datetime | None = None
        context = None
        if existing is not None:
            previous = doc_to_thing(doc_id, existing, self._default_ns)
            if previous.ns != entity.ns:
                raise AlreadyExistsError(url)
            created_at = previous.created_at
            context = previous.context
        return await self._write(url, entity, dict(data), created_at, context)

    async def create(self, options: CreateOptions) -> Thing:
        entity = create_target(options, self._default_ns)
        url = entity_url(entity.ns, entity.type, entity.id)

        if await self._db.get(doc_id_for(entity)) is not None:
            raise AlreadyExistsError(url)

        data = dict(options.data)
        thing = await self._write(url, entity, data, None, options.context)
        logger.debug("thing_created", extra={"thing.url": url})
        return thing

    async def update(self, url: str, data: dict[str, Any]) -> Thing:
        existing = await self.get(url)
        if not existing:
            raise NotFoundError(url)
        merged = {**existing.data, **data}
        return await self._write(
            url, parse_url(url), merged, existing.created_at, existing.context
        )

    async def upsert(self, options: CreateOptions) -> Thing:
        entity = create_target(options, self._default_ns)
        url = entity_url(entity.ns, entity.type, entity.id)

        if await self.get(url):
            return await self.update(url, options.data)
        return await self.create(
            CreateOptions(
                type=entity.type,
                data=options.data,
                ns=entity.ns,
                id=entity.id,
                context=options.context,
            )
        )

    async def delete(self, url: str) -> bool:
        """Delete a thing document and every relationship document touching it."""
        if await self.get(url) is None:
            return False
        result = await self._db.delete(doc_id_for(parse_url(url)))

        removed = 0
        for rel in await self._scan_relationships():
            if rel.from_ == url or rel.to == url:
                await self._db.delete(f"{REL_PREFIX}{rel.id}")
                removed += 1

        logger.debug(
            "thing_deleted",
            extra={"thing.url": url, "relationships.removed": removed},
        )
        return result.deleted

    async def for_each(self, options: QueryOptions, callback: ThingCallback) -> None:
        things = await self.list(options)
        for thing in things:
            result = callback(thing)
            if inspect.isawaitable(result):
                await result

    # -- Relationships --

    async def relate(self, options: RelateOptions) -> Relationship:
        rel = Relationship(
            id=relationship_id(options.from_, options.type, options.to),
            type=options.type,
            from_=options.from_,
            to=options.to,
            created_at=utcnow(),
            data=options.data or None,
        )
        await self._db.set(f"{REL_PREFIX}{rel.id}", relationship_to_document(rel))
        return rel

    async def unrelate(self, from_: str, type: str, to: str) -> bool:
        rel_id = relationship_id(from_, type, to)
        result = await self._db.delete(f"{REL_PREFIX}{rel_id}")
        return result.deleted

    async def related(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "from",
    ) -> list[Thing]:
        rels = await self._scan_relationships()
        if type:
            rels = [r for r in rels if r.type == type]

        neighbours: list[str] = []
        if direction in ("from", "both"):
            neighbours.extend(r.to for r in rels if r.from_ == url)
        if direction in ("to", "both"):
            neighbours.extend(r.from_ for r in rels if r.to == url)

        things: list[Thing] = []
        seen: set[str] = set()
        for neighbour in neighbours:
            if neighbour in seen:
                continue
            thing = await self.get(neighbour)
            if thing:
                things.append(thing)
                seen.add(neighbour)
        return things

    async def relationships(
        self,
        url: str,
        type: str | None = None,
        direction: Direction = "both",
    ) -> list[Relationship]:
        results: list[Relationship] = []
        for rel in await self._scan_relationships():
            if type and rel.type != type:
                continue
            is_from = rel.from_ == url
            is_to = rel.to == url
            if (
                (direction == "from" and is_from)
                or (direction == "to" and is_to)
                or (direction == "both" and (is_from or is_to))
            ):
                results.append(rel)
        return results

    async def references(self, url: str, type: str | None = None) -> list[Thing]:
        return await self.related(url, type, "to")

    async def close(self) -> None:
        """Close the wrapped backend if it supports closing."""
        close = getattr(self._db, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


def create_db_client(database: Database, ns: str | None = None) -> DocumentDBClient:
    """Create a graph client from an existing document database.

    Example:
        docs = FileDatabase(Path("./content"))
        db = create_db_client(docs, ns="example.com")
        post = await db.create(CreateOptions(type="Post", data={"title": "Hello"}))
    """
    return DocumentDBClient(database, ns=ns)
