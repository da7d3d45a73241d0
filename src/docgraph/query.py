"""Shared filter, sort and paginate pipeline.

Both graph clients materialize candidate things and run them through these
functions, so a given filter produces the same result on every backend:

1. predicate filtering by namespace, type and ``where`` equality
2. optional ordering by a single field, missing values last
3. offset, then limit
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from docgraph.types import (
    DEFAULT_SEARCH_FIELDS,
    QueryOptions,
    SearchOptions,
    SortOrder,
    Thing,
)

_MISSING = object()

# Thing attributes usable as sort keys, including camelCase spellings
_THING_ATTRS = {
    "ns": "ns",
    "type": "type",
    "id": "id",
    "url": "url",
    "created_at": "created_at",
    "createdAt": "created_at",
    "updated_at": "updated_at",
    "updatedAt": "updated_at",
}


def field_value(thing: Thing, name: str) -> Any:
    """Resolve a sort field: data first, then thing attributes."""
    value = thing.data.get(name)
    if value is None and name in _THING_ATTRS:
        value = getattr(thing, _THING_ATTRS[name])
    return value


def filter_things(
    things: Iterable[Thing],
    ns: str | None = None,
    type: str | None = None,
    where: dict[str, Any] | None = None,
) -> list[Thing]:
    results: list[Thing] = []
    for thing in things:
        if ns and thing.ns != ns:
            continue
        if type and thing.type != type:
            continue
        if where and any(
            thing.data.get(key, _MISSING) != value for key, value in where.items()
        ):
            continue
        results.append(thing)
    return results


def compare_values(a: Any, b: Any) -> int:
    """Three-way compare that tolerates mixed types."""
    try:
        if a < b:
            return -1
        if a > b:
            return 1
        return 0
    except TypeError:
        # Mixed types: order by type name, then textual form
        ka = (type(a).__name__, str(a))
        kb = (type(b).__name__, str(b))
        return (ka > kb) - (ka < kb)


def sort_things(
    things: Sequence[Thing],
    order_by: str | None,
    order: SortOrder = "asc",
) -> list[Thing]:
    """Order things by one field; things without a value go last either way.

    The sort is stable, so ties keep their incoming order.
    """
    if not order_by:
        return list(things)

    present: list[tuple[Any, Thing]] = []
    missing: list[Thing] = []
    for thing in things:
        value = field_value(thing, order_by)
        if value is None:
            missing.append(thing)
        else:
            present.append((value, thing))

    key = functools.cmp_to_key(lambda x, y: compare_values(x[0], y[0]))
    present.sort(key=key, reverse=order == "desc")
    return [thing for _, thing in present] + missing


T = TypeVar("T")


def paginate(items: Sequence[T], offset: int | None, limit: int | None) -> list[T]:
    start = max(offset or 0, 0)
    if limit is None:
        return list(items[start:])
    return list(items[start : start + max(limit, 0)])


def apply_query(things: Iterable[Thing], options: QueryOptions | None) -> list[Thing]:
    """Run the full filter → sort → paginate pipeline."""
    options = options or QueryOptions()
    results = filter_things(things, options.ns, options.type, options.where)
    results = sort_things(results, options.order_by, options.order)
    return paginate(results, options.offset, options.limit)


def matches_search(
    thing: Thing, query: str, fields: Sequence[str] | None = None
) -> bool:
    """Case-insensitive substring match against string fields and the id."""
    needle = query.lower()
    for name in fields or DEFAULT_SEARCH_FIELDS:
        value = thing.data.get(name)
        if isinstance(value, str) and needle in value.lower():
            return True
    return needle in thing.id.lower()


def apply_search(things: Iterable[Thing], options: SearchOptions) -> list[Thing]:
    matched = [t for t in things if matches_search(t, options.query, options.fields)]
    return apply_query(matched, options)
