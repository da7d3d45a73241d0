"""Selection helpers shared by the bundled document backends."""

from __future__ import annotations

import functools
import json
from collections.abc import Iterable

from docgraph.protocols import (
    Document,
    DocumentSearchOptions,
    ListOptions,
    ListResult,
    SearchResult,
)
from docgraph.query import compare_values, paginate


def _type_matches(doc: Document, wanted: str | list[str] | None) -> bool:
    if not wanted:
        return True
    types = [wanted] if isinstance(wanted, str) else wanted
    doc_type = doc.type or doc.data.get("$type")
    return doc_type in types


def select_documents(
    documents: Iterable[Document], options: ListOptions | None = None
) -> ListResult:
    """Filter by type and id prefix, sort by a data field, then paginate."""
    options = options or ListOptions()
    docs = [
        d
        for d in documents
        if _type_matches(d, options.type)
        and (not options.prefix or (d.id or "").startswith(options.prefix))
    ]

    if options.sort_by:
        field = options.sort_by
        present = [d for d in docs if d.data.get(field) is not None]
        missing = [d for d in docs if d.data.get(field) is None]
        key = functools.cmp_to_key(
            lambda a, b: compare_values(a.data[field], b.data[field])
        )
        present.sort(key=key, reverse=options.sort_order == "desc")
        docs = present + missing

    total = len(docs)
    page = paginate(docs, options.offset, options.limit)
    return ListResult(
        documents=page,
        total=total,
        has_more=options.offset + len(page) < total,
    )


def _field_text(doc: Document, field: str) -> str:
    if field == "content":
        return doc.content
    value = doc.data.get(field)
    if value is None:
        return ""
    return value if isinstance(value, str) else json.dumps(value, default=str)


def search_documents(
    documents: Iterable[Document], options: DocumentSearchOptions
) -> SearchResult:
    """Score documents by query occurrences in the searched fields.

    Without explicit ``fields`` the content and every data field are
    searched. Results are ordered by descending score.
    """
    needle = options.query.lower()
    scored: list[tuple[int, Document]] = []
    for doc in documents:
        if not _type_matches(doc, options.type):
            continue
        fields = options.fields or ["content", *doc.data.keys()]
        score = sum(_field_text(doc, f).lower().count(needle) for f in fields)
        if score > 0:
            scored.append((score, doc))

    # Stable: equal scores keep storage order
    scored.sort(key=lambda item: item[0], reverse=True)

    total = len(scored)
    page = paginate(scored, options.offset, options.limit)
    return SearchResult(
        documents=[doc for _, doc in page],
        total=total,
        has_more=options.offset + len(page) < total,
        scores={doc.id or "": float(score) for score, doc in page},
    )
