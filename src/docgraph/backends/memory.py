"""In-memory document store."""

from __future__ import annotations

import logging

from docgraph.backends.base import search_documents, select_documents
from docgraph.protocols import (
    DeleteResult,
    Document,
    DocumentSearchOptions,
    ListOptions,
    ListResult,
    SearchResult,
    SetResult,
)

logger = logging.getLogger(__name__)


class MemoryDatabase:
    """``Database`` backed by a dict of documents, in insertion order."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self.closed = False

    async def list(self, options: ListOptions | None = None) -> ListResult:
        result = select_documents(self._documents.values(), options)
        result.documents = [d.model_copy(deep=True) for d in result.documents]
        return result

    async def search(self, options: DocumentSearchOptions) -> SearchResult:
        result = search_documents(self._documents.values(), options)
        result.documents = [d.model_copy(deep=True) for d in result.documents]
        return result

    async def get(self, id: str) -> Document | None:
        doc = self._documents.get(id)
        return doc.model_copy(deep=True) if doc else None

    async def set(self, id: str, document: Document) -> SetResult:
        created = id not in self._documents
        self._documents[id] = document.model_copy(update={"id": id}, deep=True)
        return SetResult(id=id, created=created)

    async def delete(self, id: str) -> DeleteResult:
        deleted = self._documents.pop(id, None) is not None
        return DeleteResult(id=id, deleted=deleted)

    async def close(self) -> None:
        self.closed = True

    def __len__(self) -> int:
        return len(self._documents)
