"""Filesystem document store.

Each document is one JSON file under the root directory. The document id
maps to a relative path: ``Post/hello`` is stored at ``Post/hello.json``.
Id segments are percent-encoded so any id yields a safe path.
Atomic writes use tempfile + replace.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

import aiofiles

from docgraph.backends.base import search_documents, select_documents
from docgraph.errors import DocumentDecodeError
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

SUFFIX = ".json"


def _encode_segment(segment: str) -> str:
    encoded = quote(segment, safe="")
    # Leading dots would make "." / ".." or hidden temp-file names
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


class FileDatabase:
    """``Database`` storing documents as JSON files under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.last_error_count: int = 0

    def id_to_path(self, id: str) -> Path:
        segments = id.split("/")
        if not id or any(not s for s in segments):
            raise ValueError(f"Invalid document id: {id!r}")
        *dirs, name = [_encode_segment(s) for s in segments]
        return self.root.joinpath(*dirs, name + SUFFIX)

    def path_to_id(self, path: Path) -> str:
        relative = path.relative_to(self.root).with_suffix("")
        return "/".join(unquote(part) for part in relative.parts)

    async def _read(self, path: Path) -> Document:
        async with aiofiles.open(path, encoding="utf-8") as f:
            raw = await f.read()
        doc = Document.from_dict(json.loads(raw))
        return doc.model_copy(update={"id": self.path_to_id(path)})

    async def _load_all(self) -> list[Document]:
        """Load every document, sorted by path.

        Malformed files are skipped with a warning. The count of skipped
        files is tracked in ``last_error_count`` for diagnostic tools.
        """
        documents: list[Document] = []
        error_count = 0
        for path in sorted(self.root.rglob(f"*{SUFFIX}")):
            if path.name.startswith("."):
                continue
            try:
                documents.append(await self._read(path))
            except Exception as e:
                error_count += 1
                logger.warning(
                    "malformed_document_file",
                    extra={"file.name": str(path), "error.message": str(e)},
                )

        self.last_error_count = error_count
        return documents

    async def list(self, options: ListOptions | None = None) -> ListResult:
        return select_documents(await self._load_all(), options)

    async def search(self, options: DocumentSearchOptions) -> SearchResult:
        return search_documents(await self._load_all(), options)

    async def get(self, id: str) -> Document | None:
        path = self.id_to_path(id)
        if not path.exists():
            return None
        try:
            return await self._read(path)
        except (ValueError, TypeError) as e:
            raise DocumentDecodeError(id, str(e)) from e

    async def set(self, id: str, document: Document) -> SetResult:
        """Atomically write a document (write to temp, then rename)."""
        path = self.id_to_path(id)
        created = not path.exists()
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = document.model_copy(update={"id": None}).to_dict()
        temp_fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.stem}_",
            suffix=".tmp",
        )
        try:
            async with aiofiles.open(temp_fd, "w", encoding="utf-8") as f:
                await f.write(json.dumps(payload, ensure_ascii=False, indent=2))
            Path(temp_path).replace(path)
        except Exception:
            # Clean up temp file on error
            try:
                Path(temp_path).unlink()
            except OSError:
                pass
            raise

        return SetResult(id=id, created=created)

    async def delete(self, id: str) -> DeleteResult:
        path = self.id_to_path(id)
        try:
            path.unlink()
        except FileNotFoundError:
            return DeleteResult(id=id, deleted=False)

        # Prune directories left empty by the delete
        parent = path.parent
        while parent != self.root and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

        return DeleteResult(id=id, deleted=True)

    async def close(self) -> None:
        """Nothing to release; files are closed after every operation."""
