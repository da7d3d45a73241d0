"""Error taxonomy for graph operations.

Absence is not an error: ``get``/``get_by_id`` return ``None``. The errors
below are reserved for operations that cannot proceed.
"""

from __future__ import annotations


class GraphError(Exception):
    """Graph operation error with stable error code."""

    code = "graph_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NamespaceRequiredError(GraphError):
    """No namespace in the options and no client default."""

    code = "namespace_required"

    def __init__(self) -> None:
        super().__init__("Namespace is required")


class AlreadyExistsError(GraphError):
    """A create targeted a URL that is already bound to a thing."""

    code = "already_exists"

    def __init__(self, url: str) -> None:
        super().__init__(f"Thing already exists: {url}")
        self.url = url


class NotFoundError(GraphError):
    """A mutation required an existing thing and there was none."""

    code = "not_found"

    def __init__(self, url: str) -> None:
        super().__init__(f"Thing not found: {url}")
        self.url = url


class MalformedAddressError(GraphError, ValueError):
    """An entity address lacks a host, type or id."""

    code = "malformed_address"

    def __init__(self, address: str, reason: str = "") -> None:
        message = f"Invalid entity URL: {address}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.address = address


class DocumentDecodeError(GraphError):
    """A stored document could not be translated into a thing or relationship."""

    code = "document_decode"

    def __init__(self, document_id: str, reason: str) -> None:
        super().__init__(f"Malformed document {document_id}: {reason}")
        self.document_id = document_id
