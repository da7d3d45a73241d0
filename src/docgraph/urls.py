"""Canonical entity addressing.

Every thing is addressed by ``https://{ns}/{type}/{id}``. The URL is the only
identifier callers should persist; these helpers build, resolve and split it.
All functions are pure.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from docgraph.errors import MalformedAddressError, NamespaceRequiredError
from docgraph.identity import generate_id
from docgraph.types import CreateOptions, EntityId

DEFAULT_SCHEME = "https"


def entity_url(ns: str, type: str, id: str) -> str:
    """Build the canonical URL for a namespace/type/id triple."""
    return f"{DEFAULT_SCHEME}://{ns}/{type}/{id}"


def _is_absolute(ref: str) -> bool:
    return "://" in ref


def _split_base(base: str) -> tuple[str, str, str | None]:
    """Split a base address into (scheme, host, type).

    Accepts a bare namespace (``example.com``), a namespace URL
    (``https://example.com``) or a type URL (``https://example.com/User``).
    """
    if not _is_absolute(base):
        base = f"{DEFAULT_SCHEME}://{base}"
    parsed = urlsplit(base)
    if not parsed.netloc:
        raise MalformedAddressError(base, "base has no namespace")
    parts = [p for p in parsed.path.split("/") if p]
    type_ = parts[0] if parts else None
    return parsed.scheme or DEFAULT_SCHEME, parsed.netloc, type_


def resolve_url(ref: EntityId | str, base: str | None = None) -> str:
    """Resolve an entity or a relative reference to a full URL.

    Args:
        ref: An ``EntityId`` (its explicit ``url`` wins, otherwise the
            canonical form is built), an absolute URL (returned as-is),
            a ``type/id`` reference or a bare ``id``.
        base: Namespace or URL used to expand relative references. A bare
            id needs a base that carries a type.

    Raises:
        MalformedAddressError: If a relative reference cannot be expanded.
    """
    if isinstance(ref, EntityId):
        if ref.url:
            return ref.url
        return entity_url(ref.ns, ref.type, ref.id)

    if _is_absolute(ref):
        return ref

    if base is None:
        raise MalformedAddressError(ref, "relative reference without a base")

    scheme, host, base_type = _split_base(base)
    path = ref.strip("/")
    if not path:
        raise MalformedAddressError(ref, "empty reference")

    if "/" in path:
        return f"{scheme}://{host}/{path}"
    if base_type is None:
        raise MalformedAddressError(ref, "bare id needs a base with a type")
    return f"{scheme}://{host}/{base_type}/{path}"


def parse_url(url: str) -> EntityId:
    """Split a URL into its namespace, type and id.

    Ids may themselves contain slashes: everything after the type segment
    is the id.

    Raises:
        MalformedAddressError: If the URL has no host or fewer than two
            path segments.
    """
    parsed = urlsplit(url)
    if not parsed.netloc:
        raise MalformedAddressError(url, "missing namespace")

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise MalformedAddressError(url, "expected /{type}/{id}")

    return EntityId(
        ns=parsed.netloc,
        type=parts[0],
        id="/".join(parts[1:]),
        url=url,
    )


def create_target(options: CreateOptions, default_ns: str | None = None) -> EntityId:
    """Work out the address a create or upsert writes to.

    An explicit ``options.url`` may supply the namespace and id the options
    leave out, but it must be the canonical URL of the resulting triple.

    Raises:
        NamespaceRequiredError: If no namespace is given, implied by the
            URL or configured.
        MalformedAddressError: If ``options.url`` does not parse or is not
            the canonical URL for ``(ns, type, id)``.
    """
    given = parse_url(options.url) if options.url else None
    ns = options.ns or (given.ns if given else None) or default_ns
    if not ns:
        raise NamespaceRequiredError()
    id = options.id or (given.id if given else None) or generate_id()
    url = entity_url(ns, options.type, id)
    if options.url and options.url != url:
        raise MalformedAddressError(options.url, f"expected {url}")
    return EntityId(ns=ns, type=options.type, id=id, url=url)
