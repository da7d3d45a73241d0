"""Main CLI application.

Inspects a file-backed store through the graph adapter. The store root
comes from ``--root`` or the loaded configuration.
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any

import typer

from docgraph.adapter import REL_TYPE, DocumentDBClient
from docgraph.cli.console import console, create_table, dim, error
from docgraph.config import ConfigError, create_file_client, load_config
from docgraph.errors import GraphError
from docgraph.logging import configure_logging
from docgraph.protocols import ListOptions
from docgraph.types import Direction, QueryOptions, SearchOptions, SortOrder, Thing

app = typer.Typer(
    name="docgraph",
    help="docgraph - inspect Things and Relationships in a document store",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to configuration file"),
]
RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Root directory of the file store"),
]
NsOption = Annotated[
    str | None,
    typer.Option("--ns", help="Namespace filter / default namespace"),
]
TypeOption = Annotated[
    str | None,
    typer.Option("--type", "-t", help="Filter by thing type"),
]
LimitOption = Annotated[
    int | None,
    typer.Option("--limit", "-n", help="Maximum results to show"),
]


def _open_client(
    config_path: Path | None, root: Path | None, ns: str | None
) -> DocumentDBClient:
    config = load_config(config_path)
    configure_logging(config.log_level)
    if root is not None:
        config = config.model_copy(update={"root": root})
    if ns:
        config = config.model_copy(update={"ns": ns})
    return create_file_client(config)


def _run(
    config_path: Path | None,
    root: Path | None,
    ns: str | None,
    action: Callable[[DocumentDBClient], Awaitable[None]],
) -> None:
    """Open the store, run an async action, and map errors to exit codes."""

    async def _main() -> None:
        client = _open_client(config_path, root, ns)
        try:
            await action(client)
        finally:
            await client.close()

    try:
        asyncio.run(_main())
    except (GraphError, ConfigError, FileNotFoundError) as e:
        error(str(e))
        raise typer.Exit(1) from None


def _parse_where(pairs: list[str] | None) -> dict[str, Any] | None:
    """Parse ``key=value`` pairs; values are JSON when they parse as JSON."""
    if not pairs:
        return None
    where: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {pair!r}")
        try:
            where[key] = json.loads(raw)
        except json.JSONDecodeError:
            where[key] = raw
    return where


def _print_things(title: str, things: list[Thing]) -> None:
    if not things:
        dim("No things found.")
        return

    table = create_table(
        f"{title} ({len(things)})",
        [
            ("Type", "cyan"),
            ("ID", "bold"),
            ("Namespace", "dim"),
            ("Updated", "dim"),
        ],
    )
    for thing in things:
        table.add_row(
            thing.type,
            thing.id,
            thing.ns,
            thing.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command("list")
def list_things(
    type: TypeOption = None,
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Exact match on a data field (key=value)"),
    ] = None,
    order_by: Annotated[
        str | None,
        typer.Option("--order-by", help="Field to sort by"),
    ] = None,
    desc: Annotated[
        bool,
        typer.Option("--desc", help="Sort descending"),
    ] = False,
    limit: LimitOption = None,
    offset: Annotated[
        int | None,
        typer.Option("--offset", help="Skip this many results"),
    ] = None,
    ns: NsOption = None,
    root: RootOption = None,
    config_path: ConfigOption = None,
) -> None:
    """List things, optionally filtered and sorted."""
    order: SortOrder = "desc" if desc else "asc"
    options = QueryOptions(
        ns=ns,
        type=type,
        where=_parse_where(where),
        order_by=order_by,
        order=order,
        limit=limit,
        offset=offset,
    )

    async def action(client: DocumentDBClient) -> None:
        _print_things("Things", await client.list(options))

    _run(config_path, root, ns, action)


@app.command()
def get(
    url: Annotated[str, typer.Argument(help="Canonical URL of the thing")],
    root: RootOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Show one thing as JSON."""

    async def action(client: DocumentDBClient) -> None:
        thing = await client.get(url)
        if thing is None:
            error(f"Not found: {url}")
            raise typer.Exit(1)
        console.print_json(data=thing.to_dict())

    _run(config_path, root, None, action)


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Text to search for")],
    type: TypeOption = None,
    limit: LimitOption = None,
    ns: NsOption = None,
    root: RootOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Search things by text."""
    options = SearchOptions(query=query, type=type, ns=ns, limit=limit)

    async def action(client: DocumentDBClient) -> None:
        _print_things(f"Results for {query!r}", await client.search(options))

    _run(config_path, root, ns, action)


@app.command()
def related(
    url: Annotated[str, typer.Argument(help="Canonical URL of the thing")],
    type: Annotated[
        str | None,
        typer.Option("--type", "-t", help="Relationship type"),
    ] = None,
    direction: Annotated[
        str,
        typer.Option("--direction", "-d", help="from, to or both"),
    ] = "from",
    root: RootOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Show things connected to a thing."""
    if direction not in ("from", "to", "both"):
        error(f"Unknown direction: {direction}")
        console.print("Valid directions: from, to, both")
        raise typer.Exit(1)
    resolved: Direction = direction  # type: ignore[assignment]

    async def action(client: DocumentDBClient) -> None:
        _print_things("Related", await client.related(url, type, resolved))

    _run(config_path, root, None, action)


@app.command()
def stats(
    root: RootOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Show thing counts per type and the relationship count."""

    async def action(client: DocumentDBClient) -> None:
        things = await client.list()
        edges = await client.database.list(ListOptions(type=REL_TYPE, limit=0))
        counts = Counter(f"{t.ns}:{t.type}" for t in things)

        table = create_table(
            "Store",
            [("Kind", "cyan"), ("Count", {"justify": "right"})],
        )
        for key, count in sorted(counts.items()):
            table.add_row(key, str(count))
        table.add_row("things", str(len(things)), style="bold")
        table.add_row("relationships", str(edges.total), style="bold")
        console.print(table)

    _run(config_path, root, None, action)
