"""Command line interface."""

from docgraph.cli.app import app

__all__ = ["app"]
