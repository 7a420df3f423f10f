"""Shared helpers for commands."""

import sys
from pathlib import Path

import click

from toolkeep.bundles import BundleCatalog, load_catalog
from toolkeep.errors import format_error, format_suggestion
from toolkeep.manifest import FileLedgerStore, Tracker
from toolkeep.paths import get_catalog_path


def get_store(ctx: click.Context) -> FileLedgerStore:
    return FileLedgerStore.from_home(ctx.obj.get("home"))


def open_tracker(ctx: click.Context) -> Tracker:
    """Load the ledger for the state directory selected on the command line."""
    return Tracker(get_store(ctx))


def open_catalog(ctx: click.Context, path: Path | None = None) -> BundleCatalog:
    return load_catalog(path or get_catalog_path(ctx.obj.get("home")))


def fail(message: str, hint: str | None = None) -> None:
    """Print an error to stderr and exit with status 1."""
    if hint:
        click.echo(format_suggestion(message, hint), err=True)
    else:
        click.echo(format_error(message), err=True)
    sys.exit(1)
