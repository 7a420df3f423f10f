"""Read-only ledger queries."""

import json
import sys

import click

from toolkeep.errors import NotTrackedError, ToolkeepError
from toolkeep.commands.utils import fail, get_store, open_tracker


@click.command()
@click.pass_context
def status(ctx):
    """Show what the ledger tracks, grouped by install method."""
    try:
        store = get_store(ctx)
        tracker = open_tracker(ctx)
    except ToolkeepError as e:
        fail(str(e))

    stats = tracker.get_installation_stats()
    click.echo(f"Manifest: {store.path}")
    click.echo(f"Tracked: {stats['total']} ({stats['tools']} tools, {stats['bundles']} bundles)")

    methods = {
        k: v for k, v in stats.items() if k not in ("total", "tools", "bundles")
    }
    for method, count in sorted(methods.items()):
        click.echo(f"  {method:<16} {count}")

    deps = tracker.ledger.dependencies
    if deps:
        click.echo(f"Dependencies: {len(deps)}")
        for name, dep in sorted(deps.items()):
            dependents = ", ".join(dep.dependents) or "none (cleanup eligible)"
            click.echo(f"  {name:<16} used by {dependents}")


@click.command(name="is-tracked")
@click.argument("name")
@click.pass_context
def is_tracked(ctx, name: str):
    """Exit 0 if NAME is tracked, 1 otherwise."""
    try:
        tracker = open_tracker(ctx)
    except ToolkeepError as e:
        fail(str(e))

    if tracker.is_installed(name):
        click.echo(f"{name} is tracked")
        return
    click.echo(f"{name} is not tracked")
    sys.exit(1)


@click.command()
@click.argument("name")
@click.pass_context
def show(ctx, name: str):
    """Print the ledger record for NAME as JSON."""
    try:
        tracker = open_tracker(ctx)
    except ToolkeepError as e:
        fail(str(e))

    record = tracker.get_installation(name)
    if record is None:
        fail(str(NotTrackedError(name)), "run 'toolkeep status' to see tracked tools")
    click.echo(json.dumps(record.to_dict(), indent=2))


@click.command()
@click.argument("dependency")
@click.pass_context
def dependents(ctx, dependency: str):
    """List tools that use DEPENDENCY."""
    try:
        tracker = open_tracker(ctx)
    except ToolkeepError as e:
        fail(str(e))

    names = tracker.get_dependents(dependency)
    if not names:
        click.echo(f"No tracked tools depend on {dependency}")
        return
    for name in names:
        click.echo(name)


@click.command(name="can-remove")
@click.argument("name")
@click.pass_context
def can_remove(ctx, name: str):
    """Check whether NAME can be removed without breaking other tools."""
    try:
        tracker = open_tracker(ctx)
        safe, reasons = tracker.can_safely_remove(name)
    except ToolkeepError as e:
        fail(str(e))

    if safe:
        click.secho(f"✅ {name} can be safely removed", fg="green")
        return
    click.secho(f"❌ {name} cannot be safely removed", fg="red")
    for reason in reasons:
        click.echo(f"   • {reason}")
    sys.exit(1)


@click.command()
@click.argument("name")
@click.option("--binary", default=None, help="Binary name to look for (defaults to NAME)")
@click.option(
    "--record",
    "record_version",
    default=None,
    metavar="VERSION",
    help="Track the tool as pre-existing with this version if detected",
)
@click.pass_context
def detect(ctx, name: str, binary: str | None, record_version: str | None):
    """Detect whether NAME is installed outside toolkeep's knowledge."""
    try:
        tracker = open_tracker(ctx)
        found, path = tracker.detect_pre_existing(name, binary)
        if not found:
            click.echo(f"{name}: not pre-existing")
            return
        click.echo(f"{name}: pre-existing at {path}")
        if record_version is not None:
            tracker.track_pre_existing(name, path, record_version)
            click.echo(f"✅ Tracked pre-existing {name}")
    except ToolkeepError as e:
        fail(str(e))
