"""Ledger backup and restore commands."""

import click

from toolkeep.errors import ToolkeepError
from toolkeep.commands.utils import fail, get_store


@click.command()
@click.option("--suffix", default="", help="Label appended to the backup name")
@click.pass_context
def backup(ctx, suffix: str):
    """Snapshot the ledger into the backup directory."""
    store = get_store(ctx)
    try:
        name = store.backup(suffix)
    except ToolkeepError as e:
        fail(str(e))

    if name is None:
        click.echo("No manifest to back up yet.")
        return
    click.echo(f"✅ Backup created: {name}")


@click.command(name="backups")
@click.pass_context
def list_backups(ctx):
    """List available ledger backups."""
    store = get_store(ctx)
    try:
        names = store.list_backups()
    except ToolkeepError as e:
        fail(str(e))

    if not names:
        click.echo("No backups found.")
        return
    for name in sorted(names):
        click.echo(name)


@click.command()
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def restore(ctx, name: str, yes: bool):
    """Replace the ledger with backup NAME.

    The current ledger is backed up first, so a restore can be undone.
    """
    store = get_store(ctx)
    if not yes and not click.confirm(f"Restore ledger from {name}?", default=False):
        click.echo("Restore cancelled.")
        return

    try:
        store.restore_backup(name)
    except ToolkeepError as e:
        fail(str(e), "run 'toolkeep backups' to see available backups")

    click.echo(f"✅ Restored ledger from {name}")
