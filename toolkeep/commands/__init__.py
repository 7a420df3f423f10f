"""CLI command definitions for toolkeep."""

from pathlib import Path

import click

from toolkeep import __version__, setup_logging
from toolkeep.commands.backup import backup, list_backups, restore
from toolkeep.commands.bundle import bundle
from toolkeep.commands.query import (
    can_remove,
    dependents,
    detect,
    is_tracked,
    show,
    status,
)
from toolkeep.commands.track import track, track_bundle, track_preexisting, untrack
from toolkeep.commands.uninstall import uninstall


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="State directory holding the ledger (default: $TOOLKEEP_HOME or ~/.toolkeep)",
)
@click.version_option(__version__, prog_name="toolkeep")
@click.pass_context
def cli(ctx, debug: bool, home: Path | None):
    """Track installed CLI tools and plan their safe removal."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["home"] = home
    setup_logging(debug)


# Register all commands
cli.add_command(track)
cli.add_command(track_bundle)
cli.add_command(track_preexisting)
cli.add_command(untrack)
cli.add_command(status)
cli.add_command(is_tracked)
cli.add_command(show)
cli.add_command(dependents)
cli.add_command(can_remove)
cli.add_command(detect)
cli.add_command(uninstall)
cli.add_command(backup)
cli.add_command(list_backups)
cli.add_command(restore)
cli.add_command(bundle)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
