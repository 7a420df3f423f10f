"""Bundle catalog commands."""

from pathlib import Path

import click

from toolkeep.bundles import expand_bundle, expand_system_packages, render_bundle_info
from toolkeep.config import ConfigError
from toolkeep.errors import BundleError
from toolkeep.commands.utils import fail, open_catalog

catalog_option = click.option(
    "--catalog",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Bundle catalog file (JSON or YAML)",
)


@click.group()
def bundle():
    """Inspect bundles in the catalog."""
    pass


@bundle.command(name="list")
@catalog_option
@click.pass_context
def list_bundles(ctx, catalog: Path | None):
    """List bundles in the catalog."""
    try:
        bundle_catalog = open_catalog(ctx, catalog)
    except ConfigError as e:
        fail(str(e))

    if not bundle_catalog.bundles:
        click.echo("No bundles available.")
        return
    for name, entry in sorted(bundle_catalog.bundles.items()):
        click.echo(f"  • {name:<20} - {entry.description}")


@bundle.command()
@click.argument("name")
@click.option("--system-packages", is_flag=True, help="Expand system packages instead of tools")
@click.option("--manager", default=None, help="Package manager for system packages (apt, dnf, ...)")
@catalog_option
@click.pass_context
def expand(ctx, name: str, system_packages: bool, manager: str | None, catalog: Path | None):
    """Print the flattened tool (or system package) list for bundle NAME."""
    try:
        bundle_catalog = open_catalog(ctx, catalog)
        if system_packages:
            items = expand_system_packages(name, bundle_catalog, manager)
        else:
            items = expand_bundle(name, bundle_catalog)
    except (ConfigError, BundleError) as e:
        fail(str(e))

    for item in items:
        click.echo(item)


@bundle.command()
@click.argument("name")
@click.option("--manager", default=None, help="Package manager for system packages (apt, dnf, ...)")
@catalog_option
@click.pass_context
def show(ctx, name: str, manager: str | None, catalog: Path | None):
    """Show details of bundle NAME."""
    try:
        bundle_catalog = open_catalog(ctx, catalog)
        click.echo(render_bundle_info(name, bundle_catalog, manager))
    except (ConfigError, BundleError) as e:
        fail(str(e))
