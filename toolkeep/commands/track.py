"""Tracking command implementations."""

import click

from toolkeep.errors import AlreadyTrackedError, ToolkeepError
from toolkeep.manifest import InstallMethod, TrackingConfig
from toolkeep.commands.utils import fail, open_tracker

TRACKABLE_METHODS = [
    m.value
    for m in InstallMethod
    if m not in (InstallMethod.BUNDLE, InstallMethod.PRE_EXISTING)
]


@click.command()
@click.argument("name")
@click.option(
    "--method",
    "-m",
    required=True,
    type=click.Choice(TRACKABLE_METHODS),
    help="How the tool was installed",
)
@click.option("--version", "version", default="", help="Installed version")
@click.option("--binary", "binaries", multiple=True, help="Installed binary path (repeatable)")
@click.option("--build-dir", default="", help="Build directory kept for the tool")
@click.option("--source-repo", default="", help="Source repository the tool was built from")
@click.option(
    "--dependency", "-d", "dependencies", multiple=True,
    help="Shared dependency the tool needs (repeatable)",
)
@click.option("--bundle", default="", help="Bundle that installed the tool")
@click.option(
    "--implicit",
    is_flag=True,
    help="Installed as a dependency rather than at the user's request",
)
@click.option("--context", "contexts", multiple=True, help="Context tag (repeatable)")
@click.option("--config-file", "config_files", multiple=True, help="Config file path (repeatable)")
@click.option(
    "--system-package", "system_packages", multiple=True,
    help="System package installed alongside (repeatable)",
)
@click.pass_context
def track(
    ctx,
    name: str,
    method: str,
    version: str,
    binaries: tuple[str, ...],
    build_dir: str,
    source_repo: str,
    dependencies: tuple[str, ...],
    bundle: str,
    implicit: bool,
    contexts: tuple[str, ...],
    config_files: tuple[str, ...],
    system_packages: tuple[str, ...],
):
    """Record a tool installation in the ledger."""
    config = TrackingConfig(
        method=InstallMethod(method),
        version=version,
        binary_paths=list(binaries),
        build_dir=build_dir,
        source_repo=source_repo,
        dependencies=list(dependencies),
        installed_by_bundle=bundle,
        user_requested=not implicit,
        installation_context=list(contexts),
        config_files=list(config_files),
        system_packages=list(system_packages),
    )
    try:
        tracker = open_tracker(ctx)
        tracker.track_installation(name, config)
    except AlreadyTrackedError as e:
        fail(str(e), f"run 'toolkeep untrack {name}' first to re-record it")
    except ToolkeepError as e:
        fail(str(e))

    click.echo(f"✅ Tracked {name} ({method})")


@click.command(name="track-bundle")
@click.argument("bundle_name")
@click.argument("tools", nargs=-1, required=True)
@click.option(
    "--implicit",
    is_flag=True,
    help="Bundle was pulled in by another bundle rather than requested",
)
@click.pass_context
def track_bundle(ctx, bundle_name: str, tools: tuple[str, ...], implicit: bool):
    """Record a bundle installation and the tools it contains."""
    try:
        tracker = open_tracker(ctx)
        tracker.track_bundle(bundle_name, list(tools), user_requested=not implicit)
    except ToolkeepError as e:
        fail(str(e))

    click.echo(f"✅ Tracked bundle {bundle_name} ({len(tools)} tools)")


@click.command(name="track-preexisting")
@click.argument("name")
@click.argument("binary_path")
@click.argument("version")
@click.pass_context
def track_preexisting(ctx, name: str, binary_path: str, version: str):
    """Record a tool that was present before toolkeep.

    Pre-existing tools are never proposed for removal.
    """
    try:
        tracker = open_tracker(ctx)
        tracker.track_pre_existing(name, binary_path, version)
    except ToolkeepError as e:
        fail(str(e))

    click.echo(f"✅ Tracked pre-existing {name} at {binary_path}")


@click.command()
@click.argument("name")
@click.pass_context
def untrack(ctx, name: str):
    """Drop a tool from the ledger without touching its files."""
    try:
        tracker = open_tracker(ctx)
        tracker.untrack(name)
    except ToolkeepError as e:
        fail(str(e))

    click.echo(f"✅ Untracked {name}")
