"""Uninstall planning command implementation."""

import json
import logging
from pathlib import Path

import click

from toolkeep.config import ConfigError
from toolkeep.errors import ToolkeepError
from toolkeep.removal import (
    DependencyFate,
    RemovalOptions,
    RemovalPlanner,
    SafetyLevel,
    render_removal_plan,
    render_validation,
)
from toolkeep.commands.utils import fail, open_catalog, open_tracker

_logging = logging.getLogger(__name__)

DEFAULT_BACKUP_SUFFIX = "pre-uninstall"


@click.command()
@click.argument("targets", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Remove even if other tools depend on the target")
@click.option("--cascade", is_flag=True, help="Also remove dependencies nothing else uses")
@click.option("--remove-config", is_flag=True, help="Include tracked config files")
@click.option(
    "--bundle-contents",
    is_flag=True,
    help="Remove the tools in a bundle, not just the bundle record",
)
@click.option(
    "--safety",
    type=click.Choice([level.value for level in SafetyLevel]),
    default=SafetyLevel.STANDARD.value,
    show_default=True,
    help="How cautious plan validation should be",
)
@click.option(
    "--catalog",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Bundle catalog used to recognize bundle names",
)
@click.option("--json", "as_json", is_flag=True, help="Print the plan as JSON")
@click.option(
    "--commit",
    is_flag=True,
    help="Drop planned removals from the ledger (files are not touched)",
)
@click.option("--backup/--no-backup", default=True, help="Snapshot the ledger before --commit")
@click.option("--backup-suffix", default=DEFAULT_BACKUP_SUFFIX, help="Suffix for the snapshot name")
@click.pass_context
def uninstall(
    ctx,
    targets: tuple[str, ...],
    force: bool,
    cascade: bool,
    remove_config: bool,
    bundle_contents: bool,
    safety: str,
    catalog: Path | None,
    as_json: bool,
    commit: bool,
    backup: bool,
    backup_suffix: str,
):
    """Plan the safe removal of tools and bundles.

    Without --commit nothing changes: the plan shows what would be removed,
    what is kept and why, and what happens to shared dependencies.
    """
    options = RemovalOptions(
        force=force,
        cascade=cascade,
        remove_config=remove_config,
        remove_bundle_contents=bundle_contents,
        dry_run=not commit,
        backup=backup,
        backup_suffix=backup_suffix,
    )

    try:
        tracker = open_tracker(ctx)
        bundle_catalog = open_catalog(ctx, catalog)
    except (ToolkeepError, ConfigError) as e:
        fail(str(e))

    planner = RemovalPlanner(tracker, SafetyLevel(safety), bundle_catalog)
    plan = planner.plan_removal(list(targets), options)
    validation = planner.validate_plan(plan)

    if as_json:
        payload = {
            "plan": plan.to_dict(),
            "validation": [
                {"target": w.target, "level": w.level.value, "message": w.message}
                for w in validation
            ],
        }
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(render_removal_plan(plan))
        click.echo("")
        click.echo(render_validation(validation))

    if not commit:
        return

    try:
        if options.backup:
            name = tracker.create_snapshot(options.backup_suffix)
            if name:
                click.echo(f"📋 Ledger snapshot: {name}")
        for action in plan.to_remove:
            tracker.untrack(action.target)
            _logging.debug(f"Committed removal of {action.target}")
        for dep in plan.dependencies:
            if dep.action == DependencyFate.REMOVE:
                tracker.remove_dependency(dep.dependency)
    except ToolkeepError as e:
        fail(str(e))

    click.echo(f"✅ Removed {len(plan.to_remove)} entries from the ledger")
