"""Removal planning over a loaded ledger.

The planner never touches disk and never raises for policy outcomes: a
target that is untracked, pre-existing or still needed ends up in the
plan as a warning or a keep reason, so one call reports on every target.
The safety level only affects ``validate_plan``; the remove/keep
decisions are the same at every level.
"""

import logging

from toolkeep.bundles import BundleCatalog
from toolkeep.manifest import InstallMethod, Tracker, bundle_key

from .models import (
    DependencyAction,
    DependencyFate,
    KeepReason,
    RemovalAction,
    RemovalMethod,
    RemovalOptions,
    RemovalPlan,
    RemovalSummary,
    SafetyLevel,
    SafetyWarning,
    WarningLevel,
    describe_removal_method,
    get_removal_method,
)

_logging = logging.getLogger(__name__)

BUNDLE_NAME_SUFFIXES = ("_bundle", "-bundle")


class RemovalPlanner:
    def __init__(
        self,
        tracker: Tracker,
        safety_level: SafetyLevel = SafetyLevel.STANDARD,
        catalog: BundleCatalog | None = None,
    ):
        self.tracker = tracker
        self.safety_level = safety_level
        self.catalog = catalog

    def plan_removal(
        self, targets: list[str], options: RemovalOptions | None = None
    ) -> RemovalPlan:
        """Analyze targets and build a non-destructive removal plan."""
        options = options or RemovalOptions()
        plan = RemovalPlan()
        analyzed: set[str] = set()

        requested = list(dict.fromkeys(targets))
        leaving = self._leaving_bundles(requested)
        for target in requested:
            self._analyze_target(target, plan, options, analyzed, leaving)

        self._analyze_dependencies(plan, options)
        plan.summary = self._summarize(plan, len(requested))
        _logging.debug(
            f"Planned removal of {requested}: "
            f"{plan.summary.will_remove} remove, {plan.summary.will_keep} keep"
        )
        return plan

    def _resolve_bundle_key(self, target: str) -> str:
        """Map a catalog bundle name to the key it is tracked under."""
        if self.tracker.is_installed(target):
            return target
        if self.catalog is not None and self.catalog.is_bundle(target):
            key = bundle_key(target)
            if self.tracker.is_installed(key):
                return key
        return target

    def _is_bundle(self, target: str) -> bool:
        record = self.tracker.get_installation(target)
        if record is not None and record.method == InstallMethod.BUNDLE:
            return True
        if target.endswith(BUNDLE_NAME_SUFFIXES):
            return True
        return self._resolve_bundle_key(target) != target

    def _leaving_bundles(self, targets: list[str]) -> set[str]:
        """Keys of the tracked bundle records this request removes.

        Members never count these as blockers, wherever the member
        appears in the target list.
        """
        leaving = set()
        for target in targets:
            if not self._is_bundle(target):
                continue
            key = self._resolve_bundle_key(target)
            record = self.tracker.get_installation(key)
            if record is not None and record.method == InstallMethod.BUNDLE:
                leaving.add(key)
        return leaving

    def _analyze_target(
        self,
        target: str,
        plan: RemovalPlan,
        options: RemovalOptions,
        analyzed: set[str],
        leaving: set[str],
        reason: str = "User requested removal",
    ) -> None:
        if target in analyzed:
            return
        analyzed.add(target)

        if self._is_bundle(target):
            self._analyze_bundle_target(target, plan, options, analyzed, leaving)
            return

        record = self.tracker.get_installation(target)
        if record is None:
            plan.warnings.append(
                SafetyWarning(
                    target=target,
                    level=WarningLevel.INFO,
                    message="Tool is not tracked by toolkeep - may not be installed or is pre-existing",
                )
            )
            return

        if record.is_pre_existing:
            plan.to_keep.append(
                KeepReason(
                    target=target,
                    reasons=["Tool was pre-existing before toolkeep installation"],
                )
            )
            return

        safe, reasons = self.tracker.can_safely_remove(target)
        if not safe:
            # Bundle records own no files; one leaving the ledger in this
            # plan no longer holds its members in place.
            blockers = [
                b for b in self.tracker.get_blockers(target) if b not in leaving
            ]
            if not blockers:
                safe, reasons = True, []
            else:
                reasons = [f"Required by other tools: {', '.join(blockers)}"]

        if not safe and not options.force:
            plan.to_keep.append(KeepReason(target=target, reasons=reasons))
            return

        if not safe:
            plan.warnings.append(
                SafetyWarning(
                    target=target,
                    level=WarningLevel.WARNING,
                    message="Forcing removal despite dependencies: " + ", ".join(reasons),
                )
            )

        paths = list(record.binary_paths)
        if record.build_dir:
            paths.append(record.build_dir)
        if options.remove_config and record.config_files:
            paths.extend(record.config_files)

        plan.to_remove.append(
            RemovalAction(
                target=target,
                method=get_removal_method(record.method),
                paths=paths,
                dependencies=list(record.dependencies),
                is_safe=safe,
                reason=reason,
            )
        )

    def _analyze_bundle_target(
        self,
        target: str,
        plan: RemovalPlan,
        options: RemovalOptions,
        analyzed: set[str],
        leaving: set[str],
    ) -> None:
        key = self._resolve_bundle_key(target)
        analyzed.add(key)

        record = self.tracker.get_installation(key)
        if record is None:
            plan.warnings.append(
                SafetyWarning(
                    target=target,
                    level=WarningLevel.INFO,
                    message="Bundle is not tracked by toolkeep",
                )
            )
            return

        if record.method != InstallMethod.BUNDLE:
            plan.warnings.append(
                SafetyWarning(
                    target=target,
                    level=WarningLevel.WARNING,
                    message="Target is not a bundle",
                )
            )
            return

        plan.to_remove.append(
            RemovalAction(
                target=key,
                method=RemovalMethod.BUNDLE_REMOVE,
                paths=[],
                dependencies=list(record.dependencies),
                is_safe=True,
                reason="User requested bundle removal",
            )
        )

        if options.remove_bundle_contents:
            for tool in record.dependencies:
                self._analyze_target(
                    tool,
                    plan,
                    options,
                    analyzed,
                    leaving,
                    reason=f"Removed with bundle {key}",
                )
        elif record.dependencies:
            plan.warnings.append(
                SafetyWarning(
                    target=key,
                    level=WarningLevel.INFO,
                    message=(
                        f"Bundle contains {len(record.dependencies)} tools that will "
                        f"remain installed: {', '.join(record.dependencies)}"
                    ),
                )
            )

    def _analyze_dependencies(self, plan: RemovalPlan, options: RemovalOptions) -> None:
        removing = set(plan.removal_targets())
        usage: dict[str, list[str]] = {}
        for action in plan.to_remove:
            for dep in action.dependencies:
                if dep not in usage and self.tracker.ledger.get_dependency(dep):
                    usage[dep] = self.tracker.get_dependents(dep)

        for dependency, dependents in usage.items():
            remaining = [d for d in dependents if d not in removing]
            dep_record = self.tracker.ledger.get_dependency(dependency)
            installed = self.tracker.get_installation(dependency)

            if remaining:
                fate = DependencyFate.PRESERVE
                reason = f"Still needed by: {', '.join(remaining)}"
            elif dep_record.pre_existing or (installed and installed.is_pre_existing):
                fate = DependencyFate.PRESERVE
                reason = "Dependency was pre-existing before toolkeep - keeping"
            elif options.cascade:
                fate = DependencyFate.REMOVE
                reason = "No remaining dependents - removing with cascade"
            else:
                fate = DependencyFate.PRESERVE
                reason = "No remaining dependents but cascade not enabled - keeping"

            plan.dependencies.append(
                DependencyAction(
                    dependency=dependency,
                    action=fate,
                    reason=reason,
                    affected=list(dependents),
                )
            )

    def _summarize(self, plan: RemovalPlan, requested: int) -> RemovalSummary:
        summary = RemovalSummary(
            total_requested=requested,
            will_remove=len(plan.to_remove),
            will_keep=len(plan.to_keep),
            warning_count=len(plan.warnings),
        )
        for action in plan.to_remove:
            key = action.method.value
            summary.method_breakdown[key] = summary.method_breakdown.get(key, 0) + 1
        for dep in plan.dependencies:
            key = dep.action.value
            summary.dependency_actions[key] = summary.dependency_actions.get(key, 0) + 1
        return summary

    def validate_plan(self, plan: RemovalPlan) -> list[SafetyWarning]:
        """Advisory checks on a plan. The plan itself is left unchanged."""
        warnings = []

        for action in plan.to_remove:
            if not action.is_safe:
                warnings.append(
                    SafetyWarning(
                        target=action.target,
                        level=WarningLevel.ERROR,
                        message="Forced removal may break other tools",
                    )
                )

        for dep in plan.dependencies:
            if dep.action != DependencyFate.PRESERVE and len(dep.affected) > 1:
                warnings.append(
                    SafetyWarning(
                        target=dep.dependency,
                        level=WarningLevel.WARNING,
                        message=f"Removing shared dependency used by {len(dep.affected)} tools",
                    )
                )

        if self.safety_level == SafetyLevel.CONSERVATIVE:
            for action in plan.to_remove:
                warnings.append(
                    SafetyWarning(
                        target=action.target,
                        level=WarningLevel.INFO,
                        message="Conservative mode: double-check removal is necessary",
                    )
                )
        elif self.safety_level == SafetyLevel.AGGRESSIVE:
            if plan.summary.will_keep > plan.summary.will_remove:
                warnings.append(
                    SafetyWarning(
                        target="general",
                        level=WarningLevel.INFO,
                        message="Aggressive mode: consider using --force to remove more tools",
                    )
                )

        return warnings


_LEVEL_ICONS = {
    WarningLevel.INFO: "ℹ️ ",
    WarningLevel.WARNING: "⚠️ ",
    WarningLevel.ERROR: "❌",
}


def _render_warnings(warnings: list[SafetyWarning]) -> list[str]:
    return [
        f"  {_LEVEL_ICONS[w.level]} {w.target}: {w.message}" for w in warnings
    ]


def render_removal_plan(plan: RemovalPlan) -> str:
    lines = ["Removal Plan", ""]

    if plan.to_remove:
        lines.append(f"Tools to be removed ({len(plan.to_remove)}):")
        for action in plan.to_remove:
            safety = "🟢" if action.is_safe else "🔴"
            lines.append(
                f"  {safety} {action.target:<15} ({action.method.value}) - {action.reason}"
            )
            for path in action.paths:
                lines.append(f"     {path}")
        lines.append("")

    if plan.to_keep:
        lines.append(f"Tools to be kept ({len(plan.to_keep)}):")
        for keep in plan.to_keep:
            lines.append(f"  {keep.target:<15} - {', '.join(keep.reasons)}")
        lines.append("")

    if plan.dependencies:
        lines.append("Dependency actions:")
        for dep in plan.dependencies:
            lines.append(f"  {dep.dependency:<15} {dep.action.value} - {dep.reason}")
        lines.append("")

    if plan.warnings:
        lines.append(f"Warnings ({len(plan.warnings)}):")
        lines.extend(_render_warnings(plan.warnings))
        lines.append("")

    lines.append("Summary:")
    lines.append(f"  Total requested: {plan.summary.total_requested}")
    lines.append(f"  Will remove: {plan.summary.will_remove}")
    lines.append(f"  Will keep: {plan.summary.will_keep}")
    lines.append(f"  Warnings: {plan.summary.warning_count}")

    if plan.summary.method_breakdown:
        lines.append("")
        lines.append("Removal methods:")
        for method, count in plan.summary.method_breakdown.items():
            description = describe_removal_method(RemovalMethod(method))
            lines.append(f"  {method:<20} {count} - {description}")

    return "\n".join(lines)


def render_validation(warnings: list[SafetyWarning]) -> str:
    if not warnings:
        return "Validation: no issues found"
    return "\n".join(["Validation Results:", *_render_warnings(warnings)])


__all__ = [
    "RemovalPlanner",
    "render_removal_plan",
    "render_validation",
]
