"""High-level tracking operations over the installation ledger.

The Tracker is the only component that mutates a ledger. Every mutation
is followed by a save through the store it was opened with; when that
save fails the in-memory ledger is put back as it was before the call.
"""

import copy
import logging
import shutil
from dataclasses import dataclass, field

from toolkeep.errors import AlreadyTrackedError, ManifestError, NotTrackedError

from .models import (
    BUNDLE_SUFFIX,
    INSTALLER_ID,
    PRE_EXISTING_CONTEXT,
    DependencyRecord,
    InstallationRecord,
    InstallMethod,
    Ledger,
    bundle_context,
    bundle_key,
    utcnow,
)
from .store import LedgerStore

_logging = logging.getLogger(__name__)


@dataclass
class TrackingConfig:
    method: InstallMethod
    version: str = ""
    binary_paths: list[str] = field(default_factory=list)
    build_dir: str = ""
    source_repo: str = ""
    dependencies: list[str] = field(default_factory=list)
    installed_by_bundle: str = ""
    user_requested: bool = True
    installation_context: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)
    system_packages: list[str] = field(default_factory=list)


class Tracker:
    def __init__(self, store: LedgerStore, ledger: Ledger | None = None):
        self.store = store
        self.ledger = ledger if ledger is not None else store.load()

    def _save(self, previous: Ledger) -> None:
        """Persist the ledger, falling back to previous in memory if that fails."""
        try:
            self.store.save(self.ledger)
        except ManifestError:
            self.ledger = previous
            raise

    def track_installation(self, name: str, config: TrackingConfig) -> InstallationRecord:
        """Record a new tool installation and register its dependencies.

        Raises:
            AlreadyTrackedError: If name is already in the ledger
            ManifestError: If the ledger cannot be saved
        """
        if self.ledger.is_installed(name):
            raise AlreadyTrackedError(name)

        record = InstallationRecord(
            method=config.method,
            version=config.version,
            installed_at=utcnow(),
            binary_paths=list(config.binary_paths),
            build_dir=config.build_dir,
            source_repo=config.source_repo,
            dependencies=list(config.dependencies),
            installed_by_bundle=config.installed_by_bundle,
            user_requested=config.user_requested,
            installation_context=list(config.installation_context),
            config_files=list(config.config_files),
            system_packages=list(config.system_packages),
        )
        previous = copy.deepcopy(self.ledger)
        self.ledger.add_installation(name, record)

        for dep in config.dependencies:
            self._track_dependency(dep, name)

        self._save(previous)
        _logging.debug(
            f"Tracked {name} ({config.method.value}) with dependencies {config.dependencies}"
        )
        return record

    def _track_dependency(self, dep_name: str, dependent: str) -> None:
        dep = self.ledger.get_dependency(dep_name)
        if dep is None:
            self.ledger.add_dependency(
                dep_name,
                DependencyRecord(
                    installed_by=INSTALLER_ID,
                    dependents=[dependent],
                    installed_at=utcnow(),
                ),
            )
        elif dependent not in dep.dependents:
            dep.dependents.append(dependent)

    def track_bundle(
        self, bundle_name: str, tools: list[str], user_requested: bool = True
    ) -> InstallationRecord:
        """Record a bundle installation.

        Existing member records are claimed by this bundle only if no other
        bundle claimed them first; the bundle context tag is added either way.
        """
        context = bundle_context(bundle_name)
        record = InstallationRecord(
            method=InstallMethod.BUNDLE,
            installed_at=utcnow(),
            user_requested=user_requested,
            installation_context=[context],
            dependencies=list(tools),
        )
        previous = copy.deepcopy(self.ledger)
        self.ledger.add_installation(bundle_key(bundle_name), record)

        for tool in tools:
            member = self.ledger.get_installation(tool)
            if member is None:
                continue
            if not member.installed_by_bundle:
                member.installed_by_bundle = bundle_name
            if context not in member.installation_context:
                member.installation_context.append(context)

        self._save(previous)
        _logging.debug(f"Tracked bundle {bundle_name} with {len(tools)} tools")
        return record

    def track_pre_existing(
        self, name: str, binary_path: str, version: str
    ) -> InstallationRecord:
        if self.ledger.is_installed(name):
            raise AlreadyTrackedError(name)

        record = InstallationRecord(
            method=InstallMethod.PRE_EXISTING,
            version=version,
            installed_at=utcnow(),
            binary_paths=[binary_path] if binary_path else [],
            user_requested=False,
            installation_context=[PRE_EXISTING_CONTEXT],
        )
        previous = copy.deepcopy(self.ledger)
        self.ledger.add_installation(name, record)
        self._save(previous)
        _logging.debug(f"Tracked pre-existing {name} at {binary_path}")
        return record

    def untrack(self, name: str) -> InstallationRecord:
        """Drop a record and remove it from every dependency's dependents.

        Dropping a bundle record also releases its members: the bundle's
        context tag is removed and, where the bundle held the claim,
        ``installed_by_bundle`` passes to the member's next tracked bundle
        or is cleared.

        Raises:
            NotTrackedError: If name is not in the ledger
        """
        if not self.ledger.is_installed(name):
            raise NotTrackedError(name)

        previous = copy.deepcopy(self.ledger)
        record = self.ledger.installations.pop(name)

        for dep in self.ledger.dependencies.values():
            if name in dep.dependents:
                dep.dependents = [d for d in dep.dependents if d != name]

        if record.method == InstallMethod.BUNDLE and name.endswith(BUNDLE_SUFFIX):
            self._release_members(name[: -len(BUNDLE_SUFFIX)], record.dependencies)

        self._save(previous)
        _logging.debug(f"Untracked {name}")
        return record

    def _release_members(self, bundle_name: str, tools: list[str]) -> None:
        context = bundle_context(bundle_name)
        for tool in tools:
            member = self.ledger.get_installation(tool)
            if member is None:
                continue
            member.installation_context = [
                c for c in member.installation_context if c != context
            ]
            if member.installed_by_bundle != bundle_name:
                continue
            member.installed_by_bundle = ""
            for tag in member.installation_context:
                other = tag.removeprefix("bundle:")
                if other != tag and self.ledger.is_installed(bundle_key(other)):
                    member.installed_by_bundle = other
                    break

    def remove_dependency(self, dep_name: str) -> bool:
        """Drop a dependency record. Returns False if it was not recorded."""
        if dep_name not in self.ledger.dependencies:
            return False
        previous = copy.deepcopy(self.ledger)
        del self.ledger.dependencies[dep_name]
        self._save(previous)
        _logging.debug(f"Removed dependency record {dep_name}")
        return True

    def is_installed(self, name: str) -> bool:
        return self.ledger.is_installed(name)

    def get_installation(self, name: str) -> InstallationRecord | None:
        return self.ledger.get_installation(name)

    def get_all_installations(self) -> dict[str, InstallationRecord]:
        return dict(self.ledger.installations)

    def get_dependents(self, dep_name: str) -> list[str]:
        return self.ledger.get_dependents(dep_name)

    def detect_pre_existing(
        self, name: str, binary_name: str | None = None
    ) -> tuple[bool, str | None]:
        """Report whether a tool is on PATH without being tracked.

        Returns:
            (True, path) if untracked and the binary resolves, else (False, None)
        """
        if self.is_installed(name):
            return False, None

        path = shutil.which(binary_name or name)
        if path is None:
            return False, None
        return True, path

    def can_safely_remove(self, name: str) -> tuple[bool, list[str]]:
        """Check whether removing a tool would break anything tracked.

        Returns:
            (safe, reasons). reasons is empty when safe.

        Raises:
            NotTrackedError: If name is not in the ledger
        """
        record = self.ledger.get_installation(name)
        if record is None:
            raise NotTrackedError(name)

        if record.is_pre_existing:
            return False, ["Tool was pre-existing before toolkeep"]

        blockers = self.get_blockers(name)
        if blockers:
            return False, [f"Required by other tools: {', '.join(blockers)}"]
        return True, []

    def get_blockers(self, name: str) -> list[str]:
        """Names of other installations that list name as a dependency."""
        return sorted(
            other
            for other, other_record in self.ledger.installations.items()
            if other != name and name in other_record.dependencies
        )

    def create_snapshot(self, suffix: str = "") -> str | None:
        return self.store.backup(suffix)

    def get_binary_paths(self, name: str) -> list[str]:
        record = self.ledger.get_installation(name)
        if record is None:
            raise NotTrackedError(name)
        return list(record.binary_paths)

    def get_build_dir(self, name: str) -> str:
        record = self.ledger.get_installation(name)
        if record is None:
            raise NotTrackedError(name)
        return record.build_dir

    def get_installation_stats(self) -> dict[str, int]:
        stats: dict[str, int] = {}
        for record in self.ledger.installations.values():
            stats[record.method.value] = stats.get(record.method.value, 0) + 1

        total = len(self.ledger.installations)
        bundles = sum(1 for name in self.ledger.installations if name.endswith(BUNDLE_SUFFIX))
        stats["total"] = total
        stats["bundles"] = bundles
        stats["tools"] = total - bundles
        return stats


def detect_binary_paths(tool_name: str, aliases: list[str] | None = None) -> list[str]:
    """Resolve a tool and its aliases on PATH, skipping those not found."""
    paths = []
    for binary in [tool_name, *(aliases or [])]:
        path = shutil.which(binary)
        if path:
            paths.append(path)
    return paths


__all__ = [
    "TrackingConfig",
    "Tracker",
    "detect_binary_paths",
]
