"""Data models for removal planning."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from toolkeep.manifest import InstallMethod


class SafetyLevel(Enum):
    CONSERVATIVE = "conservative"
    STANDARD = "standard"
    AGGRESSIVE = "aggressive"


class RemovalMethod(Enum):
    SOURCE_BUILD = "source_build"
    CARGO_UNINSTALL = "cargo_uninstall"
    GO_CLEAN = "go_clean"
    SYSTEM_UNINSTALL = "system_uninstall"
    PIPX_UNINSTALL = "pipx_uninstall"
    NPM_UNINSTALL = "npm_uninstall"
    MANUAL_DELETE = "manual_delete"
    BUNDLE_REMOVE = "bundle_remove"
    PRESERVE = "preserve"


class DependencyFate(Enum):
    REMOVE = "remove"
    PRESERVE = "preserve"


class WarningLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


REMOVAL_METHODS: dict[InstallMethod, RemovalMethod] = {
    InstallMethod.SOURCE_BUILD: RemovalMethod.SOURCE_BUILD,
    InstallMethod.CARGO_INSTALL: RemovalMethod.CARGO_UNINSTALL,
    InstallMethod.GO_INSTALL: RemovalMethod.GO_CLEAN,
    InstallMethod.SYSTEM_PACKAGE: RemovalMethod.SYSTEM_UNINSTALL,
    InstallMethod.PIPX: RemovalMethod.PIPX_UNINSTALL,
    InstallMethod.NPM_GLOBAL: RemovalMethod.NPM_UNINSTALL,
    InstallMethod.MANUAL_DOWNLOAD: RemovalMethod.MANUAL_DELETE,
    InstallMethod.BUNDLE: RemovalMethod.BUNDLE_REMOVE,
    InstallMethod.PRE_EXISTING: RemovalMethod.PRESERVE,
}

REMOVAL_METHOD_DESCRIPTIONS: dict[RemovalMethod, str] = {
    RemovalMethod.SOURCE_BUILD: "Remove binaries and build artifacts from source installation",
    RemovalMethod.CARGO_UNINSTALL: "Use 'cargo uninstall' to remove Rust tool",
    RemovalMethod.GO_CLEAN: "Remove Go tool binary and clean module cache",
    RemovalMethod.SYSTEM_UNINSTALL: "Use system package manager to uninstall",
    RemovalMethod.PIPX_UNINSTALL: "Use 'pipx uninstall' to remove Python tool",
    RemovalMethod.NPM_UNINSTALL: "Use 'npm uninstall -g' to remove Node.js tool",
    RemovalMethod.MANUAL_DELETE: "Manually delete files and directories",
    RemovalMethod.BUNDLE_REMOVE: "Remove bundle tracking and optionally contained tools",
    RemovalMethod.PRESERVE: "Preserve pre-existing installation",
}


def get_removal_method(method: InstallMethod) -> RemovalMethod:
    return REMOVAL_METHODS.get(method, RemovalMethod.MANUAL_DELETE)


def describe_removal_method(method: RemovalMethod) -> str:
    return REMOVAL_METHOD_DESCRIPTIONS.get(method, "Unknown removal method")


@dataclass
class RemovalOptions:
    force: bool = False
    cascade: bool = False
    remove_config: bool = False
    remove_bundle_contents: bool = False
    dry_run: bool = False
    backup: bool = True
    backup_suffix: str = ""


@dataclass
class RemovalAction:
    target: str
    method: RemovalMethod
    paths: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    is_safe: bool = True
    reason: str = ""


@dataclass
class KeepReason:
    target: str
    reasons: list[str] = field(default_factory=list)


@dataclass
class SafetyWarning:
    target: str
    level: WarningLevel
    message: str


@dataclass
class DependencyAction:
    dependency: str
    action: DependencyFate
    reason: str
    affected: list[str] = field(default_factory=list)


@dataclass
class RemovalSummary:
    total_requested: int = 0
    will_remove: int = 0
    will_keep: int = 0
    warning_count: int = 0
    method_breakdown: dict[str, int] = field(default_factory=dict)
    dependency_actions: dict[str, int] = field(default_factory=dict)


@dataclass
class RemovalPlan:
    to_remove: list[RemovalAction] = field(default_factory=list)
    to_keep: list[KeepReason] = field(default_factory=list)
    warnings: list[SafetyWarning] = field(default_factory=list)
    dependencies: list[DependencyAction] = field(default_factory=list)
    summary: RemovalSummary = field(default_factory=RemovalSummary)

    def removal_targets(self) -> list[str]:
        return [action.target for action in self.to_remove]

    def get_action(self, target: str) -> RemovalAction | None:
        return next((a for a in self.to_remove if a.target == target), None)

    def get_keep(self, target: str) -> KeepReason | None:
        return next((k for k in self.to_keep if k.target == target), None)

    def get_dependency_action(self, dependency: str) -> DependencyAction | None:
        return next((d for d in self.dependencies if d.dependency == dependency), None)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form with enums flattened to their values."""

        def _convert(value: Any) -> Any:
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {_convert(k): _convert(v) for k, v in value.items()}
            if isinstance(value, list):
                return [_convert(v) for v in value]
            return value

        return _convert(asdict(self))


__all__ = [
    "SafetyLevel",
    "RemovalMethod",
    "DependencyFate",
    "WarningLevel",
    "RemovalOptions",
    "RemovalAction",
    "KeepReason",
    "SafetyWarning",
    "DependencyAction",
    "RemovalSummary",
    "RemovalPlan",
    "get_removal_method",
    "describe_removal_method",
]
