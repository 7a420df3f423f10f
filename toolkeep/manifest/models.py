"""Data models for the installation ledger."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from toolkeep.errors import ManifestError, UnsupportedSchemaError

SCHEMA_VERSION = "1.0"
BUNDLE_SUFFIX = "_bundle"
INSTALLER_ID = "toolkeep"
PRE_EXISTING_CONTEXT = "pre_existing"


class InstallMethod(Enum):
    SOURCE_BUILD = "source_build"
    CARGO_INSTALL = "cargo_install"
    GO_INSTALL = "go_install"
    SYSTEM_PACKAGE = "system_package"
    PIPX = "pipx"
    NPM_GLOBAL = "npm_global"
    MANUAL_DOWNLOAD = "manual_download"
    BUNDLE = "bundle"
    PRE_EXISTING = "pre_existing"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def bundle_key(bundle_name: str) -> str:
    """Return the ledger key under which a bundle is tracked."""
    return bundle_name + BUNDLE_SUFFIX


def is_bundle_key(name: str) -> bool:
    return name.endswith(BUNDLE_SUFFIX)


def bundle_context(bundle_name: str) -> str:
    return f"bundle:{bundle_name}"


def _format_time(value: datetime) -> str:
    return value.isoformat()


def _parse_time(value: Any, where: str) -> datetime:
    if not isinstance(value, str) or not value:
        raise ManifestError(f"{where} must be an ISO-8601 timestamp string")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ManifestError(f"{where} is not a valid timestamp: {value!r}") from e


def _string_list(data: dict, key: str, where: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(f"{where} field '{key}' must be a list of strings")
    return list(value)


def _optional_str(data: dict, key: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ManifestError(f"{where} field '{key}' must be a string")
    return value


@dataclass
class InstallationRecord:
    method: InstallMethod
    installed_at: datetime = field(default_factory=utcnow)
    version: str = ""
    binary_paths: list[str] = field(default_factory=list)
    build_dir: str = ""
    source_repo: str = ""
    dependencies: list[str] = field(default_factory=list)
    installed_by_bundle: str = ""
    user_requested: bool = False
    installation_context: list[str] = field(default_factory=list)
    config_files: list[str] = field(default_factory=list)
    system_packages: list[str] = field(default_factory=list)

    @property
    def is_pre_existing(self) -> bool:
        return self.method == InstallMethod.PRE_EXISTING

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "method": self.method.value,
            "version": self.version,
            "installed_at": _format_time(self.installed_at),
            "binary_paths": list(self.binary_paths),
        }
        if self.build_dir:
            data["build_dir"] = self.build_dir
        if self.source_repo:
            data["source_repo"] = self.source_repo
        data["dependencies"] = list(self.dependencies)
        if self.installed_by_bundle:
            data["installed_by_bundle"] = self.installed_by_bundle
        data["user_requested"] = self.user_requested
        data["installation_context"] = list(self.installation_context)
        if self.config_files:
            data["config_files"] = list(self.config_files)
        if self.system_packages:
            data["system_packages"] = list(self.system_packages)
        return data

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "InstallationRecord":
        where = f"Installation '{name}'"
        if not isinstance(data, dict):
            raise ManifestError(f"{where} must be an object")
        if "method" not in data:
            raise ManifestError(f"{where} missing required field: method")
        try:
            method = InstallMethod(data["method"])
        except ValueError:
            allowed = ", ".join(m.value for m in InstallMethod)
            raise ManifestError(
                f"{where} has invalid method: {data['method']}. Must be one of: {allowed}"
            )
        if "installed_at" not in data:
            raise ManifestError(f"{where} missing required field: installed_at")

        user_requested = data.get("user_requested", False)
        if not isinstance(user_requested, bool):
            raise ManifestError(f"{where} field 'user_requested' must be a boolean")

        return cls(
            method=method,
            installed_at=_parse_time(data["installed_at"], f"{where} installed_at"),
            version=_optional_str(data, "version", where),
            binary_paths=_string_list(data, "binary_paths", where),
            build_dir=_optional_str(data, "build_dir", where),
            source_repo=_optional_str(data, "source_repo", where),
            dependencies=_string_list(data, "dependencies", where),
            installed_by_bundle=_optional_str(data, "installed_by_bundle", where),
            user_requested=user_requested,
            installation_context=_string_list(data, "installation_context", where),
            config_files=_string_list(data, "config_files", where),
            system_packages=_string_list(data, "system_packages", where),
        )


@dataclass
class DependencyRecord:
    installed_by: str = INSTALLER_ID
    version: str = ""
    pre_existing: bool = False
    dependents: list[str] = field(default_factory=list)
    install_path: str = ""
    installed_at: datetime = field(default_factory=utcnow)

    @property
    def is_orphaned(self) -> bool:
        """True when no tracked tool depends on this record any more."""
        return not self.dependents

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "installed_by": self.installed_by,
            "version": self.version,
            "pre_existing": self.pre_existing,
            "dependents": list(self.dependents),
        }
        if self.install_path:
            data["install_path"] = self.install_path
        data["installed_at"] = _format_time(self.installed_at)
        return data

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "DependencyRecord":
        where = f"Dependency '{name}'"
        if not isinstance(data, dict):
            raise ManifestError(f"{where} must be an object")

        pre_existing = data.get("pre_existing", False)
        if not isinstance(pre_existing, bool):
            raise ManifestError(f"{where} field 'pre_existing' must be a boolean")

        return cls(
            installed_by=_optional_str(data, "installed_by", where),
            version=_optional_str(data, "version", where),
            pre_existing=pre_existing,
            dependents=_string_list(data, "dependents", where),
            install_path=_optional_str(data, "install_path", where),
            installed_at=_parse_time(data.get("installed_at"), f"{where} installed_at"),
        )


@dataclass
class Ledger:
    """The full persisted record of tracked installations and shared dependencies."""

    schema_version: str = SCHEMA_VERSION
    installations: dict[str, InstallationRecord] = field(default_factory=dict)
    dependencies: dict[str, DependencyRecord] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def add_installation(self, name: str, record: InstallationRecord) -> None:
        self.installations[name] = record
        self.updated_at = utcnow()

    def add_dependency(self, name: str, record: DependencyRecord) -> None:
        self.dependencies[name] = record
        self.updated_at = utcnow()

    def get_installation(self, name: str) -> InstallationRecord | None:
        return self.installations.get(name)

    def get_dependency(self, name: str) -> DependencyRecord | None:
        return self.dependencies.get(name)

    def is_installed(self, name: str) -> bool:
        return name in self.installations

    def get_dependents(self, dependency: str) -> list[str]:
        record = self.dependencies.get(dependency)
        if record is None:
            return []
        return list(record.dependents)

    def validate(self) -> None:
        if self.schema_version != SCHEMA_VERSION:
            raise UnsupportedSchemaError(self.schema_version)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "installations": {
                name: record.to_dict() for name, record in self.installations.items()
            },
            "dependencies": {
                name: record.to_dict() for name, record in self.dependencies.items()
            },
            "created_at": _format_time(self.created_at),
            "updated_at": _format_time(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Ledger":
        """Build a ledger from a parsed document.

        The schema version is checked first: a document with an unknown
        version raises UnsupportedSchemaError even if other fields are bad.

        Raises:
            UnsupportedSchemaError: If schema_version is missing or unknown
            ManifestError: If the document is structurally invalid
        """
        if not isinstance(data, dict):
            raise ManifestError(
                f"Manifest must be a JSON object, got {type(data).__name__}"
            )

        version = data.get("schema_version")
        if version != SCHEMA_VERSION:
            raise UnsupportedSchemaError(str(version))

        installations = data.get("installations") or {}
        dependencies = data.get("dependencies") or {}
        if not isinstance(installations, dict):
            raise ManifestError("Manifest field 'installations' must be an object")
        if not isinstance(dependencies, dict):
            raise ManifestError("Manifest field 'dependencies' must be an object")

        return cls(
            schema_version=version,
            installations={
                name: InstallationRecord.from_dict(name, record)
                for name, record in installations.items()
            },
            dependencies={
                name: DependencyRecord.from_dict(name, record)
                for name, record in dependencies.items()
            },
            created_at=_parse_time(data.get("created_at"), "Manifest created_at"),
            updated_at=_parse_time(data.get("updated_at"), "Manifest updated_at"),
        )


__all__ = [
    "SCHEMA_VERSION",
    "BUNDLE_SUFFIX",
    "INSTALLER_ID",
    "PRE_EXISTING_CONTEXT",
    "InstallMethod",
    "InstallationRecord",
    "DependencyRecord",
    "Ledger",
    "bundle_key",
    "is_bundle_key",
    "bundle_context",
    "utcnow",
]
