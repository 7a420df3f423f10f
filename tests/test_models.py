"""Tests for the ledger data model and document format."""

import json
from datetime import datetime, timezone

import pytest

from toolkeep.errors import ManifestError, UnsupportedSchemaError
from toolkeep.manifest import (
    SCHEMA_VERSION,
    DependencyRecord,
    InstallationRecord,
    InstallMethod,
    Ledger,
    bundle_key,
    deserialize_ledger,
    is_bundle_key,
    serialize_ledger,
)


def _sample_ledger() -> Ledger:
    installed = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    ledger = Ledger()
    ledger.add_installation(
        "ripgrep",
        InstallationRecord(
            method=InstallMethod.SOURCE_BUILD,
            installed_at=installed,
            version="14.1.0",
            binary_paths=["/usr/local/bin/rg"],
            build_dir="/home/u/build/ripgrep",
            source_repo="https://github.com/BurntSushi/ripgrep",
            dependencies=["rust"],
            installed_by_bundle="core",
            user_requested=True,
            installation_context=["bundle:core"],
            config_files=["/home/u/.ripgreprc"],
            system_packages=["pcre2"],
        ),
    )
    ledger.add_installation(
        "core_bundle",
        InstallationRecord(
            method=InstallMethod.BUNDLE,
            installed_at=installed,
            dependencies=["ripgrep"],
            installation_context=["bundle:core"],
        ),
    )
    ledger.add_dependency(
        "rust",
        DependencyRecord(
            version="1.78.0",
            dependents=["ripgrep"],
            install_path="/home/u/.rustup",
            installed_at=installed,
        ),
    )
    return ledger


class TestLedgerRoundTrip:
    def test_serialize_then_deserialize_is_field_equal(self):
        ledger = _sample_ledger()
        restored = deserialize_ledger(serialize_ledger(ledger))

        assert restored.installations == ledger.installations
        assert restored.dependencies == ledger.dependencies
        assert restored.created_at == ledger.created_at
        assert restored.updated_at == ledger.updated_at
        restored.validate()

    def test_empty_ledger_round_trips(self):
        ledger = Ledger()
        restored = deserialize_ledger(serialize_ledger(ledger))
        assert restored.installations == {}
        assert restored.dependencies == {}
        assert restored.schema_version == SCHEMA_VERSION

    def test_empty_optional_fields_are_omitted(self):
        record = InstallationRecord(method=InstallMethod.PIPX, version="1.0")
        data = record.to_dict()

        for key in ("build_dir", "source_repo", "installed_by_bundle", "config_files", "system_packages"):
            assert key not in data
        assert data["binary_paths"] == []
        assert data["dependencies"] == []
        assert data["user_requested"] is False
        assert data["method"] == "pipx"

    def test_dependency_install_path_omitted_when_empty(self):
        data = DependencyRecord(dependents=["fd"]).to_dict()
        assert "install_path" not in data
        assert data["installed_by"] == "toolkeep"

    def test_accepts_trailing_z_timestamps(self):
        document = {
            "schema_version": "1.0",
            "installations": {
                "fd": {
                    "method": "cargo_install",
                    "version": "",
                    "installed_at": "2024-01-02T03:04:05Z",
                    "binary_paths": None,
                    "dependencies": ["rust"],
                    "user_requested": True,
                    "installation_context": None,
                }
            },
            "dependencies": {},
            "created_at": "2024-01-02T03:04:05Z",
            "updated_at": "2024-01-02T03:04:05Z",
        }
        ledger = deserialize_ledger(json.dumps(document))
        record = ledger.installations["fd"]
        assert record.installed_at == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert record.binary_paths == []
        assert record.installation_context == []


class TestSchemaValidation:
    def test_unknown_version_rejected(self):
        document = serialize_ledger(Ledger()).replace('"1.0"', '"2.0"')
        with pytest.raises(UnsupportedSchemaError) as exc_info:
            deserialize_ledger(document)
        assert exc_info.value.version == "2.0"

    def test_missing_version_rejected(self):
        with pytest.raises(UnsupportedSchemaError):
            Ledger.from_dict({"installations": {}, "dependencies": {}})

    def test_validate_rejects_mutated_version(self):
        ledger = Ledger()
        ledger.schema_version = "0.9"
        with pytest.raises(UnsupportedSchemaError):
            ledger.validate()

    def test_invalid_json(self):
        with pytest.raises(ManifestError, match="Failed to parse"):
            deserialize_ledger("{not json")

    def test_unsupported_schema_is_a_manifest_error(self):
        with pytest.raises(ManifestError):
            deserialize_ledger('{"schema_version": "9"}')

    def test_top_level_must_be_object(self):
        with pytest.raises(ManifestError, match="must be a JSON object"):
            deserialize_ledger("[]")

    def test_invalid_method(self):
        document = {
            "schema_version": "1.0",
            "installations": {"fd": {"method": "teleport", "installed_at": "2024-01-01T00:00:00+00:00"}},
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        }
        with pytest.raises(ManifestError, match="invalid method"):
            Ledger.from_dict(document)

    def test_missing_installed_at(self):
        document = {
            "schema_version": "1.0",
            "installations": {"fd": {"method": "pipx"}},
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        }
        with pytest.raises(ManifestError, match="installed_at"):
            Ledger.from_dict(document)

    def test_dependents_must_be_strings(self):
        document = {
            "schema_version": "1.0",
            "dependencies": {"rust": {"dependents": [1, 2], "installed_at": "2024-01-01T00:00:00+00:00"}},
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
        }
        with pytest.raises(ManifestError, match="dependents"):
            Ledger.from_dict(document)


def test_bundle_key_convention():
    assert bundle_key("core") == "core_bundle"
    assert is_bundle_key("core_bundle")
    assert not is_bundle_key("ripgrep")


def test_ledger_get_dependents_returns_copy():
    ledger = _sample_ledger()
    dependents = ledger.get_dependents("rust")
    dependents.append("intruder")
    assert ledger.get_dependents("rust") == ["ripgrep"]
    assert ledger.get_dependents("go") == []


def test_orphaned_dependency():
    assert DependencyRecord().is_orphaned
    assert not DependencyRecord(dependents=["fd"]).is_orphaned
