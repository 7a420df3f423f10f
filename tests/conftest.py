"""Pytest fixtures and utilities for toolkeep tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def state_dir(temp_dir: Path) -> Path:
    """A toolkeep state directory inside the temp dir (not yet created)."""
    return temp_dir / ".toolkeep"


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, temp_dir: Path):
    """Keep every test away from the real home directory."""
    monkeypatch.setenv("HOME", str(temp_dir / "home"))
    monkeypatch.delenv("TOOLKEEP_HOME", raising=False)
    monkeypatch.delenv("TOOLKEEP_CATALOG", raising=False)


@pytest.fixture
def file_store(state_dir: Path):
    from toolkeep.manifest import FileLedgerStore

    return FileLedgerStore(state_dir / "manifest.json", state_dir / "backups")


@pytest.fixture
def memory_store():
    from toolkeep.manifest import MemoryLedgerStore

    return MemoryLedgerStore()


@pytest.fixture
def tracker(memory_store):
    from toolkeep.manifest import Tracker

    return Tracker(memory_store)


@pytest.fixture
def rust_tools(tracker):
    """ripgrep and fd both built with cargo, sharing the rust toolchain."""
    from toolkeep.manifest import InstallMethod, TrackingConfig

    tracker.track_installation(
        "ripgrep",
        TrackingConfig(
            method=InstallMethod.CARGO_INSTALL,
            version="14.1.0",
            binary_paths=["/home/u/.cargo/bin/rg"],
            dependencies=["rust"],
        ),
    )
    tracker.track_installation(
        "fd",
        TrackingConfig(
            method=InstallMethod.CARGO_INSTALL,
            version="10.1.0",
            binary_paths=["/home/u/.cargo/bin/fd"],
            dependencies=["rust"],
        ),
    )
    return tracker


@pytest.fixture
def catalog_data() -> dict:
    """Catalog with a diamond: full includes rust-dev and git-tools, both include core."""
    return {
        "schema_version": "1.0",
        "bundles": [
            {
                "name": "core",
                "description": "Essentials",
                "category": "foundation",
                "tools": ["fd", "ripgrep"],
                "system_packages": ["curl", "git"],
                "package_managers": {"apt": ["curl", "git", "build-essential"]},
            },
            {
                "name": "rust-dev",
                "description": "Rust helpers",
                "category": "language",
                "tools": ["bacon", "ripgrep"],
                "includes_bundles": ["core"],
                "system_packages": ["pkg-config"],
            },
            {
                "name": "git-tools",
                "description": "Git helpers",
                "category": "workflow",
                "tools": ["delta", "lazygit"],
                "includes_bundles": ["core"],
            },
            {
                "name": "full",
                "description": "Everything",
                "category": "workflow",
                "tools": ["zoxide"],
                "includes_bundles": ["rust-dev", "git-tools"],
                "tags": ["big"],
            },
        ],
    }


@pytest.fixture
def catalog(catalog_data):
    from toolkeep.bundles import parse_catalog

    return parse_catalog(catalog_data)
