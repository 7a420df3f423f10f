"""State and catalog path helpers for toolkeep."""

import os
from pathlib import Path

MANIFEST_FILE = "manifest.json"
BACKUP_DIR = "backups"
CATALOG_FILE = "bundles.json"


def get_state_dir(home: Path | str | None = None) -> Path:
    """Return the directory where toolkeep keeps its ledger.

    Priority:
    1. Explicit ``home`` argument (the CLI ``--home`` option)
    2. TOOLKEEP_HOME environment variable (if set)
    3. ~/.toolkeep
    """
    if home is not None:
        return Path(home)
    if "TOOLKEEP_HOME" in os.environ:
        return Path(os.environ["TOOLKEEP_HOME"])
    return Path.home() / ".toolkeep"


def get_manifest_path(home: Path | str | None = None) -> Path:
    return get_state_dir(home) / MANIFEST_FILE


def get_backup_dir(home: Path | str | None = None) -> Path:
    return get_state_dir(home) / BACKUP_DIR


def get_packaged_catalog_path() -> Path:
    """Return path to packaged default bundle catalog (read-only fallback)"""
    return Path(__file__).parent / "data" / CATALOG_FILE


def get_catalog_path(home: Path | str | None = None) -> Path:
    """Return path to the bundle catalog.

    Priority:
    1. TOOLKEEP_CATALOG environment variable (if set)
    2. <state dir>/bundles.json, if it exists
    3. Packaged default catalog
    """
    if "TOOLKEEP_CATALOG" in os.environ:
        return Path(os.environ["TOOLKEEP_CATALOG"])

    user_catalog = get_state_dir(home) / CATALOG_FILE
    if user_catalog.exists():
        return user_catalog
    return get_packaged_catalog_path()


__all__ = [
    "MANIFEST_FILE",
    "BACKUP_DIR",
    "CATALOG_FILE",
    "get_state_dir",
    "get_manifest_path",
    "get_backup_dir",
    "get_packaged_catalog_path",
    "get_catalog_path",
]
