"""Installation ledger and safe-removal planner for CLI tool environments."""

import logging

from toolkeep.bundles import (
    Bundle,
    BundleCatalog,
    expand_bundle,
    expand_bundles_and_tools,
    expand_system_packages,
    load_catalog,
)
from toolkeep.config import ConfigError
from toolkeep.errors import (
    AlreadyTrackedError,
    BundleError,
    BundleNotFoundError,
    CircularBundleError,
    ManifestError,
    NotTrackedError,
    ToolkeepError,
    TrackingError,
    UnsupportedSchemaError,
    format_error,
    format_suggestion,
)
from toolkeep.manifest import (
    DependencyRecord,
    FileLedgerStore,
    InstallationRecord,
    InstallMethod,
    Ledger,
    MemoryLedgerStore,
    Tracker,
    TrackingConfig,
)
from toolkeep.paths import get_catalog_path, get_state_dir
from toolkeep.removal import (
    RemovalOptions,
    RemovalPlan,
    RemovalPlanner,
    SafetyLevel,
)

__version__ = "0.1.0"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def setup_logging(debug: bool = False) -> None:
    """Configure root logging for CLI use.

    Debug mode shows every ledger mutation and planning decision; otherwise
    only warnings and errors reach stderr.
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


__all__ = [
    "__version__",
    "setup_logging",
    "ToolkeepError",
    "ManifestError",
    "UnsupportedSchemaError",
    "TrackingError",
    "AlreadyTrackedError",
    "NotTrackedError",
    "BundleError",
    "BundleNotFoundError",
    "CircularBundleError",
    "ConfigError",
    "format_error",
    "format_suggestion",
    "InstallMethod",
    "InstallationRecord",
    "DependencyRecord",
    "Ledger",
    "FileLedgerStore",
    "MemoryLedgerStore",
    "Tracker",
    "TrackingConfig",
    "Bundle",
    "BundleCatalog",
    "load_catalog",
    "expand_bundle",
    "expand_system_packages",
    "expand_bundles_and_tools",
    "RemovalOptions",
    "RemovalPlan",
    "RemovalPlanner",
    "SafetyLevel",
    "get_state_dir",
    "get_catalog_path",
]
