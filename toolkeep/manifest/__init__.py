"""Installation ledger: data model, persistence and tracking."""

from .models import (
    BUNDLE_SUFFIX,
    SCHEMA_VERSION,
    DependencyRecord,
    InstallationRecord,
    InstallMethod,
    Ledger,
    bundle_key,
    is_bundle_key,
)
from .store import (
    FileLedgerStore,
    LedgerStore,
    MemoryLedgerStore,
    deserialize_ledger,
    serialize_ledger,
)
from .tracker import Tracker, TrackingConfig, detect_binary_paths

__all__ = [
    "SCHEMA_VERSION",
    "BUNDLE_SUFFIX",
    "InstallMethod",
    "InstallationRecord",
    "DependencyRecord",
    "Ledger",
    "bundle_key",
    "is_bundle_key",
    "LedgerStore",
    "FileLedgerStore",
    "MemoryLedgerStore",
    "serialize_ledger",
    "deserialize_ledger",
    "Tracker",
    "TrackingConfig",
    "detect_binary_paths",
]
