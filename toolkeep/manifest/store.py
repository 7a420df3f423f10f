"""Durable, atomic persistence of the installation ledger.

Two stores share one interface:

- ``FileLedgerStore`` keeps the ledger as an indented JSON document on
  local disk, with timestamp-named backups in a sibling directory.
- ``MemoryLedgerStore`` keeps serialized documents in memory. It goes
  through the same serialize/validate path, so tests exercising it also
  exercise the document format.

Writes are atomic for readers only: the document is written to a temp
file in the same directory and renamed over the live path. Nothing here
serializes concurrent writers; callers sharing a ledger across threads or
processes must hold their own lock around the load-modify-save cycle.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from toolkeep.errors import ManifestError, UnsupportedSchemaError
from toolkeep.paths import get_backup_dir, get_manifest_path

from .models import Ledger, utcnow

_logging = logging.getLogger(__name__)

BACKUP_PREFIX = "manifest-"
BACKUP_TIME_FORMAT = "%Y%m%d-%H%M%S"
PRE_RESTORE_SUFFIX = "pre-restore"


def serialize_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger.to_dict(), indent=2) + "\n"


def deserialize_ledger(text: str, source: str = "manifest") -> Ledger:
    """Parse and validate a ledger document.

    Raises:
        UnsupportedSchemaError: If the schema version is not recognized
        ManifestError: If the text is not valid JSON or not a valid ledger
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(
            f"Failed to parse {source} at line {e.lineno}, col {e.colno}: {e.msg}"
        ) from e
    return Ledger.from_dict(data)


def backup_name(suffix: str = "", now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime(BACKUP_TIME_FORMAT)
    name = f"{BACKUP_PREFIX}{stamp}"
    if suffix:
        name += f"-{suffix}"
    return name + ".json"


def _validate_backup(text: str, name: str) -> None:
    """Check a backup document before it replaces the live ledger.

    Raises:
        UnsupportedSchemaError: If the backup has an unknown schema version
        ManifestError: If the backup is otherwise invalid
    """
    try:
        deserialize_ledger(text, source=f"backup {name}")
    except UnsupportedSchemaError as e:
        raise UnsupportedSchemaError(e.version, source=f"Backup file {name}") from e
    except ManifestError as e:
        raise ManifestError(f"Backup file {name} is invalid: {e}") from e


class LedgerStore:
    """Interface shared by ledger stores."""

    def exists(self) -> bool:
        raise NotImplementedError

    def load(self) -> Ledger:
        raise NotImplementedError

    def save(self, ledger: Ledger) -> None:
        raise NotImplementedError

    def backup(self, suffix: str = "") -> str | None:
        raise NotImplementedError

    def restore_backup(self, name: str) -> None:
        raise NotImplementedError

    def list_backups(self) -> list[str]:
        raise NotImplementedError


class FileLedgerStore(LedgerStore):
    def __init__(self, path: Path | str, backup_dir: Path | str | None = None):
        self.path = Path(path)
        self.backup_dir = (
            Path(backup_dir) if backup_dir is not None else self.path.parent / "backups"
        )

    @classmethod
    def from_home(cls, home: Path | str | None = None) -> "FileLedgerStore":
        """Build a store rooted at the toolkeep state directory."""
        return cls(get_manifest_path(home), get_backup_dir(home))

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Ledger:
        if not self.path.exists():
            _logging.debug(f"No manifest at {self.path}, creating an empty one")
            ledger = Ledger()
            try:
                self.save(ledger)
            except ManifestError as e:
                raise ManifestError(f"Failed to create new manifest: {e}") from e
            return ledger

        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Failed to read manifest file {self.path}: {e}") from e

        ledger = deserialize_ledger(text, source=str(self.path))
        _logging.debug(
            f"Loaded manifest from {self.path}: "
            f"{len(ledger.installations)} installations, "
            f"{len(ledger.dependencies)} dependencies"
        )
        return ledger

    def save(self, ledger: Ledger) -> None:
        ledger.updated_at = utcnow()
        self._write_atomic(serialize_ledger(ledger))
        _logging.debug(f"Saved manifest to {self.path}")

    def _write_atomic(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ManifestError(f"Failed to create manifest directory: {e}") from e

        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ManifestError(f"Failed to write manifest {self.path}: {e}") from e

    def backup(self, suffix: str = "") -> str | None:
        """Copy the live manifest into the backup directory.

        Args:
            suffix: Optional label appended to the timestamped name

        Returns:
            The backup file name, or None if there is no manifest to back up
        """
        if not self.path.exists():
            return None

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            data = self.path.read_bytes()
        except OSError as e:
            raise ManifestError(f"Failed to read manifest for backup: {e}") from e

        name = backup_name(suffix)
        target = self.backup_dir / name
        counter = 1
        while target.exists():
            # Two backups within the same second
            name = backup_name(f"{suffix}-{counter}" if suffix else str(counter))
            target = self.backup_dir / name
            counter += 1

        try:
            target.write_bytes(data)
        except OSError as e:
            raise ManifestError(f"Failed to write backup {target}: {e}") from e

        _logging.debug(f"Backed up manifest to {target}")
        return name

    def list_backups(self) -> list[str]:
        if not self.backup_dir.exists():
            return []
        try:
            return [
                entry.name
                for entry in self.backup_dir.iterdir()
                if entry.is_file() and entry.suffix == ".json"
            ]
        except OSError as e:
            raise ManifestError(f"Failed to read backup directory: {e}") from e

    def restore_backup(self, name: str) -> None:
        backup_path = self.backup_dir / name
        if not backup_path.is_file():
            raise ManifestError(f"Backup file does not exist: {name}")

        try:
            text = backup_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"Failed to read backup file {name}: {e}") from e

        _validate_backup(text, name)

        self.backup(PRE_RESTORE_SUFFIX)
        self._write_atomic(text)
        _logging.debug(f"Restored manifest from backup {name}")


class MemoryLedgerStore(LedgerStore):
    """Ledger store kept entirely in memory."""

    def __init__(self, document: str | None = None):
        self.document = document
        self.backups: dict[str, str] = {}
        self.save_count = 0

    def exists(self) -> bool:
        return self.document is not None

    def load(self) -> Ledger:
        if self.document is None:
            ledger = Ledger()
            self.save(ledger)
            return ledger
        return deserialize_ledger(self.document)

    def save(self, ledger: Ledger) -> None:
        ledger.updated_at = utcnow()
        self.document = serialize_ledger(ledger)
        self.save_count += 1

    def backup(self, suffix: str = "") -> str | None:
        if self.document is None:
            return None
        name = backup_name(suffix)
        counter = 1
        while name in self.backups:
            name = backup_name(f"{suffix}-{counter}" if suffix else str(counter))
            counter += 1
        self.backups[name] = self.document
        return name

    def list_backups(self) -> list[str]:
        return list(self.backups)

    def restore_backup(self, name: str) -> None:
        if name not in self.backups:
            raise ManifestError(f"Backup file does not exist: {name}")
        text = self.backups[name]
        _validate_backup(text, name)
        self.backup(PRE_RESTORE_SUFFIX)
        self.document = text


__all__ = [
    "LedgerStore",
    "FileLedgerStore",
    "MemoryLedgerStore",
    "serialize_ledger",
    "deserialize_ledger",
    "backup_name",
    "PRE_RESTORE_SUFFIX",
]
