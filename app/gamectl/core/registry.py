"""Persistent registry of installed packages.

The registry maps package ids to InstalledRecord objects and is stored
as JSON in the state directory. Every write replaces the whole file
atomically so a crash never leaves a half-written registry behind.
"""

import json
import logging
import os
import threading
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from gamectl.core.errors import GamectlError, NotInstalledError
from gamectl.core.paths import get_registry_path
from gamectl.models.installed import InstalledRecord

logger = logging.getLogger(__name__)

# Schema version written to installed.json
REGISTRY_VERSION = 1


class RegistryError(GamectlError):
    """Raised when the registry file cannot be read or written."""


class InstallRegistry:
    """Thread-safe store of InstalledRecord objects.

    Records are loaded lazily on first access and written through on
    every mutation.

    Attributes:
        path: Location of installed.json.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the registry.

        Args:
            path: Optional override for the registry file.
                  Default: ~/.local/state/gamectl/installed.json
        """
        self._path = path or get_registry_path()
        self._lock = threading.RLock()
        self._records: dict[str, InstalledRecord] | None = None

    @property
    def path(self) -> Path:
        """Location of the registry file."""
        return self._path

    def get(self, package_id: str) -> InstalledRecord | None:
        """Return the record for ``package_id`` if one exists."""
        with self._lock:
            return self._load().get(package_id)

    def require(self, package_id: str) -> InstalledRecord:
        """Return the record for ``package_id``.

        Raises:
            NotInstalledError: If the package has no record.
        """
        record = self.get(package_id)
        if record is None:
            raise NotInstalledError(package_id)
        return record

    def all(self) -> list[InstalledRecord]:
        """Return every record sorted by package id."""
        with self._lock:
            return sorted(self._load().values(), key=lambda r: r.package_id)

    def put(self, record: InstalledRecord) -> None:
        """Insert or replace a record and persist the registry.

        Raises:
            RegistryError: If the registry cannot be written.
        """
        with self._lock:
            records = dict(self._load())
            records[record.package_id] = record
            self._save(records)
            self._records = records
        logger.debug("Registry updated for %s (%s)", record.package_id, record.installed_version)

    def remove(self, package_id: str) -> InstalledRecord | None:
        """Remove a record and persist the registry.

        Returns:
            The removed record, or None if there was none.

        Raises:
            RegistryError: If the registry cannot be written.
        """
        with self._lock:
            records = dict(self._load())
            removed = records.pop(package_id, None)
            if removed is not None:
                self._save(records)
                self._records = records
            return removed

    def reload(self) -> None:
        """Drop the in-memory copy so the next access re-reads the file."""
        with self._lock:
            self._records = None

    def _load(self) -> dict[str, InstalledRecord]:
        if self._records is not None:
            return self._records

        if not self._path.exists():
            self._records = {}
            return self._records

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise RegistryError(f"Invalid registry file {self._path}: {e}") from e
        except OSError as e:
            raise RegistryError(f"Failed to read registry: {e}") from e

        records: dict[str, InstalledRecord] = {}
        raw_games: Any = data.get("games", {}) if isinstance(data, dict) else {}
        for package_id, raw in raw_games.items():
            try:
                records[package_id] = InstalledRecord.from_dict({"package_id": package_id, **raw})
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping corrupt registry record %s: %s", package_id, e)

        self._records = records
        return records

    def _save(self, records: dict[str, InstalledRecord]) -> None:
        """Write the registry atomically via a temporary file and os.replace()."""
        payload = {
            "version": REGISTRY_VERSION,
            "games": {package_id: record.to_dict() for package_id, record in records.items()},
        }

        tmp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                json.dump(payload, f, indent=2)
            os.replace(str(tmp_path), str(self._path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise RegistryError(f"Failed to write registry: {e}") from e
