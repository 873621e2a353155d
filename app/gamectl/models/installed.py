"""Installed package records.

This module defines the data structures persisted in the install registry:
one InstalledRecord per package, each carrying its retained backups.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

# Maximum number of backup snapshots retained per package
MAX_BACKUPS = 3


@dataclass(frozen=True, slots=True)
class BackupSnapshot:
    """A retained copy of a previous install.

    Attributes:
        version: Version that was installed when the snapshot was taken.
        created_at: ISO 8601 timestamp with timezone.
        path: Directory holding the snapshot.
    """

    version: str
    created_at: str
    path: str

    def __post_init__(self) -> None:
        """Validate snapshot data after initialization."""
        if not self.version:
            msg = "Backup version cannot be empty"
            raise ValueError(msg)
        if not self.path:
            msg = "Backup path cannot be empty"
            raise ValueError(msg)

    @property
    def created(self) -> datetime:
        """Creation time as an aware datetime."""
        return datetime.fromisoformat(self.created_at.replace("Z", "+00:00"))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {"version": self.version, "created_at": self.created_at, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BackupSnapshot:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(version=data["version"], created_at=data["created_at"], path=data["path"])


@dataclass(frozen=True, slots=True)
class InstalledRecord:
    """Registry record of an installed package.

    Records are immutable: every change produces a new record which the
    registry swaps in as a whole, so readers never observe a half-applied
    update.

    Attributes:
        package_id: Catalog id of the package.
        installed_version: Version currently live on disk.
        install_dir: Live install directory.
        executable_path: Absolute path of the resolved entry point.
        backups: Retained snapshots, oldest first.
        installed_at: ISO 8601 timestamp of the last successful install.
    """

    package_id: str
    installed_version: str
    install_dir: str
    executable_path: str
    backups: tuple[BackupSnapshot, ...] = field(default_factory=tuple)
    installed_at: str = ""

    def __post_init__(self) -> None:
        """Validate record data after initialization."""
        if not self.package_id:
            msg = "Package id cannot be empty"
            raise ValueError(msg)
        if not self.installed_version:
            msg = "Installed version cannot be empty"
            raise ValueError(msg)

    def with_backup(
        self, snapshot: BackupSnapshot, capacity: int = MAX_BACKUPS
    ) -> tuple[InstalledRecord, list[BackupSnapshot]]:
        """Add a snapshot, evicting the oldest ones past capacity.

        Args:
            snapshot: Snapshot to retain.
            capacity: Maximum number of snapshots to keep.

        Returns:
            Tuple of (new record, evicted snapshots oldest first).
        """
        ordered = sorted((*self.backups, snapshot), key=lambda b: b.created)
        overflow = max(0, len(ordered) - capacity)
        evicted = ordered[:overflow]
        kept = tuple(ordered[overflow:])
        return replace(self, backups=kept), evicted

    def updated(
        self,
        installed_version: str,
        install_dir: str,
        executable_path: str,
    ) -> InstalledRecord:
        """Return a copy pointing at a newly published install."""
        return replace(
            self,
            installed_version=installed_version,
            install_dir=install_dir,
            executable_path=executable_path,
            installed_at=datetime.now(UTC).isoformat(),
        )

    @property
    def latest_backup(self) -> BackupSnapshot | None:
        """Most recent snapshot, if any."""
        if not self.backups:
            return None
        return max(self.backups, key=lambda b: b.created)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "package_id": self.package_id,
            "installed_version": self.installed_version,
            "install_dir": self.install_dir,
            "executable_path": self.executable_path,
            "backups": [backup.to_dict() for backup in self.backups],
            "installed_at": self.installed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledRecord:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If field values are invalid.
        """
        return cls(
            package_id=data["package_id"],
            installed_version=data["installed_version"],
            install_dir=data["install_dir"],
            executable_path=data["executable_path"],
            backups=tuple(BackupSnapshot.from_dict(b) for b in data.get("backups", [])),
            installed_at=data.get("installed_at", ""),
        )


def create_installed_record(
    package_id: str,
    version: str,
    install_dir: str,
    executable_path: str,
) -> InstalledRecord:
    """Factory function for a freshly installed package.

    Args:
        package_id: Catalog id.
        version: Installed version.
        install_dir: Live install directory.
        executable_path: Resolved entry point.

    Returns:
        New InstalledRecord stamped with the current time.
    """
    return InstalledRecord(
        package_id=package_id,
        installed_version=version,
        install_dir=install_dir,
        executable_path=executable_path,
        installed_at=datetime.now(UTC).isoformat(),
    )
