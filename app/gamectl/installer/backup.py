"""Update checks, backup snapshots, and update application.

An update never overwrites the live install in place. The new version is
downloaded and extracted while the old one stays live; only then is the live
directory moved into a timestamped snapshot and the new one renamed into its
place. If publishing fails the snapshot is moved back, so the old version
stays playable.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from gamectl.core.coordinator import SessionHandle
from gamectl.core.errors import NotInstalledError
from gamectl.core.paths import ensure_dir
from gamectl.core.registry import InstallRegistry
from gamectl.core.store import CatalogStore
from gamectl.core.versioning import is_version_newer
from gamectl.installer.pipeline import remove_tree
from gamectl.installer.runner import PackageInstaller
from gamectl.models.installed import MAX_BACKUPS, BackupSnapshot, InstalledRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UpdateCheck:
    """Result of comparing the installed and the catalog version.

    Attributes:
        package_id: Catalog id.
        needs_update: True iff the catalog version is newer.
        latest_version: Version published in the catalog.
        installed_version: Version compared against, if known.
        changelog: Catalog changelog for the latest version.
    """

    package_id: str
    needs_update: bool
    latest_version: str
    installed_version: str | None
    changelog: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of a successful update.

    Attributes:
        record: Registry record after the update.
        previous_version: Version that was replaced.
        backup: Snapshot holding the previous version.
        evicted: Snapshots deleted to respect the retention cap.
        mirror_name: Mirror that delivered the new version.
    """

    record: InstalledRecord
    previous_version: str
    backup: BackupSnapshot
    evicted: tuple[BackupSnapshot, ...]
    mirror_name: str


class BackupManager:
    """Creates, restores, and deletes backup snapshots on disk.

    Snapshots live under ``<backup_root>/<package_id>/<version>-<timestamp>``.
    """

    def __init__(self, backup_root: Path) -> None:
        self._backup_root = backup_root

    @property
    def backup_root(self) -> Path:
        """Directory holding every package's snapshots."""
        return self._backup_root

    def snapshot(self, package_id: str, install_dir: Path, version: str) -> BackupSnapshot:
        """Move the live install into a new snapshot.

        Raises:
            NotInstalledError: If ``install_dir`` does not exist.
        """
        if not install_dir.is_dir():
            raise NotInstalledError(package_id)

        created = datetime.now(UTC)
        package_dir = ensure_dir(self._backup_root / package_id, "backup")
        destination = package_dir / f"{version}-{created.strftime('%Y%m%dT%H%M%S%fZ')}"
        shutil.move(str(install_dir), str(destination))
        logger.info("Backed up %s %s to %s", package_id, version, destination)
        return BackupSnapshot(version=version, created_at=created.isoformat(), path=str(destination))

    def restore(self, snapshot: BackupSnapshot, install_dir: Path) -> None:
        """Move ``snapshot`` back into place as the live install."""
        if install_dir.exists():
            remove_tree(install_dir)
        shutil.move(snapshot.path, str(install_dir))
        logger.info("Restored %s from %s", install_dir, snapshot.path)

    def discard(self, snapshot: BackupSnapshot) -> None:
        """Delete a snapshot's directory."""
        path = Path(snapshot.path)
        if path.exists():
            remove_tree(path)
        logger.debug("Deleted backup %s", path)


class UpdateManager:
    """Checks for and applies updates of installed packages."""

    def __init__(
        self,
        store: CatalogStore,
        registry: InstallRegistry,
        installer: PackageInstaller,
        backups: BackupManager,
        max_backups: int = MAX_BACKUPS,
    ) -> None:
        self._store = store
        self._registry = registry
        self._installer = installer
        self._backups = backups
        self._max_backups = max_backups

    def check_update(self, package_id: str, current_version: str | None = None) -> UpdateCheck:
        """Compare the catalog version with the installed one.

        Args:
            package_id: Catalog id.
            current_version: Version to compare against. Defaults to the
                registry record, then the version found by the last scan.

        Returns:
            UpdateCheck for the package. ``needs_update`` is False when no
            installed version is known.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
        """
        entry = self._store.require(package_id)
        installed = current_version
        if installed is None:
            record = self._registry.get(package_id)
            installed = record.installed_version if record else entry.installed_version

        needs_update = installed is not None and is_version_newer(installed, entry.version)
        return UpdateCheck(
            package_id=package_id,
            needs_update=needs_update,
            latest_version=entry.version,
            installed_version=installed,
            changelog=entry.changelog,
        )

    def apply_update(self, handle: SessionHandle) -> UpdateResult:
        """Replace the live install with the catalog's latest version.

        The registry is only written after the new version was published,
        so a failed update leaves ``installed_version`` unchanged.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
            NotInstalledError: If the package has no registry record.
            GamectlError: Any pipeline failure, after the backup was restored.
        """
        package_id = handle.package_id
        entry = self._store.require(package_id)
        record = self._registry.require(package_id)
        install_dir = Path(record.install_dir)

        if not install_dir.is_dir():
            raise NotInstalledError(package_id)

        taken: list[BackupSnapshot] = []

        def take_snapshot() -> None:
            taken.append(
                self._backups.snapshot(package_id, install_dir, record.installed_version)
            )

        try:
            paths, result = self._installer.fetch_and_install(
                handle, entry, install_dir, before_publish=take_snapshot
            )
        except Exception:
            if taken:
                logger.warning(
                    "Update of %s failed, restoring %s", package_id, record.installed_version
                )
                self._backups.restore(taken[0], install_dir)
            raise
        snapshot = taken[0]

        with_backup, evicted = record.with_backup(snapshot, self._max_backups)
        updated = with_backup.updated(
            installed_version=entry.version,
            install_dir=str(paths.install_dir),
            executable_path=str(paths.executable_path),
        )
        self._registry.put(updated)

        for old in evicted:
            self._backups.discard(old)

        logger.info("Updated %s from %s to %s", package_id, record.installed_version, entry.version)
        return UpdateResult(
            record=updated,
            previous_version=record.installed_version,
            backup=snapshot,
            evicted=tuple(evicted),
            mirror_name=result.mirror.name,
        )

    def list_backups(self, package_id: str) -> list[BackupSnapshot]:
        """Retained snapshots for ``package_id``, newest first.

        Raises:
            NotInstalledError: If the package has no registry record.
        """
        record = self._registry.require(package_id)
        return sorted(record.backups, key=lambda b: b.created, reverse=True)
