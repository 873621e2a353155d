"""Reconcile the catalog with what is actually on disk.

The reconciler combines three sources of truth, most specific first: the
install marker inside a directory, the install registry, and the files
themselves. It produces status-annotated catalog entries and can repair
the registry when it has drifted from the filesystem.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from gamectl.core.registry import InstallRegistry
from gamectl.core.versioning import is_version_newer
from gamectl.models.catalog import CatalogEntry, CatalogStatus
from gamectl.models.installed import InstalledRecord, create_installed_record
from gamectl.scanners.install_root import InstallRootScanner, ScannedInstall

logger = logging.getLogger(__name__)


def compute_status(
    entry: CatalogEntry,
    installed_version: str | None,
    executable_found: bool,
) -> CatalogStatus:
    """Compute an entry's display status.

    Precedence: coming_soon > update_available > installed > available.
    """
    if entry.is_coming_soon or entry.status is CatalogStatus.COMING_SOON:
        return CatalogStatus.COMING_SOON
    if not executable_found:
        return CatalogStatus.AVAILABLE
    if installed_version and is_version_newer(installed_version, entry.version):
        return CatalogStatus.UPDATE_AVAILABLE
    return CatalogStatus.INSTALLED


@dataclass
class SyncResult:
    """Registry changes made by :meth:`LocalScanReconciler.sync_registry`.

    Attributes:
        dropped: Ids whose install directory no longer exists.
        adopted: Ids found on disk with a marker but missing from the registry.
    """

    dropped: list[str] = field(default_factory=list)
    adopted: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Check if the registry was modified."""
        return bool(self.dropped or self.adopted)


class LocalScanReconciler:
    """Annotates catalog entries with on-disk install status."""

    def __init__(self, install_root: Path, registry: InstallRegistry) -> None:
        self._scanner = InstallRootScanner(install_root)
        self._registry = registry

    @property
    def install_root(self) -> Path:
        """Directory that is scanned."""
        return self._scanner.root

    def _index(self) -> tuple[dict[str, ScannedInstall], dict[str, ScannedInstall]]:
        by_marker: dict[str, ScannedInstall] = {}
        by_name: dict[str, ScannedInstall] = {}
        for install in self._scanner.scan():
            if install.has_marker:
                by_marker.setdefault(install.package_id, install)
            else:
                by_name[install.directory.name] = install
        return by_marker, by_name

    def scan(self, catalog: Iterable[CatalogEntry]) -> list[CatalogEntry]:
        """Return annotated copies of ``catalog`` entries.

        Never raises for a missing or unreadable install root; every entry
        is then reported as available (or coming soon).
        """
        by_marker, by_name = self._index()
        annotated: list[CatalogEntry] = []

        for entry in catalog:
            record = self._registry.get(entry.id)
            install = by_marker.get(entry.id) or by_name.get(entry.id)
            if install is None and record is not None:
                record_dir = Path(record.install_dir)
                if record_dir.is_dir():
                    install = ScannedInstall(directory=record_dir, package_id=entry.id)

            installed_version: str | None = None
            executable: Path | None = None
            if install is not None:
                installed_version = install.version or (
                    record.installed_version if record else None
                )
                executable = self._resolve_executable(entry, install, record)

            status = compute_status(entry, installed_version, executable is not None)
            annotated.append(
                entry.annotated(
                    status,
                    installed_version=installed_version,
                    install_dir=str(install.directory) if install else None,
                    installed_executable=str(executable) if executable else None,
                )
            )
            logger.debug("%s: %s (installed %s)", entry.id, status.value, installed_version)

        return annotated

    def _resolve_executable(
        self,
        entry: CatalogEntry,
        install: ScannedInstall,
        record: InstalledRecord | None,
    ) -> Path | None:
        if record is not None:
            registered = Path(record.executable_path)
            if registered.is_file() and registered.resolve().is_relative_to(
                install.directory.resolve()
            ):
                return registered
        return install.find_executable(entry.executable_hint)

    def sync_registry(self) -> SyncResult:
        """Bring the registry in line with the install root.

        Records whose install directory vanished are dropped. Marker-bearing
        directories with a runnable executable but no record are adopted.
        """
        result = SyncResult()
        for record in self._registry.all():
            if not Path(record.install_dir).is_dir():
                self._registry.remove(record.package_id)
                result.dropped.append(record.package_id)
                logger.info("Dropped %s: %s no longer exists", record.package_id, record.install_dir)

        for install in self._scanner.scan():
            if install.marker is None or self._registry.get(install.package_id) is not None:
                continue
            executable = install.find_executable()
            if executable is None:
                continue
            self._registry.put(
                create_installed_record(
                    package_id=install.package_id,
                    version=install.marker.version,
                    install_dir=str(install.directory),
                    executable_path=str(executable),
                )
            )
            result.adopted.append(install.package_id)
            logger.info("Adopted %s %s from %s", install.package_id, install.marker.version, install.directory)

        return result
