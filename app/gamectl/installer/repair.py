"""Repair of broken installs.

Validation is a presence check: the install directory and its executable
must exist, and an install marker, when present, must name the package.
Anything else is repaired by deleting the live directory and running a
full reinstall from the catalog's current mirrors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gamectl.core.coordinator import SessionHandle
from gamectl.core.errors import (
    GamectlError,
    OperationCancelledError,
    RepairNotEnabledError,
    RepairValidationError,
)
from gamectl.core.registry import InstallRegistry
from gamectl.core.store import CatalogStore
from gamectl.installer.marker import read_marker
from gamectl.installer.pipeline import remove_tree
from gamectl.installer.runner import PackageInstaller
from gamectl.models.catalog import CatalogEntry
from gamectl.models.installed import InstalledRecord, create_installed_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepairReport:
    """Outcome of a repair.

    Attributes:
        package_id: Catalog id.
        success: True if the install is valid afterwards.
        repaired_files: Files restored by the reinstall, relative to the
            install directory. Empty when nothing needed repairing.
        errors: Reasons the repair could not complete.
        mirror_name: Mirror used for the reinstall, if one ran.
    """

    package_id: str
    success: bool
    repaired_files: tuple[str, ...] = field(default_factory=tuple)
    errors: tuple[str, ...] = field(default_factory=tuple)
    mirror_name: str | None = None

    @property
    def reinstalled(self) -> bool:
        """Check if a reinstall was performed."""
        return bool(self.repaired_files)


class RepairEngine:
    """Validates installs and reinstalls them when broken."""

    def __init__(
        self,
        store: CatalogStore,
        registry: InstallRegistry,
        installer: PackageInstaller,
        install_root: Path,
    ) -> None:
        self._store = store
        self._registry = registry
        self._installer = installer
        self._install_root = install_root

    def target_dir(self, package_id: str) -> Path:
        """Install directory for ``package_id``."""
        record = self._registry.get(package_id)
        if record is not None:
            return Path(record.install_dir)
        return self._install_root / package_id

    def validate(self, entry: CatalogEntry, record: InstalledRecord | None, install_dir: Path) -> None:
        """Check that an install is structurally intact.

        Raises:
            RepairValidationError: Describing the first problem found.
        """
        if record is None:
            raise RepairValidationError(f"No install record for '{entry.id}'")
        if not install_dir.is_dir():
            raise RepairValidationError(f"Install directory is missing: {install_dir}")
        if not Path(record.executable_path).is_file():
            raise RepairValidationError(f"Executable is missing: {record.executable_path}")

        marker = read_marker(install_dir)
        if marker is not None and marker.package_id != entry.id:
            raise RepairValidationError(
                f"Install directory belongs to '{marker.package_id}', not '{entry.id}'"
            )

    def repair(self, handle: SessionHandle) -> RepairReport:
        """Validate the install and reinstall it if validation fails.

        Returns:
            RepairReport. A valid install yields a successful report with
            no repaired files.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
            RepairNotEnabledError: If the entry does not allow repair.
            OperationCancelledError: If the session was cancelled.
        """
        package_id = handle.package_id
        entry = self._store.require(package_id)
        if not entry.repair_enabled:
            raise RepairNotEnabledError(package_id)

        record = self._registry.get(package_id)
        install_dir = self.target_dir(package_id)

        try:
            self.validate(entry, record, install_dir)
        except RepairValidationError as e:
            logger.warning("Repairing %s: %s", package_id, e)
        else:
            logger.info("%s is intact, nothing to repair", package_id)
            return RepairReport(package_id=package_id, success=True)

        try:
            if install_dir.exists():
                remove_tree(install_dir)
            paths, result = self._installer.fetch_and_install(handle, entry, install_dir)
        except OperationCancelledError:
            raise
        except (GamectlError, OSError) as e:
            return RepairReport(package_id=package_id, success=False, errors=(str(e),))

        if record is not None:
            repaired = record.updated(
                installed_version=entry.version,
                install_dir=str(paths.install_dir),
                executable_path=str(paths.executable_path),
            )
        else:
            repaired = create_installed_record(
                package_id=package_id,
                version=entry.version,
                install_dir=str(paths.install_dir),
                executable_path=str(paths.executable_path),
            )
        self._registry.put(repaired)

        logger.info("Repaired %s: %d file(s) restored", package_id, len(paths.files))
        return RepairReport(
            package_id=package_id,
            success=True,
            repaired_files=paths.files,
            mirror_name=result.mirror.name,
        )
