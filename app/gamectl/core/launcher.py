"""Launcher facade.

The Launcher owns every long-lived component (catalog store, registry,
session coordinator, worker pool) and exposes the user-facing commands.
Long-running commands return futures; their progress is observed through
an event channel obtained from :meth:`Launcher.subscribe`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, TypeVar

import httpx

from gamectl.core.config import LauncherConfig
from gamectl.core.coordinator import SessionCoordinator, SessionHandle
from gamectl.core.errors import (
    GamectlError,
    NotInstalledError,
    OperationCancelledError,
    PackageUnavailableError,
    RepairNotEnabledError,
)
from gamectl.core.events import EventChannel
from gamectl.core.manifest import CatalogSnapshot, ManifestProvider
from gamectl.core.network import NetworkProbe
from gamectl.core.paths import get_backup_root, get_staging_dir
from gamectl.core.reconcile import LocalScanReconciler, SyncResult
from gamectl.core.registry import InstallRegistry
from gamectl.core.state import StateManager
from gamectl.core.store import CatalogStore
from gamectl.download.engine import MirrorDownloadEngine
from gamectl.installer.backup import BackupManager, UpdateCheck, UpdateManager, UpdateResult
from gamectl.installer.disk import DiskSpaceGuard
from gamectl.installer.pipeline import InstallPipeline
from gamectl.installer.repair import RepairEngine, RepairReport
from gamectl.installer.runner import PackageInstaller
from gamectl.models.catalog import Catalog, CatalogEntry
from gamectl.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from gamectl.models.installed import BackupSnapshot, InstalledRecord
from gamectl.models.session import SessionKind
from gamectl.utils.shell import LaunchResult, build_launch_command, ensure_executable, spawn_detached

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Launcher:
    """Entry point for install, update, repair, scan, and launch.

    Example:
        >>> with Launcher(load_config()) as launcher:
        ...     launcher.load_catalog()
        ...     channel = launcher.subscribe()
        ...     future = launcher.install("stellar_quest")
        ...     record = future.result()
    """

    def __init__(
        self,
        config: LauncherConfig | None = None,
        *,
        registry: InstallRegistry | None = None,
        state: StateManager | None = None,
        provider: ManifestProvider | None = None,
        client: httpx.Client | None = None,
        probe: NetworkProbe | None = None,
        staging_dir: Path | None = None,
        backup_root: Path | None = None,
    ) -> None:
        """Wire up the launcher components.

        Args:
            config: Launcher settings. Defaults are used if None.
            registry: Install registry. Default: XDG state dir.
            state: History store. Default: XDG state dir.
            provider: Manifest provider. Built from ``config`` if None.
            client: HTTP client shared by downloads.
            probe: Network probe consulted by the manifest provider.
            staging_dir: Directory for downloaded archives.
            backup_root: Directory for update snapshots.
        """
        self._config = config or LauncherConfig()
        install_root = self._config.effective_install_root

        self._store = CatalogStore()
        self._registry = registry or InstallRegistry()
        self._state = state or StateManager()
        self._coordinator = SessionCoordinator()
        self._probe = probe
        self._provider = provider or ManifestProvider(
            url=self._config.manifest_url,
            path=self._config.manifest_path,
            client=client,
            timeout=self._config.mirror_timeout_seconds,
            probe=probe,
        )

        self._engine = MirrorDownloadEngine(
            client=client,
            timeout=self._config.mirror_timeout_seconds,
            chunk_size=self._config.chunk_size,
            attempt_deadline=self._config.attempt_deadline_seconds,
        )
        pipeline = InstallPipeline(
            staging_dir or get_staging_dir(),
            DiskSpaceGuard(headroom=self._config.disk_headroom),
        )
        installer = PackageInstaller(self._engine, pipeline, self._coordinator)
        self._installer = installer
        self._updates = UpdateManager(
            self._store,
            self._registry,
            installer,
            BackupManager(backup_root or get_backup_root()),
            max_backups=self._config.max_backups,
        )
        self._repairs = RepairEngine(self._store, self._registry, installer, install_root)
        self._reconciler = LocalScanReconciler(install_root, self._registry)

        self._executor = ThreadPoolExecutor(
            max_workers=self._config.max_concurrent_sessions,
            thread_name_prefix="gamectl-session",
        )

    @property
    def config(self) -> LauncherConfig:
        """Active configuration."""
        return self._config

    @property
    def coordinator(self) -> SessionCoordinator:
        """Session coordinator for live operations."""
        return self._coordinator

    @property
    def registry(self) -> InstallRegistry:
        """Registry of installed packages."""
        return self._registry

    @property
    def install_root(self) -> Path:
        """Directory packages are installed into."""
        return self._config.effective_install_root

    @property
    def offline(self) -> bool:
        """True if the current catalog came from the offline cache."""
        return self._store.offline

    def subscribe(self) -> EventChannel:
        """Open a channel receiving every session event."""
        return self._coordinator.bus.subscribe()

    def unsubscribe(self, channel: EventChannel) -> None:
        """Close a channel opened with :meth:`subscribe`."""
        self._coordinator.bus.unsubscribe(channel)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def load_catalog(self) -> CatalogSnapshot:
        """Load the manifest and annotate statuses from disk.

        Raises:
            ManifestError: If no catalog could be loaded.
        """
        snapshot = self._provider.load()
        self._store.replace(snapshot.catalog, offline=snapshot.offline)
        self.scan()
        return snapshot

    def set_catalog(self, catalog: Catalog, offline: bool = False) -> list[CatalogEntry]:
        """Use an already parsed catalog and annotate statuses from disk."""
        self._store.replace(catalog, offline=offline)
        return self.scan()

    def catalog(self) -> list[CatalogEntry]:
        """Current status-annotated catalog entries."""
        return list(self._store.snapshot().games)

    def scan(self) -> list[CatalogEntry]:
        """Re-scan the install root and refresh every entry's status."""
        entries = self._reconciler.scan(self._store.snapshot().games)
        self._store.annotate(entries)
        return entries

    def sync_registry(self) -> SyncResult:
        """Reconcile the registry with the install root, then re-scan."""
        result = self._reconciler.sync_registry()
        self.scan()
        return result

    def get(self, package_id: str) -> CatalogEntry:
        """Look up a catalog entry.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
        """
        return self._store.require(package_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def install(self, package_id: str) -> Future[InstalledRecord]:
        """Start installing ``package_id`` in the background.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
            PackageUnavailableError: If the entry is coming soon.
            AlreadyInProgressError: If the package already has a live session.
        """
        entry = self._store.require(package_id)
        if entry.is_coming_soon:
            raise PackageUnavailableError(package_id, "is coming soon")
        handle = self._coordinator.begin(package_id, SessionKind.INSTALL)
        return self._submit(handle, HistoryActionType.INSTALL, self._do_install)

    def update(self, package_id: str) -> Future[UpdateResult]:
        """Start updating ``package_id`` in the background.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
            NotInstalledError: If the package is not installed.
            AlreadyInProgressError: If the package already has a live session.
        """
        self._store.require(package_id)
        self._registry.require(package_id)
        handle = self._coordinator.begin(package_id, SessionKind.UPDATE)
        return self._submit(handle, HistoryActionType.UPDATE, self._do_update)

    def repair(self, package_id: str) -> Future[RepairReport]:
        """Start repairing ``package_id`` in the background.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
            RepairNotEnabledError: If the entry does not allow repair.
            AlreadyInProgressError: If the package already has a live session.
        """
        entry = self._store.require(package_id)
        if not entry.repair_enabled:
            raise RepairNotEnabledError(package_id)
        handle = self._coordinator.begin(package_id, SessionKind.REPAIR)
        return self._submit(handle, HistoryActionType.REPAIR, self._do_repair)

    def check_update(self, package_id: str, current_version: str | None = None) -> UpdateCheck:
        """Compare the installed version with the catalog.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
        """
        return self._updates.check_update(package_id, current_version)

    def cancel(self, package_id: str) -> None:
        """Request cancellation of the live operation for ``package_id``.

        Raises:
            NoActiveSessionError: If nothing is running for the package.
        """
        self._coordinator.cancel(package_id)

    def list_backups(self, package_id: str) -> list[BackupSnapshot]:
        """Retained update snapshots, newest first.

        Raises:
            NotInstalledError: If the package is not installed.
        """
        return self._updates.list_backups(package_id)

    def launch(self, package_id: str) -> LaunchResult:
        """Start the installed game as a detached process.

        Raises:
            NotInstalledError: If no runnable executable is known.
            OSError: If the process cannot be started.
        """
        executable: Path | None = None
        record = self._registry.get(package_id)
        if record is not None and Path(record.executable_path).is_file():
            executable = Path(record.executable_path)
        else:
            entry = self._store.get(package_id)
            if entry is not None and entry.installed_executable:
                executable = Path(entry.installed_executable)
        if executable is None or not executable.is_file():
            raise NotInstalledError(package_id)

        ensure_executable(executable)
        args = build_launch_command(executable)
        logger.info("Launching %s: %s", package_id, " ".join(args))
        return spawn_detached(args, cwd=str(executable.parent))

    def history(self, limit: int | None = None, package_id: str | None = None) -> list[HistoryEntry]:
        """Recorded operations, newest first."""
        return self._state.get_history(limit=limit, package_id=package_id)

    def close(self, wait: bool = True) -> None:
        """Shut down the worker pool and release network resources."""
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
        self._engine.close()
        if self._probe is not None:
            self._probe.stop()

    def __enter__(self) -> Launcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _submit(
        self,
        handle: SessionHandle,
        action: HistoryActionType,
        work: Callable[[SessionHandle], T],
    ) -> Future[T]:
        try:
            return self._executor.submit(self._run_session, handle, action, work)
        except RuntimeError as e:
            self._coordinator.fail(handle, str(e))
            raise

    def _run_session(
        self,
        handle: SessionHandle,
        action: HistoryActionType,
        work: Callable[[SessionHandle], T],
    ) -> T:
        """Run ``work`` and make sure the session always ends."""
        try:
            return work(handle)
        except OperationCancelledError:
            self._coordinator.cancelled(handle)
            self._refresh()
            raise
        except Exception as e:
            # Any failure must reach a terminal state or the package stays busy.
            self._coordinator.fail(handle, str(e))
            self._record(action, handle.package_id, success=False, error=str(e))
            self._refresh()
            raise

    def _do_install(self, handle: SessionHandle) -> InstalledRecord:
        entry = self._store.require(handle.package_id)
        record, paths, result = self._installer.install(
            handle, entry, self.install_root / entry.id, previous=self._registry.get(entry.id)
        )
        self._registry.put(record)
        self._record(
            HistoryActionType.INSTALL,
            entry.id,
            version=entry.version,
            mirror=result.mirror.name,
            attempts=len(result.attempts),
        )
        self._refresh()
        self._coordinator.complete(
            handle,
            install_dir=str(paths.install_dir),
            executable_path=str(paths.executable_path),
        )
        return record

    def _do_update(self, handle: SessionHandle) -> UpdateResult:
        result = self._updates.apply_update(handle)
        self._record(
            HistoryActionType.UPDATE,
            handle.package_id,
            version=result.record.installed_version,
            previous_version=result.previous_version,
            mirror=result.mirror_name,
        )
        self._refresh()
        self._coordinator.complete(
            handle,
            install_dir=result.record.install_dir,
            executable_path=result.record.executable_path,
        )
        return result

    def _do_repair(self, handle: SessionHandle) -> RepairReport:
        report = self._repairs.repair(handle)
        record = self._registry.get(handle.package_id)
        version = record.installed_version if record else None

        if not report.success:
            message = "; ".join(report.errors) or "Repair failed"
            self._coordinator.fail(handle, message)
            self._record(
                HistoryActionType.REPAIR, handle.package_id, success=False, error=message
            )
            self._refresh()
            return report

        if report.reinstalled:
            self._record(
                HistoryActionType.REPAIR,
                handle.package_id,
                version=version,
                mirror=report.mirror_name,
                repaired_files=len(report.repaired_files),
            )
        self._refresh()
        message = (
            f"Restored {len(report.repaired_files)} file(s)"
            if report.reinstalled
            else "Install is intact"
        )
        self._coordinator.complete(
            handle,
            install_dir=record.install_dir if record else None,
            executable_path=record.executable_path if record else None,
            message=message,
        )
        return report

    def _refresh(self) -> None:
        """Re-scan after an operation; a failure here never fails the operation."""
        try:
            self.scan()
        except GamectlError as e:
            logger.warning("Failed to refresh catalog status: %s", e)

    def _record(
        self,
        action: HistoryActionType,
        package_id: str,
        *,
        version: str | None = None,
        previous_version: str | None = None,
        success: bool = True,
        **metadata: Any,
    ) -> None:
        """Append a history entry; failures are logged, not raised."""
        entry = create_history_entry(
            action,
            [HistoryItem(package_id=package_id, version=version, previous_version=previous_version)],
            success=success,
            metadata={key: value for key, value in metadata.items() if value is not None},
        )
        try:
            self._state.record_action(entry)
        except (OSError, RuntimeError) as e:
            logger.warning("Failed to record history for %s: %s", package_id, e)
