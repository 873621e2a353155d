"""Download-then-install step shared by install, update, and repair.

Wires the mirror download engine and the install pipeline to a running
session: engine callbacks become coordinator reports, and the staged
archive lives exactly as long as the step.
"""

import logging
from collections.abc import Callable
from pathlib import Path

from gamectl.core.coordinator import SessionCoordinator, SessionHandle
from gamectl.core.errors import PackageUnavailableError
from gamectl.download.engine import FetchResult, MirrorDownloadEngine, TransferSample
from gamectl.installer.pipeline import InstalledPaths, InstallPipeline
from gamectl.models.catalog import CatalogEntry
from gamectl.models.installed import InstalledRecord, create_installed_record

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Downloads a catalog entry and publishes it into an install directory."""

    def __init__(
        self,
        engine: MirrorDownloadEngine,
        pipeline: InstallPipeline,
        coordinator: SessionCoordinator,
    ) -> None:
        self._engine = engine
        self._pipeline = pipeline
        self._coordinator = coordinator

    @property
    def pipeline(self) -> InstallPipeline:
        """Pipeline used to publish archives."""
        return self._pipeline

    def fetch_and_install(
        self,
        handle: SessionHandle,
        entry: CatalogEntry,
        target_dir: Path,
        before_publish: Callable[[], None] | None = None,
    ) -> tuple[InstalledPaths, FetchResult]:
        """Download ``entry`` and publish it as ``target_dir``.

        Args:
            handle: Session driving the operation.
            entry: Catalog entry to install.
            target_dir: Live install directory.
            before_publish: Passed to the pipeline; runs once the download
                and extraction succeeded.

        Returns:
            Tuple of (published paths, fetch result).

        Raises:
            PackageUnavailableError: If the entry is not downloadable.
            DiskSpaceError: If the archive does not fit.
            AllMirrorsExhaustedError: If every mirror failed.
            ExtractionError: If the archive cannot be installed.
            OperationCancelledError: If the session was cancelled.
        """
        if entry.is_coming_soon:
            raise PackageUnavailableError(entry.id, "is coming soon")

        coordinator = self._coordinator

        def on_progress(sample: TransferSample) -> None:
            coordinator.report_progress(
                handle, sample.bytes_downloaded, sample.total_bytes, sample.bytes_per_second
            )

        with self._pipeline.disk_guard.reserve(target_dir.parent, entry.size_bytes):
            with self._pipeline.staging_file(entry.id) as (archive_path, stream):
                result = self._engine.fetch(
                    entry.mirrors,
                    stream,
                    on_progress=on_progress,
                    on_attempt=lambda index, mirror: coordinator.attempt_started(
                        handle, index, mirror.name
                    ),
                    on_mirror_failed=lambda failure: coordinator.mirror_failed(handle, failure),
                    on_attempt_finished=lambda attempt: coordinator.attempt_finished(
                        handle, attempt
                    ),
                    cancel_token=handle.cancel_token,
                )
                stream.close()

                paths = self._pipeline.install(
                    archive_path,
                    target_dir,
                    entry.executable_hint,
                    package_id=entry.id,
                    version=entry.version,
                    expected_size=result.total_bytes,
                    sha256=entry.sha256,
                    on_extracting=lambda: coordinator.extracting(handle, str(target_dir)),
                    before_publish=before_publish,
                    cancel_token=handle.cancel_token,
                )
        return paths, result

    def install(
        self,
        handle: SessionHandle,
        entry: CatalogEntry,
        target_dir: Path,
        previous: InstalledRecord | None = None,
    ) -> tuple[InstalledRecord, InstalledPaths, FetchResult]:
        """Install ``entry`` and build the registry record for it.

        When ``previous`` is given the package is being reinstalled: the new
        record keeps its retained backups.
        """
        paths, result = self.fetch_and_install(handle, entry, target_dir)
        if previous is not None:
            record = previous.updated(
                installed_version=entry.version,
                install_dir=str(paths.install_dir),
                executable_path=str(paths.executable_path),
            )
        else:
            record = create_installed_record(
                package_id=entry.id,
                version=entry.version,
                install_dir=str(paths.install_dir),
                executable_path=str(paths.executable_path),
            )
        logger.info("%s %s installed from %s", entry.id, entry.version, result.mirror.name)
        return record, paths, result
