"""Install/extract pipeline.

Turns a staged archive into a live install directory. Extraction happens in
a scratch directory next to the target; the live directory is only touched
by the final rename, so a failure at any earlier step leaves it exactly as
it was.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from gamectl.core.errors import ExtractionError, OperationCancelledError
from gamectl.core.paths import ensure_dir
from gamectl.installer.archive import (
    content_root,
    extract_archive,
    list_files,
    locate_executable,
    verify_archive,
)
from gamectl.installer.disk import DiskSpaceGuard
from gamectl.installer.marker import write_marker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstalledPaths:
    """Where a published install lives.

    Attributes:
        install_dir: Live install directory.
        executable_path: Resolved entry point inside ``install_dir``.
        files: Installed files relative to ``install_dir``.
    """

    install_dir: Path
    executable_path: Path
    files: tuple[str, ...]


def remove_tree(path: Path) -> None:
    """Delete a directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class InstallPipeline:
    """Verifies, extracts, and publishes package archives.

    Example:
        >>> pipeline = InstallPipeline(get_staging_dir())
        >>> with pipeline.staging_file("stellar_quest") as (archive, stream):
        ...     stream.write(payload)
        ...     stream.flush()
        ...     paths = pipeline.install(archive, root / "stellar_quest", None,
        ...                              package_id="stellar_quest", version="2.2.3")
    """

    def __init__(self, staging_dir: Path, disk_guard: DiskSpaceGuard | None = None) -> None:
        """Initialize the pipeline.

        Args:
            staging_dir: Directory for downloaded archives.
            disk_guard: Shared free-space guard. A private one is created if None.
        """
        self._staging_dir = staging_dir
        self._disk_guard = disk_guard or DiskSpaceGuard()

    @property
    def disk_guard(self) -> DiskSpaceGuard:
        """Free-space guard shared by concurrent installs."""
        return self._disk_guard

    @contextmanager
    def staging_file(self, package_id: str) -> Iterator[tuple[Path, BinaryIO]]:
        """Open a temporary archive file in the staging directory.

        The file is removed when the block exits, whether or not the
        install succeeded.

        Yields:
            Tuple of (archive path, open binary stream).
        """
        ensure_dir(self._staging_dir, "staging")
        handle = tempfile.NamedTemporaryFile(
            mode="w+b",
            dir=self._staging_dir,
            prefix=f"{package_id}-",
            suffix=".download",
            delete=False,
        )
        path = Path(handle.name)
        try:
            yield path, handle
        finally:
            handle.close()
            path.unlink(missing_ok=True)
            logger.debug("Removed staged archive %s", path)

    def install(
        self,
        archive_path: Path,
        target_dir: Path,
        executable_hint: str | None = None,
        *,
        package_id: str,
        version: str,
        expected_size: int | None = None,
        sha256: str | None = None,
        on_extracting: Callable[[], None] | None = None,
        before_publish: Callable[[], None] | None = None,
        cancel_token: threading.Event | None = None,
    ) -> InstalledPaths:
        """Publish ``archive_path`` as the live directory ``target_dir``.

        Args:
            archive_path: Staged archive.
            target_dir: Live install directory to create or replace.
            executable_hint: Entry point declared by the catalog.
            package_id: Catalog id, recorded in the install marker.
            version: Version being installed.
            expected_size: Exact archive size reported by the mirror.
            sha256: Expected checksum, if declared.
            on_extracting: Called once verification passed, before extraction.
            before_publish: Called after extraction succeeded, right before
                the rename that publishes the new directory.
            cancel_token: Checked before extraction and before publishing.

        Returns:
            InstalledPaths of the published install.

        Raises:
            ExtractionError: If verification, extraction, or entry-point
                resolution fails. ``target_dir`` is untouched.
            OperationCancelledError: If cancelled before publishing.
        """
        archive_format = verify_archive(archive_path, expected_size, sha256)
        _check_cancelled(cancel_token)
        if on_extracting is not None:
            on_extracting()

        ensure_dir(target_dir.parent, "install")
        scratch = Path(
            tempfile.mkdtemp(prefix=f".{target_dir.name}-", suffix=".partial", dir=target_dir.parent)
        )
        try:
            unpacked = scratch / "content"
            extract_archive(archive_path, unpacked, archive_format)
            root = content_root(unpacked).resolve()

            executable = locate_executable(root, executable_hint)
            write_marker(root, package_id, version, executable)
            files = tuple(list_files(root))
            relative_executable = executable.relative_to(root)

            _check_cancelled(cancel_token)
            if before_publish is not None:
                before_publish()
            self._publish(root, target_dir)
        except OSError as e:
            raise ExtractionError(f"Failed to install {package_id}: {e}") from e
        finally:
            if scratch.exists():
                shutil.rmtree(scratch, ignore_errors=True)

        executable_path = target_dir / relative_executable
        logger.info("Installed %s %s into %s", package_id, version, target_dir)
        return InstalledPaths(
            install_dir=target_dir,
            executable_path=executable_path,
            files=files,
        )

    def _publish(self, source: Path, target_dir: Path) -> None:
        """Atomically swap ``source`` in as ``target_dir``.

        An existing live directory is moved aside first and put back if
        the rename fails.
        """
        previous: Path | None = None
        if target_dir.exists():
            previous = target_dir.with_name(f".{target_dir.name}.previous")
            remove_tree(previous)
            os.replace(target_dir, previous)

        try:
            os.replace(source, target_dir)
        except OSError:
            if previous is not None:
                os.replace(previous, target_dir)
            raise

        if previous is not None:
            shutil.rmtree(previous, ignore_errors=True)


def _check_cancelled(cancel_token: threading.Event | None) -> None:
    if cancel_token is not None and cancel_token.is_set():
        raise OperationCancelledError("Install cancelled")
