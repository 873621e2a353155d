"""Free-space checks shared by all concurrent installs."""

import logging
import shutil
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from gamectl.core.errors import DiskSpaceError

logger = logging.getLogger(__name__)

# Archive bytes are needed twice: once staged, once extracted.
DEFAULT_HEADROOM = 2.0


def _existing_ancestor(path: Path) -> Path:
    """Return ``path`` or its nearest ancestor that exists."""
    current = path
    while not current.exists():
        parent = current.parent
        if parent == current:
            break
        current = parent
    return current


class DiskSpaceGuard:
    """Checks and reserves free space under a process-wide lock.

    Reservations made by concurrent installs are subtracted from the free
    space reported by the filesystem, so two large installs started at the
    same time cannot both pass a check that only one of them fits.

    Example:
        >>> guard = DiskSpaceGuard(headroom=2.0)
        >>> with guard.reserve(Path("~/Games").expanduser(), 500_000_000):
        ...     run_install()
    """

    def __init__(
        self,
        headroom: float = DEFAULT_HEADROOM,
        usage: Callable[[Path], Any] = shutil.disk_usage,
    ) -> None:
        self._headroom = headroom
        self._usage = usage
        self._lock = threading.Lock()
        self._reserved = 0

    @property
    def headroom(self) -> float:
        """Multiplier applied to archive sizes."""
        return self._headroom

    @property
    def reserved(self) -> int:
        """Bytes currently reserved by running installs."""
        with self._lock:
            return self._reserved

    def required_bytes(self, size_bytes: int) -> int:
        """Bytes needed to install an archive of ``size_bytes``."""
        return int(size_bytes * self._headroom)

    def available_bytes(self, path: Path) -> int:
        """Free bytes on the filesystem holding ``path``."""
        usage = self._usage(_existing_ancestor(path))
        return int(usage.free)

    def ensure(self, path: Path, size_bytes: int | None) -> None:
        """Check that an archive of ``size_bytes`` fits under ``path``.

        Unknown sizes are not checked.

        Raises:
            DiskSpaceError: If there is not enough free space.
        """
        if not size_bytes:
            return
        with self._lock:
            self._check(path, self.required_bytes(size_bytes))

    @contextmanager
    def reserve(self, path: Path, size_bytes: int | None) -> Iterator[None]:
        """Check free space and hold a reservation for the duration.

        Raises:
            DiskSpaceError: If there is not enough free space.
        """
        if not size_bytes:
            yield
            return

        required = self.required_bytes(size_bytes)
        with self._lock:
            self._check(path, required)
            self._reserved += required
        try:
            yield
        finally:
            with self._lock:
                self._reserved -= required

    def _check(self, path: Path, required: int) -> None:
        # Caller holds self._lock.
        available = self.available_bytes(path) - self._reserved
        logger.debug("Disk check for %s: need %d, have %d", path, required, available)
        if available < required:
            raise DiskSpaceError(required, max(0, available))
