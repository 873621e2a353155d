"""Scanner for the local install root.

Each visible subdirectory of the install root is a candidate install. A
directory is matched to a catalog id by its ``.gamectl.json`` marker or,
failing that, by its name.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from gamectl.installer.archive import find_executable, resolve_entry_point
from gamectl.installer.marker import InstallMarker, read_marker

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScannedInstall:
    """A directory found in the install root.

    Attributes:
        directory: Absolute directory path.
        package_id: Id from the marker, or the directory name.
        marker: Parsed install marker, if present.
    """

    directory: Path
    package_id: str
    marker: InstallMarker | None = None

    @property
    def version(self) -> str | None:
        """Version recorded in the marker."""
        return self.marker.version if self.marker else None

    @property
    def has_marker(self) -> bool:
        """Check if the directory carries an install marker."""
        return self.marker is not None

    def find_executable(self, hint: str | None = None) -> Path | None:
        """Locate the entry point: marker first, then hint, then heuristic."""
        for candidate in (self.marker.executable if self.marker else None, hint):
            if candidate:
                entry = resolve_entry_point(self.directory, candidate)
                if entry is not None:
                    return entry
        return find_executable(self.directory)


class InstallRootScanner:
    """Lists candidate installs below the install root.

    Example:
        >>> scanner = InstallRootScanner(Path("~/Games").expanduser())
        >>> if scanner.is_available():
        ...     for install in scanner.scan():
        ...         print(f"{install.package_id}: {install.version}")
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """Directory that is scanned."""
        return self._root

    def is_available(self) -> bool:
        """Check if the install root exists and can be inspected."""
        try:
            return self._root.is_dir()
        except OSError as e:
            logger.warning("Cannot access install root %s: %s", self._root, e)
            return False

    def scan(self) -> Iterator[ScannedInstall]:
        """Yield every candidate install directory.

        Hidden directories (scratch and backup leftovers) are skipped. A
        missing or unreadable root yields nothing.
        """
        if not self.is_available():
            logger.debug("Install root %s does not exist", self._root)
            return

        try:
            children = sorted(self._root.iterdir())
        except OSError as e:
            logger.warning("Cannot read install root %s: %s", self._root, e)
            return

        for child in children:
            if child.name.startswith("."):
                continue
            try:
                if not child.is_dir():
                    continue
                marker = read_marker(child)
            except OSError as e:
                logger.warning("Skipping unreadable directory %s: %s", child, e)
                continue
            package_id = marker.package_id if marker else child.name
            yield ScannedInstall(directory=child, package_id=package_id, marker=marker)
