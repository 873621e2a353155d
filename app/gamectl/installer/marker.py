"""Install directory marker file.

Every published install carries a small ``.gamectl.json`` file naming the
package and version it holds. The local scan uses it to match directories
to catalog ids even when the registry was lost.
"""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MARKER_FILENAME = ".gamectl.json"


@dataclass(frozen=True, slots=True)
class InstallMarker:
    """Contents of an install marker.

    Attributes:
        package_id: Catalog id of the installed package.
        version: Installed version.
        executable: Entry point relative to the install directory.
        installed_at: ISO 8601 timestamp of the install.
    """

    package_id: str
    version: str
    executable: str | None = None
    installed_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "package_id": self.package_id,
            "version": self.version,
            "executable": self.executable,
            "installed_at": self.installed_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstallMarker":
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            package_id=data["package_id"],
            version=data["version"],
            executable=data.get("executable"),
            installed_at=data.get("installed_at", ""),
        )


def marker_path(install_dir: Path) -> Path:
    """Path of the marker inside ``install_dir``."""
    return install_dir / MARKER_FILENAME


def write_marker(
    install_dir: Path,
    package_id: str,
    version: str,
    executable: Path | None = None,
) -> InstallMarker:
    """Write the marker for a freshly extracted install.

    Args:
        install_dir: Directory the package was extracted into.
        package_id: Catalog id.
        version: Installed version.
        executable: Absolute entry point inside ``install_dir``.

    Returns:
        The marker that was written.
    """
    relative = None
    if executable is not None:
        relative = executable.relative_to(install_dir).as_posix()
    marker = InstallMarker(
        package_id=package_id,
        version=version,
        executable=relative,
        installed_at=datetime.now(UTC).isoformat(),
    )
    marker_path(install_dir).write_text(json.dumps(marker.to_dict(), indent=2), encoding="utf-8")
    return marker


def read_marker(install_dir: Path) -> InstallMarker | None:
    """Read the marker from ``install_dir``.

    Returns:
        The marker, or None if it is missing or unreadable.
    """
    path = marker_path(install_dir)
    try:
        if not path.is_file():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return InstallMarker.from_dict(data)
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
        logger.warning("Ignoring unreadable install marker %s: %s", path, e)
        return None
