"""Progress and status events published to subscribers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventStatus(str, Enum):
    """Kind of event.

    PROGRESS samples may be coalesced by slow subscribers. Every other
    status is a state transition and is always delivered.
    """

    STARTED = "started"
    PROGRESS = "progress"
    MIRROR_FAILED = "mirror_failed"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if the event ends its session."""
        return self in (EventStatus.COMPLETED, EventStatus.ERROR, EventStatus.CANCELLED)


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """A single progress sample or status transition.

    Attributes:
        package_id: Package the event belongs to.
        status: Event kind.
        mirror_name: Mirror in use when the event was emitted.
        progress_percent: Completion percentage if the total is known.
        bytes_downloaded: Bytes received so far.
        total_bytes: Total size if known.
        bytes_per_second: Transfer speed over the sampling window.
        message: Human-readable detail (errors, mirror failures).
        install_dir: Live install directory once known.
        executable_path: Resolved executable on completion.
    """

    package_id: str
    status: EventStatus
    mirror_name: str | None = None
    progress_percent: float | None = None
    bytes_downloaded: int = 0
    total_bytes: int | None = None
    bytes_per_second: float = 0.0
    message: str | None = None
    install_dir: str | None = None
    executable_path: str | None = None

    @property
    def is_progress(self) -> bool:
        """Check if this is a coalescable progress sample."""
        return self.status is EventStatus.PROGRESS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "package_id": self.package_id,
            "mirror_name": self.mirror_name,
            "status": self.status.value,
            "progress_percent": self.progress_percent,
            "bytes_downloaded": self.bytes_downloaded,
            "total_bytes": self.total_bytes,
            "bytes_per_second": self.bytes_per_second,
            "message": self.message,
            "install_dir": self.install_dir,
            "executable_path": self.executable_path,
        }
