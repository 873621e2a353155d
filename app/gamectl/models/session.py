"""Download session model and its state machine.

A session is one in-flight install, update, or repair of a single
package. It is created when the operation is admitted and destroyed
once it reaches a terminal state or is cancelled.

State machine::

    Idle -> Started -> InProgress -> Extracting -> Completed
    any non-terminal state -> Failed
    any non-terminal state -> Idle (cancellation)
"""

from dataclasses import dataclass, field
from enum import Enum

from gamectl.core.errors import InvalidTransitionError


class SessionKind(str, Enum):
    """Kind of operation a session performs."""

    INSTALL = "install"
    UPDATE = "update"
    REPAIR = "repair"


class SessionState(str, Enum):
    """Lifecycle state of a download session."""

    IDLE = "idle"
    STARTED = "started"
    IN_PROGRESS = "in_progress"
    EXTRACTING = "extracting"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are possible."""
        return self in (SessionState.COMPLETED, SessionState.FAILED)


# Allowed forward transitions. FAILED and IDLE (cancel) are handled separately.
# STARTED -> COMPLETED covers a repair whose validation finds nothing to do.
_FORWARD: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.STARTED}),
    SessionState.STARTED: frozenset(
        {SessionState.IN_PROGRESS, SessionState.EXTRACTING, SessionState.COMPLETED}
    ),
    SessionState.IN_PROGRESS: frozenset({SessionState.IN_PROGRESS, SessionState.EXTRACTING}),
    SessionState.EXTRACTING: frozenset({SessionState.COMPLETED}),
    SessionState.COMPLETED: frozenset(),
    SessionState.FAILED: frozenset(),
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    """Check whether ``current`` may move to ``target``.

    Args:
        current: State the session is in.
        target: Requested next state.

    Returns:
        True if the transition is allowed.
    """
    if current.is_terminal:
        return False
    if target is SessionState.FAILED:
        return True
    if target is SessionState.IDLE:
        return current is not SessionState.IDLE
    return target in _FORWARD[current]


@dataclass(frozen=True, slots=True)
class MirrorAttempt:
    """Record of one attempt against one mirror.

    Attributes:
        mirror_name: Display name of the mirror.
        url: URL that was requested.
        error: Failure reason, or None if the attempt succeeded.
    """

    mirror_name: str
    url: str
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the attempt completed the transfer."""
        return self.error is None


@dataclass(slots=True)
class DownloadSession:
    """Mutable state of one in-flight operation.

    Only the session coordinator mutates sessions; workers report to it.

    Attributes:
        package_id: Catalog id being operated on.
        kind: Install, update, or repair.
        state: Current lifecycle state.
        mirror_index: Index of the mirror currently attempted.
        mirror_name: Name of the mirror currently attempted.
        bytes_downloaded: Bytes received by the current attempt.
        total_bytes: Size reported by the mirror, if known.
        bytes_per_second: Instantaneous transfer speed.
        last_error: Most recent failure message.
        attempts: One record per mirror attempted so far.
    """

    package_id: str
    kind: SessionKind
    state: SessionState = SessionState.IDLE
    mirror_index: int = 0
    mirror_name: str | None = None
    bytes_downloaded: int = 0
    total_bytes: int | None = None
    bytes_per_second: float = 0.0
    last_error: str | None = None
    attempts: list[MirrorAttempt] = field(default_factory=list)

    def transition(self, target: SessionState) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the state machine forbids the move.
        """
        if not can_transition(self.state, target):
            msg = (
                f"Session for '{self.package_id}' cannot move from "
                f"{self.state.value} to {target.value}"
            )
            raise InvalidTransitionError(msg)
        self.state = target

    @property
    def is_terminal(self) -> bool:
        """Check if the session has finished."""
        return self.state.is_terminal

    @property
    def progress_percent(self) -> float | None:
        """Download completion percentage, if the total size is known."""
        if self.total_bytes is None:
            return None
        if self.total_bytes == 0:
            return 0.0
        return min(100.0, self.bytes_downloaded / self.total_bytes * 100.0)
