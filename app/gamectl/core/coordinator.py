"""Session admission and status fan-out.

The SessionCoordinator guarantees at most one non-terminal session per
package id. Workers never mutate sessions directly; they report through
the coordinator, which applies the state machine and publishes every
transition and progress sample to the event bus.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from gamectl.core.errors import (
    AlreadyInProgressError,
    MirrorFailure,
    NoActiveSessionError,
    OperationCancelledError,
)
from gamectl.core.events import EventBus
from gamectl.models.events import EventStatus, ProgressEvent
from gamectl.models.session import (
    DownloadSession,
    MirrorAttempt,
    SessionKind,
    SessionState,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionHandle:
    """A worker's handle on its admitted session.

    Attributes:
        session: The session being driven.
        cancel_token: Set when cancellation is requested.
        published_bytes: Highest byte count published in a progress sample.
    """

    session: DownloadSession
    cancel_token: threading.Event = field(default_factory=threading.Event)
    published_bytes: int = 0

    @property
    def package_id(self) -> str:
        """Package this handle operates on."""
        return self.session.package_id

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self.cancel_token.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self.cancel_token.is_set():
            raise OperationCancelledError(f"Operation for '{self.package_id}' was cancelled")


class SessionCoordinator:
    """Admits sessions and publishes their events.

    Example:
        >>> coordinator = SessionCoordinator()
        >>> channel = coordinator.bus.subscribe()
        >>> handle = coordinator.begin("stellar_quest", SessionKind.INSTALL)
        >>> coordinator.cancel("stellar_quest")
        >>> handle.cancelled
        True
    """

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or EventBus()
        self._lock = threading.Lock()
        self._sessions: dict[str, SessionHandle] = {}

    @property
    def bus(self) -> EventBus:
        """Event bus that receives every transition and sample."""
        return self._bus

    def begin(self, package_id: str, kind: SessionKind) -> SessionHandle:
        """Admit a new session for ``package_id``.

        Args:
            package_id: Package to operate on.
            kind: Install, update, or repair.

        Returns:
            Handle for the worker that will drive the session.

        Raises:
            AlreadyInProgressError: If the package already has a live session.
        """
        with self._lock:
            # A finished session keeps its id until its terminal event is out.
            if package_id in self._sessions:
                raise AlreadyInProgressError(package_id)

            session = DownloadSession(package_id=package_id, kind=kind)
            session.transition(SessionState.STARTED)
            handle = SessionHandle(session=session)
            self._sessions[package_id] = handle

        logger.info("Started %s session for %s", kind.value, package_id)
        self._publish(handle, EventStatus.STARTED, progress_percent=0.0)
        return handle

    def cancel(self, package_id: str) -> None:
        """Request cancellation of the live session for ``package_id``.

        Cancellation is cooperative: the worker notices the token between
        chunks and reports back through :meth:`cancelled`.

        Raises:
            NoActiveSessionError: If the package has no live session.
        """
        with self._lock:
            handle = self._sessions.get(package_id)
            if handle is None or handle.session.is_terminal:
                raise NoActiveSessionError(package_id)
            handle.cancel_token.set()
        logger.info("Cancellation requested for %s", package_id)

    def get(self, package_id: str) -> DownloadSession | None:
        """Return the live session for ``package_id``, if any."""
        with self._lock:
            handle = self._sessions.get(package_id)
            return handle.session if handle is not None else None

    def active_sessions(self) -> list[DownloadSession]:
        """Return every live session."""
        with self._lock:
            return [handle.session for handle in self._sessions.values()]

    def is_active(self, package_id: str) -> bool:
        """Check if ``package_id`` has a live session."""
        return self.get(package_id) is not None

    # ------------------------------------------------------------------
    # Worker reports
    # ------------------------------------------------------------------

    def attempt_started(self, handle: SessionHandle, index: int, mirror_name: str) -> None:
        """Record that the worker is trying the mirror at ``index``."""
        session = handle.session
        session.mirror_index = index
        session.mirror_name = mirror_name
        session.bytes_downloaded = 0
        session.total_bytes = None
        session.bytes_per_second = 0.0
        logger.debug("%s: trying mirror %d (%s)", handle.package_id, index, mirror_name)

    def attempt_finished(self, handle: SessionHandle, attempt: MirrorAttempt) -> None:
        """Record the outcome of one mirror attempt."""
        handle.session.attempts.append(attempt)

    def report_progress(
        self,
        handle: SessionHandle,
        bytes_downloaded: int,
        total_bytes: int | None,
        bytes_per_second: float,
    ) -> None:
        """Update transfer counters and publish a progress sample.

        Samples whose byte count is below what was already published
        (a fallback attempt restarting from zero) update the session but
        are not published, so subscribers see non-decreasing counts.
        """
        session = handle.session
        if session.state is SessionState.STARTED:
            session.transition(SessionState.IN_PROGRESS)
        session.bytes_downloaded = bytes_downloaded
        session.total_bytes = total_bytes
        session.bytes_per_second = bytes_per_second

        if bytes_downloaded < handle.published_bytes:
            return
        handle.published_bytes = bytes_downloaded
        self._publish(handle, EventStatus.PROGRESS)

    def mirror_failed(self, handle: SessionHandle, failure: MirrorFailure) -> None:
        """Publish a per-mirror failure notice."""
        handle.session.last_error = failure.reason
        logger.warning(
            "%s: mirror %s failed: %s", handle.package_id, failure.mirror_name, failure.reason
        )
        self._publish(
            handle,
            EventStatus.MIRROR_FAILED,
            message=f"Mirror {failure.mirror_name} failed: {failure.reason}",
        )

    def extracting(self, handle: SessionHandle, install_dir: str | None = None) -> None:
        """Move the session to Extracting and publish the phase change."""
        handle.session.transition(SessionState.EXTRACTING)
        self._publish(
            handle, EventStatus.EXTRACTING, progress_percent=100.0, install_dir=install_dir
        )

    def complete(
        self,
        handle: SessionHandle,
        install_dir: str | None = None,
        executable_path: str | None = None,
        message: str | None = None,
    ) -> None:
        """Finish the session successfully and release the package id."""
        handle.session.transition(SessionState.COMPLETED)
        logger.info("Completed %s for %s", handle.session.kind.value, handle.package_id)
        self._publish(
            handle,
            EventStatus.COMPLETED,
            progress_percent=100.0,
            message=message,
            install_dir=install_dir,
            executable_path=executable_path,
        )
        self._release(handle)

    def fail(self, handle: SessionHandle, message: str) -> None:
        """Finish the session with a failure and release the package id."""
        handle.session.last_error = message
        handle.session.transition(SessionState.FAILED)
        logger.error("%s of %s failed: %s", handle.session.kind.value, handle.package_id, message)
        self._publish(handle, EventStatus.ERROR, message=message)
        self._release(handle)

    def cancelled(self, handle: SessionHandle) -> None:
        """Return the session to Idle after cancellation and release it.

        Workers call this only after partial files were cleaned up.
        """
        handle.session.transition(SessionState.IDLE)
        logger.info("Cancelled %s for %s", handle.session.kind.value, handle.package_id)
        self._publish(handle, EventStatus.CANCELLED, message="Cancelled")
        self._release(handle)

    def _release(self, handle: SessionHandle) -> None:
        with self._lock:
            if self._sessions.get(handle.package_id) is handle:
                del self._sessions[handle.package_id]

    def _publish(
        self,
        handle: SessionHandle,
        status: EventStatus,
        *,
        progress_percent: float | None = None,
        message: str | None = None,
        install_dir: str | None = None,
        executable_path: str | None = None,
    ) -> None:
        session = handle.session
        if progress_percent is None:
            progress_percent = session.progress_percent
        self._bus.publish(
            ProgressEvent(
                package_id=session.package_id,
                status=status,
                mirror_name=session.mirror_name,
                progress_percent=progress_percent,
                bytes_downloaded=handle.published_bytes,
                total_bytes=session.total_bytes,
                bytes_per_second=session.bytes_per_second,
                message=message,
                install_dir=install_dir,
                executable_path=executable_path,
            )
        )
