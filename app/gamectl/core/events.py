"""Event fan-out between workers and subscribers.

Workers publish ProgressEvent objects to an EventBus without blocking.
Each subscriber owns an EventChannel with two delivery guarantees:

- status transitions are always queued and delivered in order;
- progress samples are coalesced: a new sample for a package replaces
  that package's pending sample, unless a status event for the same
  package was queued after it.

The number of pending progress samples is therefore bounded by the
number of status events plus one per package, however slow the reader.
"""

import logging
import threading
from collections import deque
from collections.abc import Iterator

from gamectl.models.events import ProgressEvent

logger = logging.getLogger(__name__)


class EventChannel:
    """Per-subscriber queue with latest-wins progress coalescing."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending: deque[ProgressEvent] = deque()
        self._closed = False
        self._coalesced = 0

    def put(self, event: ProgressEvent) -> None:
        """Queue an event. Never blocks on the reader."""
        with self._cond:
            if self._closed:
                return
            if event.is_progress and self._replace_pending_progress(event):
                self._coalesced += 1
            else:
                self._pending.append(event)
            self._cond.notify_all()

    def _replace_pending_progress(self, event: ProgressEvent) -> bool:
        # Walk back to the newest pending event of the same package.
        for index in range(len(self._pending) - 1, -1, -1):
            pending = self._pending[index]
            if pending.package_id != event.package_id:
                continue
            if pending.is_progress:
                self._pending[index] = event
                return True
            return False
        return False

    def get(self, timeout: float | None = None) -> ProgressEvent | None:
        """Take the next event.

        Args:
            timeout: Seconds to wait. None waits until an event arrives
                or the channel is closed.

        Returns:
            The next event, or None on timeout or when closed and drained.
        """
        with self._cond:
            if not self._pending and not self._closed:
                self._cond.wait(timeout)
            if self._pending:
                return self._pending.popleft()
            return None

    def drain(self) -> list[ProgressEvent]:
        """Take every pending event without waiting."""
        with self._cond:
            events = list(self._pending)
            self._pending.clear()
            return events

    def close(self) -> None:
        """Stop accepting events and wake any waiting reader."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        """Check if the channel was closed."""
        with self._cond:
            return self._closed

    @property
    def coalesced(self) -> int:
        """Number of progress samples superseded before being read."""
        with self._cond:
            return self._coalesced

    def __len__(self) -> int:
        with self._cond:
            return len(self._pending)

    def __iter__(self) -> Iterator[ProgressEvent]:
        """Yield events until the channel is closed and drained."""
        while True:
            event = self.get()
            if event is None:
                if self.closed:
                    return
                continue
            yield event


class EventBus:
    """Publishes events to every subscribed channel."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._channels: list[EventChannel] = []

    def subscribe(self) -> EventChannel:
        """Register and return a new channel."""
        channel = EventChannel()
        with self._lock:
            self._channels.append(channel)
        return channel

    def unsubscribe(self, channel: EventChannel) -> None:
        """Remove and close a channel."""
        with self._lock:
            if channel in self._channels:
                self._channels.remove(channel)
        channel.close()

    def publish(self, event: ProgressEvent) -> None:
        """Deliver an event to every channel."""
        with self._lock:
            channels = list(self._channels)
        for channel in channels:
            channel.put(event)
        if not event.is_progress:
            logger.debug("%s: %s", event.package_id, event.status.value)

    @property
    def subscriber_count(self) -> int:
        """Number of registered channels."""
        with self._lock:
            return len(self._channels)
