"""Sliding-window transfer speed measurement."""

import time
from collections import deque
from collections.abc import Callable

# Default window over which the instantaneous speed is averaged
DEFAULT_WINDOW_SECONDS = 3.0


class SpeedMeter:
    """Computes bytes per second over a sliding time window.

    Example:
        >>> meter = SpeedMeter(window=2.0)
        >>> meter.update(0, now=0.0)
        0.0
        >>> meter.update(2048, now=1.0)
        2048.0
    """

    def __init__(
        self,
        window: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = window
        self._clock = clock
        self._samples: deque[tuple[float, int]] = deque()

    def update(self, total_bytes: int, now: float | None = None) -> float:
        """Record the running byte total and return the current speed.

        Args:
            total_bytes: Bytes transferred so far in this attempt.
            now: Sample time; defaults to the meter's clock.

        Returns:
            Average bytes per second across the window.
        """
        timestamp = self._clock() if now is None else now
        self._samples.append((timestamp, total_bytes))

        # Keep one sample older than the window as the baseline.
        while len(self._samples) > 2 and self._samples[1][0] <= timestamp - self._window:
            self._samples.popleft()

        first_time, first_bytes = self._samples[0]
        elapsed = timestamp - first_time
        if elapsed <= 0:
            return 0.0
        return max(0.0, (total_bytes - first_bytes) / elapsed)

    def reset(self) -> None:
        """Forget all samples."""
        self._samples.clear()
