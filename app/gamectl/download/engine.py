"""Mirror download engine.

Streams a package archive from the first mirror that works. Mirrors are
tried primary first, then in declaration order, each at most once per
call. Recoverable transfer failures move on to the next mirror; when
all mirrors fail the caller receives every per-mirror reason.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import BinaryIO

import httpx

from gamectl import __version__
from gamectl.core.errors import (
    AllMirrorsExhaustedError,
    HTTPStatusError,
    MirrorFailure,
    NetworkError,
    OperationCancelledError,
)
from gamectl.download.speed import SpeedMeter
from gamectl.models.catalog import Mirror
from gamectl.models.session import MirrorAttempt

logger = logging.getLogger(__name__)

# Default configuration values
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CHUNK_SIZE = 64 * 1024
PROGRESS_INTERVAL_SECONDS = 0.25


@dataclass(frozen=True, slots=True)
class TransferSample:
    """One progress sample of a running transfer.

    Attributes:
        mirror_name: Mirror being downloaded from.
        bytes_downloaded: Bytes received by this attempt.
        total_bytes: Content length, if the mirror reported one.
        bytes_per_second: Speed over the sliding window.
    """

    mirror_name: str
    bytes_downloaded: int
    total_bytes: int | None
    bytes_per_second: float

    @property
    def progress_percent(self) -> float | None:
        """Completion percentage if the total is known."""
        if self.total_bytes is None:
            return None
        if self.total_bytes == 0:
            return 0.0
        return min(100.0, self.bytes_downloaded / self.total_bytes * 100.0)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of a successful fetch.

    Attributes:
        mirror: Mirror that delivered the archive.
        attempts: Every attempt made, in order, ending with the success.
        bytes_downloaded: Size of the delivered archive.
        total_bytes: Content length reported by the mirror.
    """

    mirror: Mirror
    attempts: tuple[MirrorAttempt, ...]
    bytes_downloaded: int
    total_bytes: int | None


ProgressCallback = Callable[[TransferSample], None]
AttemptCallback = Callable[[int, Mirror], None]
FailureCallback = Callable[[MirrorFailure], None]


def order_mirrors(mirrors: Iterable[Mirror]) -> list[Mirror]:
    """Order mirrors primary first, then by declaration order.

    Mirrors repeating an earlier URL are dropped so no source is tried
    twice within one operation.
    """
    seen: set[str] = set()
    unique: list[Mirror] = []
    for mirror in mirrors:
        if mirror.url in seen:
            continue
        seen.add(mirror.url)
        unique.append(mirror)
    # sorted() is stable, so declaration order holds within each group
    return sorted(unique, key=lambda m: not m.is_primary)


class MirrorDownloadEngine:
    """Downloads an archive with fallback across mirrors.

    Example:
        >>> engine = MirrorDownloadEngine(timeout=10.0)
        >>> with open("game.zip", "wb") as dest:
        ...     result = engine.fetch(entry.mirrors, dest)
        >>> result.mirror.name
        'Primary'
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        attempt_deadline: float | None = None,
        progress_interval: float = PROGRESS_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the engine.

        Args:
            client: HTTP client to use. A private client is created if None.
            timeout: Connect/read/write timeout for each mirror attempt.
            chunk_size: Bytes requested per streamed chunk.
            attempt_deadline: Optional wall-clock limit for one attempt, so a
                slow but steady mirror cannot hold up fallback forever.
            progress_interval: Minimum seconds between progress samples.
            clock: Monotonic clock used for speed and throttling.
        """
        self._owns_client = client is None
        self._client = client or httpx.Client(
            follow_redirects=True,
            headers={"User-Agent": f"gamectl/{__version__}"},
        )
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._attempt_deadline = attempt_deadline
        self._progress_interval = progress_interval
        self._clock = clock

    def close(self) -> None:
        """Close the HTTP client if this engine created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> MirrorDownloadEngine:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch(
        self,
        mirrors: Iterable[Mirror],
        dest: BinaryIO,
        *,
        on_progress: ProgressCallback | None = None,
        on_attempt: AttemptCallback | None = None,
        on_mirror_failed: FailureCallback | None = None,
        on_attempt_finished: Callable[[MirrorAttempt], None] | None = None,
        cancel_token: threading.Event | None = None,
    ) -> FetchResult:
        """Download into ``dest`` from the first mirror that succeeds.

        ``dest`` is truncated before every attempt, so on return it holds
        exactly the bytes delivered by the successful mirror.

        Args:
            mirrors: Candidate mirrors.
            dest: Seekable binary stream to write into.
            on_progress: Called with throttled progress samples.
            on_attempt: Called with (index, mirror) before each attempt.
            on_mirror_failed: Called when an attempt fails recoverably.
            on_attempt_finished: Called with the record of every attempt.
            cancel_token: Checked between chunks and between attempts.

        Returns:
            FetchResult describing the successful attempt.

        Raises:
            AllMirrorsExhaustedError: If every mirror failed.
            OperationCancelledError: If ``cancel_token`` was set. ``dest``
                is truncated before raising.
        """
        ordered = order_mirrors(mirrors)
        attempts: list[MirrorAttempt] = []
        failures: list[MirrorFailure] = []

        for index, mirror in enumerate(ordered):
            self._check_cancelled(cancel_token, dest)
            if on_attempt is not None:
                on_attempt(index, mirror)
            logger.info("Downloading from mirror %s (%s)", mirror.name, mirror.url)

            try:
                downloaded, total = self._transfer(mirror, dest, on_progress, cancel_token)
            except NetworkError as e:
                failure = MirrorFailure(mirror_name=mirror.name, url=mirror.url, reason=str(e))
                attempt = MirrorAttempt(mirror_name=mirror.name, url=mirror.url, error=str(e))
                failures.append(failure)
                attempts.append(attempt)
                _discard(dest)
                if on_attempt_finished is not None:
                    on_attempt_finished(attempt)
                if on_mirror_failed is not None:
                    on_mirror_failed(failure)
                continue

            attempt = MirrorAttempt(mirror_name=mirror.name, url=mirror.url)
            attempts.append(attempt)
            if on_attempt_finished is not None:
                on_attempt_finished(attempt)
            logger.info("Downloaded %d bytes from %s", downloaded, mirror.name)
            return FetchResult(
                mirror=mirror,
                attempts=tuple(attempts),
                bytes_downloaded=downloaded,
                total_bytes=total,
            )

        _discard(dest)
        raise AllMirrorsExhaustedError(failures)

    def _transfer(
        self,
        mirror: Mirror,
        dest: BinaryIO,
        on_progress: ProgressCallback | None,
        cancel_token: threading.Event | None,
    ) -> tuple[int, int | None]:
        """Stream one mirror into ``dest``.

        Returns:
            Tuple of (bytes downloaded, content length or None).

        Raises:
            NetworkError: On connection errors, timeouts, or truncated bodies.
            HTTPStatusError: On non-success responses.
            OperationCancelledError: If cancelled mid-transfer.
        """
        _discard(dest)
        meter = SpeedMeter(clock=self._clock)
        started = self._clock()
        downloaded = 0
        total: int | None = None

        try:
            with self._client.stream(
                "GET", mirror.url, timeout=httpx.Timeout(self._timeout)
            ) as response:
                if not response.is_success:
                    raise HTTPStatusError(
                        response.status_code,
                        f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                    )

                total = _content_length(response)
                last_emit = started
                meter.update(0, started)

                for chunk in response.iter_bytes(self._chunk_size):
                    self._check_cancelled(cancel_token, dest)
                    dest.write(chunk)
                    downloaded += len(chunk)

                    now = self._clock()
                    speed = meter.update(downloaded, now)
                    if self._attempt_deadline is not None and now - started > self._attempt_deadline:
                        raise NetworkError(
                            f"Attempt exceeded {self._attempt_deadline:.0f}s deadline"
                        )
                    if on_progress is not None and (
                        now - last_emit >= self._progress_interval or downloaded == total
                    ):
                        on_progress(TransferSample(mirror.name, downloaded, total, speed))
                        last_emit = now

        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Connection error: {e}") from e

        if total is not None and downloaded < total:
            raise NetworkError(f"Transfer ended early ({downloaded} of {total} bytes)")

        if on_progress is not None and downloaded != total:
            on_progress(TransferSample(mirror.name, downloaded, total, 0.0))

        dest.flush()
        return downloaded, total

    def _check_cancelled(self, cancel_token: threading.Event | None, dest: BinaryIO) -> None:
        if cancel_token is not None and cancel_token.is_set():
            _discard(dest)
            raise OperationCancelledError("Download cancelled")


def _content_length(response: httpx.Response) -> int | None:
    raw = response.headers.get("content-length")
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def _discard(dest: BinaryIO) -> None:
    """Drop any bytes written by a previous attempt."""
    dest.seek(0)
    dest.truncate()
