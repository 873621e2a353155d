"""Periodic network reachability probe.

The probe runs on its own daemon thread and only records whether the
network is reachable. Other components read that state; the probe never
touches running sessions.
"""

import logging
import socket
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

ConnectFn = Callable[..., Any]


class NetworkProbe:
    """Reports online/offline state by opening a TCP connection.

    Example:
        >>> probe = NetworkProbe(interval=30.0)
        >>> probe.start()
        >>> if not probe.online:
        ...     print("offline, using cached manifest")
        >>> probe.stop()
    """

    def __init__(
        self,
        host: str = "1.1.1.1",
        port: int = 443,
        interval: float = 30.0,
        timeout: float = 3.0,
        connect: ConnectFn = socket.create_connection,
    ) -> None:
        """Initialize the probe.

        Args:
            host: Host to connect to.
            port: TCP port to connect to.
            interval: Seconds between checks once started.
            timeout: Connection timeout per check.
            connect: Connection factory (socket.create_connection signature).
        """
        self._host = host
        self._port = port
        self._interval = interval
        self._timeout = timeout
        self._connect = connect
        self._online: bool | None = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def online(self) -> bool:
        """Last observed state. Assumed online until the first check."""
        with self._lock:
            return self._online is not False

    @property
    def checked(self) -> bool:
        """Check if at least one probe has completed."""
        with self._lock:
            return self._online is not None

    def check(self) -> bool:
        """Probe once and record the result.

        Returns:
            True if the host accepted a connection.
        """
        try:
            conn = self._connect((self._host, self._port), timeout=self._timeout)
            conn.close()
            reachable = True
        except OSError as e:
            logger.debug("Network probe to %s:%d failed: %s", self._host, self._port, e)
            reachable = False

        with self._lock:
            previous = self._online
            self._online = reachable

        if previous is not None and previous != reachable:
            logger.info("Network is now %s", "online" if reachable else "offline")
        return reachable

    def start(self) -> None:
        """Start periodic probing on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="gamectl-network-probe", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop periodic probing."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self._timeout + 1.0)
            self._thread = None

    def _run(self) -> None:
        self.check()
        while not self._stop.wait(self._interval):
            self.check()

    def __enter__(self) -> "NetworkProbe":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
