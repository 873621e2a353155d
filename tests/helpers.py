"""Test helpers shared by fixtures and test modules."""

import io
import zipfile
from collections.abc import Callable

import httpx

PRIMARY_URL = "https://primary.example/stellar_quest-{version}.zip"
BACKUP_URL = "https://backup.example/stellar_quest-{version}.zip"


def build_zip(files: dict[str, bytes], executables: tuple[str, ...] = ()) -> bytes:
    """Build an in-memory zip archive.

    Members are stored uncompressed so the compression-ratio guard never
    trips on small repetitive test payloads.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_STORED) as archive:
        for name, content in files.items():
            info = zipfile.ZipInfo(name)
            mode = 0o755 if name in executables else 0o644
            info.external_attr = mode << 16
            archive.writestr(info, content)
    return buffer.getvalue()


def game_files(version: str = "2.2.3") -> dict[str, bytes]:
    """Contents of a typical game archive with a wrapping top-level folder."""
    return {
        "StellarQuest/StellarQuest.exe": b"MZ stellar quest " + version.encode(),
        "StellarQuest/unins000.exe": b"MZ uninstaller",
        "StellarQuest/data/level1.dat": b"level one " + version.encode(),
        "StellarQuest/version.txt": version.encode(),
    }


class FakeMirrorHost:
    """Routes for httpx.MockTransport keyed by full URL.

    Every requested URL is recorded in order.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[str] = []

    def serve(self, url: str, payload: bytes, status_code: int = 200) -> None:
        """Answer ``url`` with ``payload``."""
        self.routes[url] = lambda request: httpx.Response(status_code, content=payload)

    def fail(self, url: str, status_code: int = 500) -> None:
        """Answer ``url`` with an error status."""
        self.routes[url] = lambda request: httpx.Response(status_code, content=b"error")

    def timeout(self, url: str) -> None:
        """Time out every request to ``url``."""

        def raise_timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        self.routes[url] = raise_timeout

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, content=b"not found")
        return route(request)

    def client(self) -> httpx.Client:
        """HTTP client whose requests are answered by this host."""
        return httpx.Client(transport=httpx.MockTransport(self.handler))
