"""Catalog manifest loading.

This module fetches the JSON catalog over HTTP, validates it with the
Pydantic catalog models, and keeps a cached copy on disk that is used
when the manifest host cannot be reached.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from gamectl import __version__
from gamectl.core.errors import GamectlError
from gamectl.core.paths import get_manifest_cache_path
from gamectl.models.catalog import Catalog

if TYPE_CHECKING:
    from gamectl.core.network import NetworkProbe

logger = logging.getLogger(__name__)


class ManifestError(GamectlError):
    """Base exception for manifest-related errors."""


class ManifestFetchError(ManifestError):
    """Raised when the manifest cannot be obtained from any source."""


class ManifestParseError(ManifestError):
    """Raised when the manifest is not valid JSON."""


class ManifestValidationError(ManifestError):
    """Raised when manifest content is invalid."""


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    """A loaded catalog and where it came from.

    Attributes:
        catalog: Validated catalog.
        source: URL or file path the catalog was read from.
        offline: True if the catalog came from the local cache.
        reason: Why the cache was used, if it was.
    """

    catalog: Catalog
    source: str
    offline: bool = False
    reason: str | None = None


def parse_catalog(content: str | bytes) -> Catalog:
    """Parse and validate manifest JSON.

    Args:
        content: Raw manifest document.

    Returns:
        Validated Catalog.

    Raises:
        ManifestParseError: If the JSON syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
    """
    try:
        data = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"Invalid manifest JSON: {e}") from e

    try:
        return Catalog.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content: {e}") from e


class ManifestProvider:
    """Loads the catalog from a URL or a local file.

    Remote loads write the response to the cache; when the probe reports
    the network as offline, or the request fails, the cached copy is
    returned instead.
    """

    def __init__(
        self,
        url: str | None = None,
        path: Path | None = None,
        cache_path: Path | None = None,
        client: httpx.Client | None = None,
        timeout: float = 15.0,
        probe: NetworkProbe | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            url: Remote manifest URL.
            path: Local manifest file; takes precedence over ``url``.
            cache_path: Cache location. Default: ~/.cache/gamectl/manifest-cache.json
            client: HTTP client to use. A private client is created if None.
            timeout: Request timeout in seconds.
            probe: Optional network probe consulted before fetching.
        """
        self._url = url
        self._path = path
        self._cache_path = cache_path or get_manifest_cache_path()
        self._client = client
        self._timeout = timeout
        self._probe = probe

    @property
    def cache_path(self) -> Path:
        """Location of the cached manifest."""
        return self._cache_path

    def load(self) -> CatalogSnapshot:
        """Load the current catalog.

        Returns:
            CatalogSnapshot describing the catalog and its origin.

        Raises:
            ManifestFetchError: If no source is configured, or the remote
                fetch failed and there is no cached copy.
            ManifestParseError: If the document is not valid JSON.
            ManifestValidationError: If the document doesn't match the schema.
        """
        if self._path is not None:
            return self._load_file(self._path)

        if not self._url:
            raise ManifestFetchError(
                "No manifest source configured. Set manifest_url in config.toml."
            )

        if self._probe is not None and not self._probe.online:
            logger.info("Network offline, using cached manifest")
            return self._load_cached("network is offline")

        try:
            content = self._fetch(self._url)
        except ManifestFetchError as e:
            logger.warning("Manifest fetch failed, trying cache: %s", e)
            return self._load_cached(str(e))

        catalog = parse_catalog(content)
        self._write_cache(content)
        logger.info("Loaded %d catalog entries from %s", len(catalog.games), self._url)
        return CatalogSnapshot(catalog=catalog, source=self._url)

    def _fetch(self, url: str) -> bytes:
        headers = {"User-Agent": f"gamectl/{__version__}", "Accept": "application/json"}
        try:
            if self._client is not None:
                response = self._client.get(url, headers=headers, timeout=self._timeout)
            else:
                with httpx.Client(follow_redirects=True) as client:
                    response = client.get(url, headers=headers, timeout=self._timeout)
        except httpx.HTTPError as e:
            raise ManifestFetchError(f"Failed to fetch manifest from {url}: {e}") from e

        if not response.is_success:
            raise ManifestFetchError(
                f"Manifest request to {url} failed with status {response.status_code}"
            )
        return response.content

    def _load_file(self, path: Path) -> CatalogSnapshot:
        try:
            content = path.read_bytes()
        except FileNotFoundError as e:
            raise ManifestFetchError(f"Manifest not found: {path}") from e
        except OSError as e:
            raise ManifestFetchError(f"Failed to read manifest {path}: {e}") from e
        return CatalogSnapshot(catalog=parse_catalog(content), source=str(path))

    def _load_cached(self, reason: str) -> CatalogSnapshot:
        if not self._cache_path.exists():
            raise ManifestFetchError(f"Manifest unavailable ({reason}) and no cached copy exists")
        try:
            content = self._cache_path.read_bytes()
        except OSError as e:
            raise ManifestFetchError(f"Failed to read cached manifest: {e}") from e
        return CatalogSnapshot(
            catalog=parse_catalog(content),
            source=str(self._cache_path),
            offline=True,
            reason=reason,
        )

    def _write_cache(self, content: bytes) -> None:
        """Cache the manifest atomically. Failures are logged, not raised."""
        tmp_path: Path | None = None
        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                dir=self._cache_path.parent,
                delete=False,
                suffix=".tmp",
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
            os.replace(str(tmp_path), str(self._cache_path))
            logger.debug(
                "Cached manifest at %s (%s)", self._cache_path, datetime.now(UTC).isoformat()
            )
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            logger.warning("Failed to cache manifest: %s", e)
