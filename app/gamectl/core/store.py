"""Owned catalog store shared by the launcher components.

Readers receive snapshots; the catalog is only replaced as a whole, either
after a manifest load or after the reconciler annotated statuses.
"""

import threading

from gamectl.models.catalog import Catalog, CatalogEntry


class CatalogStore:
    """Holds the current catalog snapshot behind a lock."""

    def __init__(self, catalog: Catalog | None = None, offline: bool = False) -> None:
        self._lock = threading.Lock()
        self._catalog = catalog if catalog is not None else Catalog()
        self._offline = offline

    def snapshot(self) -> Catalog:
        """Return a copy of the current catalog.

        Entries are frozen models, so a shallow copy of the list is enough
        to isolate the caller from later replacements.
        """
        with self._lock:
            return Catalog.model_construct(games=list(self._catalog.games))

    def replace(self, catalog: Catalog, offline: bool = False) -> None:
        """Swap in a freshly loaded catalog."""
        with self._lock:
            self._catalog = catalog
            self._offline = offline

    def annotate(self, entries: list[CatalogEntry]) -> None:
        """Swap in status-annotated entries, keeping the offline flag."""
        with self._lock:
            self._catalog = Catalog.model_construct(games=list(entries))

    def get(self, package_id: str) -> CatalogEntry | None:
        """Look up a single entry."""
        with self._lock:
            return self._catalog.get(package_id)

    def require(self, package_id: str) -> CatalogEntry:
        """Look up a single entry.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
        """
        with self._lock:
            return self._catalog.require(package_id)

    @property
    def offline(self) -> bool:
        """True if the catalog was loaded from the offline cache."""
        with self._lock:
            return self._offline
