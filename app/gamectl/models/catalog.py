"""Catalog models for the remotely hosted game manifest.

This module defines the Pydantic models representing the manifest JSON
that describes which games are available and where to download them.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gamectl.core.errors import PackageNotFoundError
from gamectl.utils.units import parse_size


class CatalogStatus(str, Enum):
    """Display status of a catalog entry.

    Members are declared in precedence order: when several conditions
    hold, the first matching status wins.

    Attributes:
        COMING_SOON: Announced in the catalog but not downloadable yet.
        UPDATE_AVAILABLE: Installed, but the catalog has a newer version.
        INSTALLED: Installed with a runnable executable.
        AVAILABLE: Not installed.
    """

    COMING_SOON = "coming_soon"
    UPDATE_AVAILABLE = "update_available"
    INSTALLED = "installed"
    AVAILABLE = "available"

    @property
    def precedence(self) -> int:
        """Rank of this status; lower values take priority."""
        return list(CatalogStatus).index(self)

    @property
    def is_installed(self) -> bool:
        """Check if the status describes an installed package."""
        return self in (CatalogStatus.INSTALLED, CatalogStatus.UPDATE_AVAILABLE)


class Mirror(BaseModel):
    """One candidate download source for a package version.

    Attributes:
        name: Display name of the mirror (e.g., "Primary", "Google Drive").
        url: Direct download URL.
        content_type: Declared archive type (manifest field "type").
        size_bytes: Declared archive size (manifest field "size").
        is_primary: Whether this mirror should be attempted first.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: Annotated[str, Field(min_length=1, description="Mirror display name")]
    url: Annotated[str, Field(min_length=1, description="Download URL")]
    content_type: Annotated[
        str | None,
        Field(alias="type", description="Declared archive type"),
    ] = None
    size_bytes: Annotated[
        int | None,
        Field(alias="size", description="Declared archive size in bytes"),
    ] = None
    is_primary: Annotated[
        bool,
        Field(alias="primary", description="Attempt this mirror first"),
    ] = False

    @field_validator("size_bytes", mode="before")
    @classmethod
    def parse_declared_size(cls, v: object) -> int | None:
        """Accept human-readable sizes such as "1.2 GB"."""
        return parse_size(v)


class CatalogEntry(BaseModel):
    """A single game described by the manifest.

    Entries are immutable; status annotation produces a new copy via
    :meth:`annotated`.

    Attributes:
        id: Unique package identifier.
        name: Display name.
        version: Latest published version string.
        status: Display status (computed by the local scan reconciler).
        download_url: Legacy single download URL.
        download_urls: Ordered mirrors for the current version.
        executable_path: Hint for the runnable entry point inside the archive.
        is_coming_soon: Announced but not yet downloadable.
        repair_enabled: Whether the repair command is allowed.
        sha256: Optional archive checksum.
        installed_version: Version found on disk (annotation).
        install_dir: Install directory found on disk (annotation).
        installed_executable: Executable found on disk (annotation).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Annotated[str, Field(min_length=1, description="Unique package identifier")]
    name: Annotated[str, Field(description="Display name")]
    version: Annotated[str, Field(min_length=1, description="Latest version")]
    status: Annotated[CatalogStatus, Field(description="Display status")] = (
        CatalogStatus.AVAILABLE
    )
    download_url: str | None = None
    download_urls: Annotated[list[Mirror], Field(default_factory=list)]
    executable_path: str | None = None
    image_url: str | None = None
    logo_url: str | None = None
    description: str | None = None
    file_size: str | None = None
    release_date: str | None = None
    changelog: str | None = None
    is_coming_soon: bool = False
    repair_enabled: bool = False
    sha256: str | None = None
    installed_version: str | None = None
    install_dir: str | None = None
    installed_executable: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: object) -> object:
        """Map unknown or missing status strings to AVAILABLE."""
        if v is None:
            return CatalogStatus.AVAILABLE
        if isinstance(v, str):
            try:
                return CatalogStatus(v.strip().lower())
            except ValueError:
                return CatalogStatus.AVAILABLE
        return v

    @field_validator("download_urls", mode="before")
    @classmethod
    def default_mirrors(cls, v: object) -> object:
        """Treat an explicit null mirror list as empty."""
        return [] if v is None else v

    @field_validator("file_size", mode="before")
    @classmethod
    def stringify_file_size(cls, v: object) -> object:
        """Accept numeric file sizes in the manifest."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def mirrors(self) -> list[Mirror]:
        """Mirrors in declaration order.

        A legacy ``download_url`` becomes a single primary mirror when no
        ``download_urls`` list is present.
        """
        if self.download_urls:
            return list(self.download_urls)
        if self.download_url:
            return [Mirror(name="Download", url=self.download_url, is_primary=True)]
        return []

    @property
    def executable_hint(self) -> str | None:
        """Relative executable path declared by the manifest, if any."""
        return self.executable_path or None

    @property
    def size_bytes(self) -> int | None:
        """Declared download size, from file_size or the primary mirror."""
        size = parse_size(self.file_size)
        if size is not None:
            return size
        for mirror in self.mirrors:
            if mirror.size_bytes is not None:
                return mirror.size_bytes
        return None

    @property
    def is_downloadable(self) -> bool:
        """Check if the entry can be installed right now."""
        return not self.is_coming_soon and bool(self.mirrors)

    def annotated(
        self,
        status: CatalogStatus,
        installed_version: str | None = None,
        install_dir: str | None = None,
        installed_executable: str | None = None,
    ) -> CatalogEntry:
        """Return a copy carrying on-disk status information."""
        return self.model_copy(
            update={
                "status": status,
                "installed_version": installed_version,
                "install_dir": install_dir,
                "installed_executable": installed_executable,
            }
        )


class Catalog(BaseModel):
    """Complete catalog snapshot as published by the manifest host.

    Attributes:
        games: Catalog entries in manifest order.
    """

    model_config = ConfigDict(extra="ignore")

    games: Annotated[list[CatalogEntry], Field(default_factory=list)]

    @model_validator(mode="before")
    @classmethod
    def wrap_bare_list(cls, data: Any) -> Any:
        """Accept a manifest that is a bare list of games."""
        if isinstance(data, list):
            return {"games": data}
        return data

    @model_validator(mode="after")
    def validate_unique_ids(self) -> Catalog:
        """Validate that no package id appears twice."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for entry in self.games:
            if entry.id in seen:
                duplicates.add(entry.id)
            seen.add(entry.id)
        if duplicates:
            msg = f"Duplicate package ids in catalog: {sorted(duplicates)}"
            raise ValueError(msg)
        return self

    def get(self, package_id: str) -> CatalogEntry | None:
        """Look up an entry by id."""
        for entry in self.games:
            if entry.id == package_id:
                return entry
        return None

    def require(self, package_id: str) -> CatalogEntry:
        """Look up an entry by id.

        Raises:
            PackageNotFoundError: If the id is not in the catalog.
        """
        entry = self.get(package_id)
        if entry is None:
            raise PackageNotFoundError(package_id)
        return entry

    @property
    def ids(self) -> list[str]:
        """Package ids in catalog order."""
        return [entry.id for entry in self.games]
