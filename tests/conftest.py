"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules: archive
builders, a fake mirror host served through httpx.MockTransport, catalog
entry factories, and a Launcher wired to temporary directories.
"""

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
from gamectl.core.config import LauncherConfig
from gamectl.core.launcher import Launcher
from gamectl.core.registry import InstallRegistry
from gamectl.core.state import StateManager
from gamectl.models.catalog import CatalogEntry, Mirror
from helpers import BACKUP_URL, PRIMARY_URL, FakeMirrorHost, build_zip, game_files

ArchiveFactory = Callable[..., bytes]
EntryFactory = Callable[..., CatalogEntry]


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory into the test's temporary directory."""
    home = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(home / "state"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(home / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / "data"))
    return home


@pytest.fixture
def zip_archive() -> ArchiveFactory:
    """Factory for game archives: zip_archive(version="2.2.3", files=None)."""

    def factory(version: str = "2.2.3", files: dict[str, bytes] | None = None) -> bytes:
        return build_zip(files if files is not None else game_files(version))

    return factory


@pytest.fixture
def make_entry() -> EntryFactory:
    """Factory for catalog entries with a primary and a backup mirror."""

    def factory(version: str = "2.2.3", **overrides: Any) -> CatalogEntry:
        data: dict[str, Any] = {
            "id": "stellar_quest",
            "name": "Stellar Quest",
            "version": version,
            "download_urls": [
                Mirror(name="Primary", url=PRIMARY_URL.format(version=version), is_primary=True),
                Mirror(name="Backup", url=BACKUP_URL.format(version=version)),
            ],
            "executable_path": "StellarQuest/StellarQuest.exe",
            "repair_enabled": True,
        }
        data.update(overrides)
        return CatalogEntry(**data)

    return factory


@pytest.fixture
def mirror_host() -> FakeMirrorHost:
    """Fake mirror host with no routes."""
    return FakeMirrorHost()


@pytest.fixture
def launcher(tmp_path: Path, mirror_host: FakeMirrorHost) -> Iterator[Launcher]:
    """Launcher using temporary directories and the fake mirror host."""
    client = mirror_host.client()
    config = LauncherConfig(install_root=tmp_path / "games", mirror_timeout_seconds=5.0)
    instance = Launcher(
        config,
        registry=InstallRegistry(tmp_path / "state" / "installed.json"),
        state=StateManager(state_dir=tmp_path / "state"),
        client=client,
        staging_dir=tmp_path / "staging",
        backup_root=tmp_path / "backups",
    )
    yield instance
    instance.close()
    client.close()
