"""Unit tests for XDG path management.

Tests for the paths module that provides XDG-compliant directory paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from gamectl.core.paths import (
    APP_NAME,
    ensure_dir,
    ensure_dirs,
    get_backup_root,
    get_cache_dir,
    get_config_dir,
    get_config_path,
    get_default_install_root,
    get_manifest_cache_path,
    get_registry_path,
    get_staging_dir,
    get_state_dir,
    get_theme_path,
)


class TestXdgDirectories:
    """Tests for the base directory getters."""

    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME

    def test_default_state_dir(self) -> None:
        """get_state_dir returns default path when XDG_STATE_HOME not set."""
        with patch.dict(os.environ, {}, clear=True):
            result = get_state_dir()

        assert result == Path.home() / ".local" / "state" / APP_NAME

    def test_respects_xdg_overrides(self, tmp_path: Path) -> None:
        """Environment variables override the defaults."""
        with patch.dict(
            os.environ,
            {"XDG_CONFIG_HOME": str(tmp_path / "c"), "XDG_CACHE_HOME": str(tmp_path / "k")},
        ):
            assert get_config_dir() == tmp_path / "c" / APP_NAME
            assert get_cache_dir() == tmp_path / "k" / APP_NAME

    def test_empty_variable_uses_default(self) -> None:
        """An empty XDG variable is treated as unset."""
        with patch.dict(os.environ, {"XDG_CACHE_HOME": ""}):
            assert get_cache_dir() == Path.home() / ".cache" / APP_NAME


class TestFilePaths:
    """Tests for file and data locations."""

    def test_config_files(self, isolated_xdg: Path) -> None:
        """config.toml and theme.toml live in the config directory."""
        assert get_config_path() == isolated_xdg / "config" / APP_NAME / "config.toml"
        assert get_theme_path() == isolated_xdg / "config" / APP_NAME / "theme.toml"

    def test_state_files(self, isolated_xdg: Path) -> None:
        """The registry lives in the state directory."""
        assert get_registry_path() == isolated_xdg / "state" / APP_NAME / "installed.json"

    def test_cache_files(self, isolated_xdg: Path) -> None:
        """The manifest cache and staging area live in the cache directory."""
        cache = isolated_xdg / "cache" / APP_NAME
        assert get_manifest_cache_path() == cache / "manifest-cache.json"
        assert get_staging_dir() == cache / "staging"

    def test_data_dirs(self, isolated_xdg: Path) -> None:
        """Games and backups live in the data directory."""
        data = isolated_xdg / "data" / APP_NAME
        assert get_default_install_root() == data / "games"
        assert get_backup_root() == data / "backups"


class TestEnsureDirs:
    """Tests for directory creation."""

    def test_ensure_dirs_creates_all(self, isolated_xdg: Path) -> None:
        """ensure_dirs creates config, state, and cache directories."""
        ensure_dirs()

        assert (isolated_xdg / "config" / APP_NAME).is_dir()
        assert (isolated_xdg / "state" / APP_NAME).is_dir()
        assert (isolated_xdg / "cache" / APP_NAME).is_dir()

    def test_ensure_dir_is_idempotent(self, tmp_path: Path) -> None:
        """Existing directories are fine."""
        target = tmp_path / "games"
        assert ensure_dir(target, "install") == target
        assert ensure_dir(target, "install") == target

    def test_ensure_dir_raises_runtime_error(self, tmp_path: Path) -> None:
        """Failures are reported as RuntimeError naming the directory."""
        blocker = tmp_path / "file"
        blocker.write_text("x")

        with pytest.raises(RuntimeError, match="Cannot create install directory"):
            ensure_dir(blocker / "games", "install")
