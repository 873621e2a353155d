"""Launcher configuration and settings.

This module provides the configuration model and I/O functions for the
launcher. Configuration is stored in ~/.config/gamectl/config.toml; every
setting has a default, so a missing file is not an error.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gamectl.core.errors import GamectlError
from gamectl.core.paths import get_config_path, get_default_install_root
from gamectl.models.installed import MAX_BACKUPS


class LauncherConfig(BaseModel):
    """Configuration for the launcher.

    Attributes:
        manifest_url: URL of the remote catalog manifest.
        manifest_path: Local manifest file used instead of the URL.
        install_root: Directory games are installed into.
        mirror_timeout_seconds: Connect/read timeout for one mirror attempt.
        attempt_deadline_seconds: Optional wall-clock limit for one mirror attempt.
        chunk_size: Bytes read per streamed chunk.
        max_backups: Snapshots retained per package.
        disk_headroom: Free space required as a multiple of the download size.
        max_concurrent_sessions: Worker threads for concurrent operations.
        probe_host: Host contacted by the network probe.
        probe_port: Port contacted by the network probe.
        probe_interval_seconds: Delay between network probes.
    """

    model_config = ConfigDict(extra="forbid")

    manifest_url: Annotated[
        str | None,
        Field(description="Remote manifest URL"),
    ] = None
    manifest_path: Annotated[
        Path | None,
        Field(description="Local manifest file (overrides manifest_url)"),
    ] = None
    install_root: Annotated[
        Path | None,
        Field(description="Install root (None = XDG data dir)"),
    ] = None
    mirror_timeout_seconds: Annotated[
        float,
        Field(gt=0, le=600, description="Per-attempt network timeout"),
    ] = 30.0
    attempt_deadline_seconds: Annotated[
        float | None,
        Field(gt=0, description="Wall-clock limit per mirror attempt"),
    ] = None
    chunk_size: Annotated[
        int,
        Field(ge=1024, le=16 * 1024 * 1024, description="Streaming chunk size"),
    ] = 64 * 1024
    max_backups: Annotated[
        int,
        Field(ge=1, le=MAX_BACKUPS, description="Backups retained per package"),
    ] = MAX_BACKUPS
    disk_headroom: Annotated[
        float,
        Field(ge=1.0, le=10.0, description="Free space multiple of download size"),
    ] = 2.0
    max_concurrent_sessions: Annotated[
        int,
        Field(ge=1, le=16, description="Concurrent operations"),
    ] = 4
    probe_host: Annotated[str, Field(description="Network probe host")] = "1.1.1.1"
    probe_port: Annotated[int, Field(ge=1, le=65535, description="Network probe port")] = 443
    probe_interval_seconds: Annotated[
        float,
        Field(ge=1, description="Seconds between network probes"),
    ] = 30.0

    @property
    def effective_install_root(self) -> Path:
        """Install root, falling back to ~/.local/share/gamectl/games."""
        if self.install_root is not None:
            return self.install_root.expanduser()
        return get_default_install_root()


class ConfigError(GamectlError):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> LauncherConfig:
    """Load launcher configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses default config path.

    Returns:
        Validated LauncherConfig. Defaults if the file doesn't exist.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return LauncherConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return LauncherConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: LauncherConfig, path: Path | None = None) -> Path:
    """Save launcher configuration to a TOML file.

    The file is written atomically through a temporary file in the same
    directory followed by os.replace().

    Args:
        config: The LauncherConfig to save.
        path: Path to save the config. If None, uses default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    data: dict[str, Any] = config.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
