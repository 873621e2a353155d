"""XDG-compliant path management for gamectl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration, state, cache, and installed game data.

XDG defaults:
- Config: ~/.config/gamectl/
- State: ~/.local/state/gamectl/
- Cache: ~/.cache/gamectl/
- Data: ~/.local/share/gamectl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "gamectl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/gamectl/ (or XDG_CONFIG_HOME/gamectl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the install registry and history files that
    should persist between runs but is not configuration.

    Returns:
        Path to ~/.local/state/gamectl/ (or XDG_STATE_HOME/gamectl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Cache data includes the last fetched manifest and staged downloads.

    Returns:
        Path to ~/.cache/gamectl/ (or XDG_CACHE_HOME/gamectl/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_data_dir() -> Path:
    """Get the data directory path.

    Returns:
        Path to ~/.local/share/gamectl/ (or XDG_DATA_HOME/gamectl/).
    """
    return _get_xdg_dir("XDG_DATA_HOME", ".local/share")


def get_config_path() -> Path:
    """Get the launcher configuration file path.

    Returns:
        Path to ~/.config/gamectl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override file path.

    Returns:
        Path to ~/.config/gamectl/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_registry_path() -> Path:
    """Get the install registry file path.

    Returns:
        Path to ~/.local/state/gamectl/installed.json.
    """
    return get_state_dir() / "installed.json"


def get_history_path() -> Path:
    """Get the history file path.

    Returns:
        Path to ~/.local/state/gamectl/history.jsonl.
    """
    return get_state_dir() / "history.jsonl"


def get_manifest_cache_path() -> Path:
    """Get the cached manifest file path.

    The last successfully fetched manifest is stored here and used
    when the manifest host cannot be reached.

    Returns:
        Path to ~/.cache/gamectl/manifest-cache.json.
    """
    return get_cache_dir() / "manifest-cache.json"


def get_staging_dir() -> Path:
    """Get the staging directory for in-flight downloads.

    Returns:
        Path to ~/.cache/gamectl/staging/.
    """
    return get_cache_dir() / "staging"


def get_default_install_root() -> Path:
    """Get the default root directory for installed games.

    Returns:
        Path to ~/.local/share/gamectl/games/.
    """
    return get_data_dir() / "games"


def get_backup_root() -> Path:
    """Get the root directory for pre-update backups.

    Each package gets a subdirectory holding one timestamped folder
    per retained snapshot.

    Returns:
        Path to ~/.local/share/gamectl/backups/.
    """
    return get_data_dir() / "backups"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_config_dir() -> Path:
    """Create the configuration directory if it doesn't exist.

    Returns:
        Path to the configuration directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_config_dir(), "config")


def ensure_state_dir() -> Path:
    """Create the state directory if it doesn't exist.

    Returns:
        Path to the state directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_state_dir(), "state")


def ensure_cache_dir() -> Path:
    """Create the cache directory if it doesn't exist.

    Returns:
        Path to the cache directory.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_cache_dir(), "cache")


def ensure_dir(path: Path, name: str) -> Path:
    """Create an arbitrary launcher-owned directory.

    Used for configurable locations such as the install root.

    Args:
        path: Directory to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(path, name)


def ensure_dirs() -> None:
    """Create all required application directories.

    Creates config, state, and cache directories if they don't exist.
    This should be called during application initialization.
    """
    ensure_config_dir()
    ensure_state_dir()
    ensure_cache_dir()
