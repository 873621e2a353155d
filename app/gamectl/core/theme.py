"""Console colors for gamectl.

Built-in colors can be overridden per key in the ``[colors]`` table of
~/.config/gamectl/theme.toml. Unknown keys or malformed values make the
whole override file fall back to the built-in palette.
"""

import logging
import tomllib
from pathlib import Path
from typing import Annotated, cast

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from rich.theme import Theme

from gamectl.core.paths import get_theme_path

logger = logging.getLogger(__name__)


def _check_hex(value: object) -> str:
    if not isinstance(value, str):
        msg = "color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = "color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = "color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    try:
        int(digits, 16)
    except ValueError:
        msg = f"invalid hex color '{color}'"
        raise ValueError(msg) from None
    return color


HexColor = Annotated[str, BeforeValidator(_check_hex)]


class ThemeColors(BaseModel):
    """Palette used by every console in the CLI."""

    model_config = ConfigDict(extra="forbid", validate_default=True)

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    status_installed: HexColor = "#03b971"
    status_update: HexColor = "#faf870"
    status_available: HexColor = "#0e8ac8"
    status_coming_soon: HexColor = "#d44ebc"

    progress_bar: HexColor = "#69B9A1"
    progress_done: HexColor = "#c1ff62"


# Rich style name -> (ThemeColors field, extra style attributes)
STYLE_MAP: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "status.installed": ("status_installed", "bold"),
    "status.update_available": ("status_update", "bold"),
    "status.available": ("status_available", ""),
    "status.coming_soon": ("status_coming_soon", ""),
    "progress.bar": ("progress_bar", ""),
    "progress.done": ("progress_done", ""),
    "game.name": ("text", "bold"),
    "game.version": ("muted", ""),
    "game.size": ("info", ""),
}


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the string values of the [colors] table, or None if unusable."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None

    colors_raw: object = data.get("colors", {})
    if not isinstance(colors_raw, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {
        key: value
        for key, value in cast(dict[str, object], colors_raw).items()
        if isinstance(value, str)
    }


def load_theme(path: Path | None = None) -> ThemeColors:
    """Built-in colors merged with the user's theme.toml overrides.

    Args:
        path: Theme file to read instead of the XDG location.
    """
    user_path = path or get_theme_path()
    user_colors = _load_toml_colors(user_path)
    if user_colors is None:
        return ThemeColors()

    try:
        colors = ThemeColors(**user_colors)
    except ValidationError as e:
        logger.warning("Invalid theme in %s, using defaults: %s", user_path, e)
        return ThemeColors()
    logger.debug("Loaded user theme overrides from %s", user_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    if colors is None:
        colors = load_theme()
    styles: dict[str, str] = {}
    for style, (field_name, attributes) in STYLE_MAP.items():
        color = getattr(colors, field_name)
        styles[style] = f"{attributes} {color}" if attributes else color
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Rich theme for the consoles, loaded once per process."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme


def reload_theme() -> Theme:
    """Re-read theme.toml and replace the cached theme."""
    global _cached_theme
    _cached_theme = get_rich_theme()
    return _cached_theme
