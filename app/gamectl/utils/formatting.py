"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from gamectl.core.theme import get_theme
from gamectl.utils.units import human_size

if TYPE_CHECKING:
    from gamectl.models.catalog import CatalogEntry


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

_STATUS_ICONS = {
    "installed": "●",  # Filled circle
    "update_available": "▲",  # Up triangle
    "available": "○",  # Empty circle
    "coming_soon": "◌",  # Dotted circle
}


def create_catalog_table(title: str = "Game Catalog") -> Table:
    """Create a pre-configured table for displaying catalog entries.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for catalog display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("", width=2, justify="center")
    table.add_column("Game", no_wrap=True)
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Version", style="muted")
    table.add_column("Installed", style="muted")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Status")
    return table


def format_catalog_row(entry: CatalogEntry) -> tuple[str, str, str, str, str, str, str]:
    """Format a catalog entry as a table row with status styling.

    Args:
        entry: Status-annotated catalog entry.

    Returns:
        Tuple of (icon, name, id, version, installed, size, status) with Rich markup.
    """
    status = entry.status.value
    style = f"status.{status}"
    icon = f"[{style}]{_STATUS_ICONS.get(status, '?')}[/]"
    name = f"[game.name]{entry.name}[/]"
    size = entry.file_size if entry.size_bytes is None else human_size(entry.size_bytes)
    return (
        icon,
        name,
        entry.id,
        entry.version,
        entry.installed_version or "-",
        size or "-",
        f"[{style}]{status.replace('_', ' ')}[/]",
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
