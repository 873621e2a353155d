"""CLI commands for gamectl.

This package contains all subcommand implementations.
"""

from gamectl.cli.commands import (
    backups,
    catalog,
    config,
    history,
    install,
    launch,
    repair,
    update,
)

__all__ = ["backups", "catalog", "config", "history", "install", "launch", "repair", "update"]
