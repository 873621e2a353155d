"""CLI package for gamectl.

This package contains the Typer application and all subcommands.
"""

from gamectl.cli.main import app

__all__ = ["app"]
