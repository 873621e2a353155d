"""Backups command for listing update snapshots."""

from typing import Annotated

import typer

from gamectl.cli.common import open_launcher
from gamectl.cli.display import create_backups_table
from gamectl.core.errors import GamectlError
from gamectl.utils.formatting import console, print_error, print_info


def list_backups(
    package_id: Annotated[str, typer.Argument(help="Catalog id of the game.")],
) -> None:
    """List the backups retained for an installed game."""
    with open_launcher(load_catalog=False) as launcher:
        try:
            backups = launcher.list_backups(package_id)
        except GamectlError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    if not backups:
        print_info(f"No backups for {package_id}.")
        return
    console.print(create_backups_table(package_id, backups))
