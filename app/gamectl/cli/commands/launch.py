"""Launch command implementation."""

from typing import Annotated

import typer

from gamectl.cli.common import open_launcher
from gamectl.core.errors import GamectlError
from gamectl.utils.formatting import print_error, print_success


def launch_game(
    package_id: Annotated[str, typer.Argument(help="Catalog id of the game.")],
) -> None:
    """Start an installed game.

    Examples:
        gamectl launch stellar_quest
    """
    with open_launcher() as launcher:
        try:
            result = launcher.launch(package_id)
        except GamectlError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        except OSError as e:
            print_error(f"Failed to start {package_id}: {e}")
            raise typer.Exit(code=1) from e

    print_success(f"Started {package_id} (pid {result.pid})")
