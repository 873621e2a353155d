"""Install command implementation."""

from typing import Annotated

import typer

from gamectl.cli.common import open_launcher, run_operation
from gamectl.utils.formatting import print_info, print_success


def install_game(
    ctx: typer.Context,
    package_id: Annotated[str, typer.Argument(help="Catalog id of the game.")],
) -> None:
    """Download and install a game from the catalog.

    Mirrors are tried primary first; if one fails the next is used.
    Press Ctrl-C to cancel; partial downloads are removed.

    Examples:
        gamectl install stellar_quest
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    with open_launcher() as launcher:
        record = run_operation(launcher, package_id, launcher.install, quiet=quiet)

    print_success(f"Installed {package_id} {record.installed_version}")
    print_info(f"Executable: {record.executable_path}")
