"""Repair command implementation."""

from typing import Annotated

import typer

from gamectl.cli.common import open_launcher, run_operation
from gamectl.cli.display import create_repair_table
from gamectl.utils.formatting import console, print_error, print_success


def repair_game(
    ctx: typer.Context,
    package_id: Annotated[str, typer.Argument(help="Catalog id of the game.")],
) -> None:
    """Check an installed game and reinstall it if files are missing.

    Examples:
        gamectl repair stellar_quest
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    with open_launcher() as launcher:
        report = run_operation(launcher, package_id, launcher.repair, quiet=quiet)

    if not report.success:
        for error in report.errors:
            print_error(error)
        raise typer.Exit(code=1)

    if not report.reinstalled:
        print_success(f"{package_id} is intact. Nothing to repair.")
        return

    print_success(f"Repaired {package_id}")
    console.print(create_repair_table(report))
