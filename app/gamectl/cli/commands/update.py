"""Update and update-check commands.

This module provides `gamectl check`, which compares installed versions
with the catalog, and `gamectl update`, which applies an update behind a
backup snapshot.
"""

from typing import Annotated

import typer

from gamectl.cli.common import open_launcher, run_operation
from gamectl.cli.display import print_update_check
from gamectl.core.errors import GamectlError
from gamectl.utils.formatting import console, print_error, print_info, print_success


def check_updates(
    package_id: Annotated[
        str | None,
        typer.Argument(help="Catalog id to check. Checks every installed game if omitted."),
    ] = None,
    current_version: Annotated[
        str | None,
        typer.Option(
            "--current",
            help="Compare against this version instead of the installed one.",
        ),
    ] = None,
) -> None:
    """Check whether newer versions are available.

    Examples:
        gamectl check                    # All installed games
        gamectl check stellar_quest      # One game
    """
    with open_launcher() as launcher:
        try:
            if package_id is not None:
                checks = [launcher.check_update(package_id, current_version)]
            else:
                checks = [
                    launcher.check_update(entry.id)
                    for entry in launcher.catalog()
                    if entry.status.is_installed
                ]
        except GamectlError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e

    if not checks:
        print_info("No installed games.")
        return
    for check in checks:
        print_update_check(check)


def update_game(
    ctx: typer.Context,
    package_id: Annotated[str, typer.Argument(help="Catalog id of the game.")],
) -> None:
    """Update an installed game to the catalog version.

    The current install is kept as a backup; if the update fails it is
    restored so the old version stays playable.

    Examples:
        gamectl update stellar_quest
    """
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    with open_launcher() as launcher:
        try:
            check = launcher.check_update(package_id)
        except GamectlError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        if check.installed_version is None:
            print_error(f"{package_id} is not installed. Use 'gamectl install {package_id}'.")
            raise typer.Exit(code=1)
        if not check.needs_update:
            print_success(f"{package_id} is already up to date.")
            return

        result = run_operation(launcher, package_id, launcher.update, quiet=quiet)

    print_success(
        f"Updated {package_id} {result.previous_version} -> {result.record.installed_version}"
    )
    if result.evicted:
        console.print(f"[muted]Removed {len(result.evicted)} old backup(s)[/]")
