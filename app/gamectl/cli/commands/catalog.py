"""Catalog listing and registry sync commands.

This module provides `gamectl list`, which shows every catalog entry with
its on-disk status, and `gamectl sync`, which reconciles the install
registry with the install root.
"""

import json
from typing import Annotated

import typer

from gamectl.cli.common import open_launcher
from gamectl.cli.display import print_catalog
from gamectl.core.errors import GamectlError
from gamectl.models.catalog import CatalogStatus
from gamectl.utils.formatting import console, print_error, print_info, print_success


def list_games(
    status: Annotated[
        CatalogStatus | None,
        typer.Option(
            "--status",
            "-s",
            help="Only show games with this status.",
            case_sensitive=False,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List the catalog with install status.

    Examples:
        gamectl list                       # Whole catalog
        gamectl list --status installed    # Installed games only
        gamectl list --json                # JSON output for scripting
    """
    with open_launcher() as launcher:
        entries = launcher.catalog()

    if status is not None:
        entries = [entry for entry in entries if entry.status is status]

    if json_output:
        output = [entry.model_dump(mode="json", exclude_none=True) for entry in entries]
        console.print_json(json.dumps(output))
        return

    if not entries:
        print_info("No games found.")
        return

    print_catalog(entries)


def sync_registry() -> None:
    """Reconcile the install registry with the install root.

    Drops records whose directory vanished and adopts installs that carry
    a gamectl marker but are missing from the registry.
    """
    with open_launcher() as launcher:
        try:
            result = launcher.sync_registry()
        except GamectlError as e:
            print_error(f"Sync failed: {e}")
            raise typer.Exit(code=1) from e

    if not result.changed:
        print_success("Registry is in sync with the install root.")
        return
    for package_id in result.dropped:
        console.print(f"[warning]-[/] {package_id} [muted](install directory missing)[/]")
    for package_id in result.adopted:
        console.print(f"[success]+[/] {package_id} [muted](found on disk)[/]")
