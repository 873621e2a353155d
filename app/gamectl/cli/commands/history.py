"""History command for viewing past operations.

This module provides the `gamectl history` command for viewing the
history of install, update, and repair operations.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from gamectl.core.state import StateManager
from gamectl.models.history import HistoryEntry
from gamectl.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of installs, updates, and repairs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    package_id: Annotated[
        str | None,
        typer.Option(
            "--game",
            "-g",
            help="Only show entries for this game.",
        ),
    ] = None,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
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
    """Show history of operations.

    Examples:
        gamectl history                    # Show last 20 entries
        gamectl history -g stellar_quest   # One game only
        gamectl history --since 2026-01-01
        gamectl history --json             # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history(limit=limit, package_id=package_id)

    if since:
        try:
            entries = _filter_since(entries, datetime.fromisoformat(since))
        except ValueError:
            typer.echo(f"Invalid date format: {since}. Use YYYY-MM-DD.", err=True)
            raise typer.Exit(code=1) from None

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        console.print(json.dumps([entry.to_dict() for entry in entries], indent=2))
    else:
        _print_table(entries)


def _filter_since(entries: list[HistoryEntry], since: datetime) -> list[HistoryEntry]:
    """Keep entries recorded at or after since; naive dates compare by day."""
    if since.tzinfo is None:
        day = since.date()
        return [e for e in entries if e.recorded_at.date() >= day]
    return [e for e in entries if e.recorded_at >= since]


def _print_table(entries: list[HistoryEntry]) -> None:
    table = Table(title="Operation History")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Action", style="header")
    table.add_column("Game", style="text")
    table.add_column("Version", style="muted")
    table.add_column("Result")

    for entry in entries:
        if entry.success:
            result = "[success]OK[/]"
        else:
            result = f"[error]FAIL[/] [muted]{entry.error}[/]"

        table.add_row(
            entry.id[:8],
            entry.recorded_at.strftime("%Y-%m-%d %H:%M"),
            entry.action_type.value,
            ", ".join(item.package_id for item in entry.items),
            ", ".join(item.version_label for item in entry.items),
            result,
        )

    console.print(table)
