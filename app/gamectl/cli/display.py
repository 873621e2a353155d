"""Shared Rich display functions for sessions and results.

Provides the live progress display fed by a launcher event channel and
the tables used by the catalog, backup, and repair commands.
"""

from collections.abc import Callable
from datetime import datetime

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from gamectl.core.events import EventChannel
from gamectl.installer.backup import UpdateCheck
from gamectl.installer.repair import RepairReport
from gamectl.models.catalog import CatalogEntry
from gamectl.models.events import EventStatus, ProgressEvent
from gamectl.models.installed import BackupSnapshot
from gamectl.utils.formatting import (
    console,
    create_catalog_table,
    format_catalog_row,
    print_success,
)

# Seconds between checks for Ctrl-C while waiting for events
POLL_INTERVAL = 0.1


def follow_events(
    channel: EventChannel,
    package_id: str,
    *,
    on_interrupt: Callable[[], None] | None = None,
    quiet: bool = False,
) -> ProgressEvent | None:
    """Render a package's session events until it ends.

    Ctrl-C does not abort the wait: it calls ``on_interrupt`` once (which
    should request cancellation) and keeps following until the session
    reports its terminal event.

    Args:
        channel: Subscribed event channel.
        package_id: Package whose events are shown.
        on_interrupt: Called on the first Ctrl-C.
        quiet: Hide the progress bar; mirror failures are still printed.

    Returns:
        The terminal event, or None if the channel was closed first.
    """
    interrupted = False
    with Progress(
        SpinnerColumn(),
        TextColumn("[game.name]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
        disable=quiet,
    ) as progress:
        task = progress.add_task(package_id, total=None)
        while True:
            try:
                event = channel.get(timeout=POLL_INTERVAL)
            except KeyboardInterrupt:
                if not interrupted:
                    interrupted = True
                    progress.console.print("[warning]Cancelling...[/]")
                    if on_interrupt is not None:
                        on_interrupt()
                continue

            if event is None:
                if channel.closed:
                    return None
                continue
            if event.package_id != package_id:
                continue

            if event.status is EventStatus.PROGRESS:
                progress.update(
                    task,
                    description=f"{package_id} [muted]({event.mirror_name})[/]",
                    completed=event.bytes_downloaded,
                    total=event.total_bytes,
                )
            elif event.status is EventStatus.MIRROR_FAILED:
                progress.console.print(f"[warning]{event.message}[/]")
            elif event.status is EventStatus.EXTRACTING:
                progress.update(task, description=f"{package_id} [muted](extracting)[/]")
            elif event.status is EventStatus.COMPLETED:
                progress.update(task, completed=event.bytes_downloaded, total=event.bytes_downloaded)

            if event.status.is_terminal:
                return event


def print_catalog(entries: list[CatalogEntry], title: str = "Game Catalog") -> None:
    """Print the status-annotated catalog as a table."""
    table = create_catalog_table(title)
    for entry in entries:
        table.add_row(*format_catalog_row(entry))
    console.print(table)


def print_update_check(check: UpdateCheck) -> None:
    """Print the result of an update check."""
    if check.installed_version is None:
        console.print(f"[muted]{check.package_id} is not installed (latest {check.latest_version})[/]")
        return
    if not check.needs_update:
        print_success(f"{check.package_id} {check.installed_version} is up to date.")
        return

    console.print(
        f"[status.update_available]Update available:[/] {check.package_id} "
        f"{check.installed_version} -> [success]{check.latest_version}[/]"
    )
    if check.changelog:
        console.print(f"\n[header]Changelog[/]\n{check.changelog}")


def create_backups_table(package_id: str, backups: list[BackupSnapshot]) -> Table:
    """Create a table listing a package's retained snapshots.

    Args:
        package_id: Package the snapshots belong to.
        backups: Snapshots, newest first.

    Returns:
        Rich Table configured for backup display.
    """
    table = Table(
        title=f"Backups of {package_id}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Version", no_wrap=True)
    table.add_column("Created", style="info")
    table.add_column("Path", style="muted", overflow="fold")

    for backup in backups:
        table.add_row(backup.version, _format_timestamp(backup.created_at), backup.path)
    return table


def create_repair_table(report: RepairReport, limit: int = 20) -> Table:
    """Create a table of files restored by a repair.

    Args:
        report: Repair outcome.
        limit: Maximum number of files listed.

    Returns:
        Rich Table listing restored files.
    """
    table = Table(
        title=f"Restored files ({len(report.repaired_files)})",
        show_header=False,
        border_style="border",
    )
    table.add_column("File", style="text")
    for name in report.repaired_files[:limit]:
        table.add_row(name)
    hidden = len(report.repaired_files) - limit
    if hidden > 0:
        table.add_row(f"[muted](+{hidden} more)[/]")
    return table


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO 8601 timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")
