"""Shared helpers for CLI commands.

Builds a Launcher from the user's configuration and drives a background
operation to completion while rendering its events.
"""

import logging
from collections.abc import Callable, Iterator
from concurrent.futures import Future
from contextlib import contextmanager
from typing import TypeVar

import typer

from gamectl.cli.display import follow_events
from gamectl.core.config import ConfigError, load_config
from gamectl.core.errors import (
    AllMirrorsExhaustedError,
    GamectlError,
    NoActiveSessionError,
    OperationCancelledError,
)
from gamectl.core.launcher import Launcher
from gamectl.core.manifest import ManifestError
from gamectl.utils.formatting import print_error, print_warning

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exit code used when the user cancelled with Ctrl-C
EXIT_CANCELLED = 130


@contextmanager
def open_launcher(load_catalog: bool = True) -> Iterator[Launcher]:
    """Create a Launcher from config.toml and optionally load the catalog.

    Exits with code 1 if the configuration or the catalog cannot be loaded.
    """
    try:
        config = load_config()
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    launcher = Launcher(config)
    try:
        if load_catalog:
            try:
                snapshot = launcher.load_catalog()
            except ManifestError as e:
                print_error(f"Failed to load catalog: {e}")
                raise typer.Exit(code=1) from e
            except GamectlError as e:
                print_error(str(e))
                raise typer.Exit(code=1) from e
            if snapshot.offline:
                print_warning(f"Offline, showing cached catalog ({snapshot.reason}).")
        yield launcher
    finally:
        launcher.close(wait=False)


def report_error(error: GamectlError) -> None:
    """Print an error, listing per-mirror reasons when all mirrors failed."""
    if isinstance(error, AllMirrorsExhaustedError) and error.failures:
        print_error(f"All {len(error.failures)} mirror(s) failed:")
        for failure in error.failures:
            print_error(f"  {failure}")
        return
    print_error(str(error))


def run_operation(
    launcher: Launcher,
    package_id: str,
    start: Callable[[str], Future[T]],
    quiet: bool = False,
) -> T:
    """Start an operation, render its progress, and return its result.

    Ctrl-C requests cancellation instead of killing the process, so partial
    files are cleaned up before exiting.

    Raises:
        typer.Exit: With code 1 on failure, 130 on cancellation.
    """
    channel = launcher.subscribe()
    try:
        try:
            future = start(package_id)
        except GamectlError as e:
            report_error(e)
            raise typer.Exit(code=1) from e

        follow_events(
            channel,
            package_id,
            on_interrupt=lambda: _request_cancel(launcher, package_id),
            quiet=quiet,
        )

        try:
            return future.result()
        except OperationCancelledError as e:
            print_warning(f"{package_id}: cancelled.")
            raise typer.Exit(code=EXIT_CANCELLED) from e
        except GamectlError as e:
            report_error(e)
            raise typer.Exit(code=1) from e
        except OSError as e:
            print_error(f"{package_id}: {e}")
            raise typer.Exit(code=1) from e
    finally:
        launcher.unsubscribe(channel)


def _request_cancel(launcher: Launcher, package_id: str) -> None:
    try:
        launcher.cancel(package_id)
    except NoActiveSessionError:
        logger.debug("%s finished before cancellation was requested", package_id)
