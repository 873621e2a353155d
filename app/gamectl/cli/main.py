"""Main CLI application entry point.

Defines the Typer application, global options, and logging setup.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from gamectl import __version__
from gamectl.cli.commands import backups, catalog, config, history, install, launch, repair, update
from gamectl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="gamectl",
    help="Install, update, and repair games from a remote catalog.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gamectl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(console=err_console, show_path=verbose, rich_tracebacks=verbose))
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    # Keep per-request chatter out of verbose output.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Hide progress bars.",
        ),
    ] = False,
) -> None:
    """gamectl - Install, update, and repair games from a remote catalog.

    The catalog is a JSON manifest listing games and their download
    mirrors. gamectl keeps the games on disk in line with it.
    """
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command("list")(catalog.list_games)
app.command("sync")(catalog.sync_registry)
app.command("install")(install.install_game)
app.command("update")(update.update_game)
app.command("check")(update.check_updates)
app.command("repair")(repair.repair_game)
app.command("launch")(launch.launch_game)
app.command("backups")(backups.list_backups)
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
