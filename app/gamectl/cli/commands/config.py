"""Configuration commands.

Provides commands to show the effective launcher configuration and to
change individual settings in config.toml.
"""

from typing import Annotated

import typer
from rich.table import Table

from gamectl.core.config import ConfigError, LauncherConfig, load_config, save_config
from gamectl.core.paths import get_config_path
from gamectl.utils.formatting import console, print_error, print_success

app = typer.Typer(
    help="Show and edit launcher configuration.",
    no_args_is_help=True,
)


def _load_or_exit() -> LauncherConfig:
    try:
        return load_config()
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e


@app.command()
def show() -> None:
    """Show the effective configuration."""
    config = _load_or_exit()

    table = Table(
        title=f"Configuration ({get_config_path()})",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="info")

    for key, value in config.model_dump(mode="json").items():
        table.add_row(key, "[muted]-[/]" if value is None else str(value))
    table.add_row("install root (effective)", str(config.effective_install_root))
    console.print(table)


@app.command("set")
def set_value(
    key: Annotated[str, typer.Argument(help="Setting name, e.g. manifest_url.")],
    value: Annotated[str, typer.Argument(help="New value.")],
) -> None:
    """Change one setting in config.toml.

    Examples:
        gamectl config set manifest_url https://example.com/games.json
        gamectl config set max_concurrent_sessions 2
    """
    config = _load_or_exit()
    if key not in LauncherConfig.model_fields:
        print_error(f"Unknown setting: {key}")
        raise typer.Exit(code=1)

    data = config.model_dump(mode="json")
    data[key] = value
    try:
        updated = LauncherConfig.model_validate(data)
    except ValueError as e:
        print_error(f"Invalid value for {key}: {e}")
        raise typer.Exit(code=1) from e

    try:
        path = save_config(updated)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Set {key} = {value} in {path}")


@app.command()
def path() -> None:
    """Print the location of config.toml."""
    typer.echo(str(get_config_path()))
