"""Unit tests for the main CLI application."""

import logging
from collections.abc import Iterator

import pytest
from gamectl import __version__
from gamectl.cli.main import app, configure_logging
from rich.logging import RichHandler
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestMainApp:
    """Tests for the top-level command group."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"gamectl version {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("list", "install", "update", "repair", "launch", "history", "config"):
            assert command in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.usefixtures("restore_root_logger")
    def test_verbose_sets_debug(self) -> None:
        configure_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    @pytest.mark.usefixtures("restore_root_logger")
    def test_handler_installed_once(self) -> None:
        """Repeated calls replace the Rich handler instead of stacking."""
        configure_logging(verbose=False)
        configure_logging(verbose=False)

        handlers = [h for h in logging.getLogger().handlers if isinstance(h, RichHandler)]
        assert len(handlers) == 1
        assert logging.getLogger().level == logging.WARNING
