"""Unit tests for history command.

Tests for the CLI history command implementation.
"""

import json
from unittest.mock import patch

import pytest
from gamectl.cli.main import app
from gamectl.models.history import HistoryActionType, HistoryEntry, HistoryItem
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def sample_history_entries() -> list[HistoryEntry]:
    """Create sample history entries for testing."""
    return [
        HistoryEntry(
            id="abc123456789",
            timestamp="2026-01-26T14:30:00+00:00",
            action_type=HistoryActionType.UPDATE,
            items=(
                HistoryItem(package_id="stellar_quest", version="2.3.0", previous_version="2.2.3"),
            ),
            metadata={"mirror": "Primary"},
        ),
        HistoryEntry(
            id="def678901234",
            timestamp="2026-01-20T09:00:00+00:00",
            action_type=HistoryActionType.INSTALL,
            items=(HistoryItem(package_id="moon_miner", version="0.9"),),
            success=False,
            metadata={"error": "All 2 mirror(s) failed"},
        ),
    ]


class TestHistoryCommand:
    """Tests for gamectl history command."""

    def test_history_help(self) -> None:
        """History command shows help."""
        result = runner.invoke(app, ["history", "--help"])
        assert result.exit_code == 0
        assert "--limit" in result.output
        assert "--since" in result.output
        assert "--json" in result.output

    def test_history_empty(self) -> None:
        """History shows message when no entries exist."""
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = []

            result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "No history entries found" in result.output

    def test_history_table(self, sample_history_entries: list[HistoryEntry]) -> None:
        """History shows entries in a table."""
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = sample_history_entries

            result = runner.invoke(app, ["history"])

        assert result.exit_code == 0
        assert "Operation History" in result.output
        assert "abc12345" in result.output
        assert "FAIL" in result.output

    def test_history_json(self, sample_history_entries: list[HistoryEntry]) -> None:
        """History outputs JSON with --json."""
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = sample_history_entries

            result = runner.invoke(app, ["history", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [entry["id"] for entry in data] == ["abc123456789", "def678901234"]
        assert data[0]["action_type"] == "update"

    def test_history_passes_filters(self) -> None:
        """--game and --limit are forwarded to the state manager."""
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = []

            runner.invoke(app, ["history", "--game", "stellar_quest", "-n", "5"])

        mock_state.return_value.get_history.assert_called_once_with(
            limit=5, package_id="stellar_quest"
        )

    def test_history_since(self, sample_history_entries: list[HistoryEntry]) -> None:
        """--since drops older entries."""
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = sample_history_entries

            result = runner.invoke(app, ["history", "--since", "2026-01-25", "--json"])

        data = json.loads(result.output)
        assert [entry["id"] for entry in data] == ["abc123456789"]

    def test_history_invalid_since(self) -> None:
        with patch("gamectl.cli.commands.history.StateManager") as mock_state:
            mock_state.return_value.get_history.return_value = []

            result = runner.invoke(app, ["history", "--since", "yesterday"])

        assert result.exit_code == 1
        assert "Invalid date format" in result.output
