"""Unit tests for the download session state machine."""

import pytest
from gamectl.core.errors import InvalidTransitionError
from gamectl.models.session import (
    DownloadSession,
    MirrorAttempt,
    SessionKind,
    SessionState,
    can_transition,
)


class TestCanTransition:
    """Tests for can_transition."""

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (SessionState.IDLE, SessionState.STARTED),
            (SessionState.STARTED, SessionState.IN_PROGRESS),
            (SessionState.STARTED, SessionState.COMPLETED),
            (SessionState.IN_PROGRESS, SessionState.IN_PROGRESS),
            (SessionState.IN_PROGRESS, SessionState.EXTRACTING),
            (SessionState.EXTRACTING, SessionState.COMPLETED),
        ],
    )
    def test_forward_transitions(self, current: SessionState, target: SessionState) -> None:
        """The happy path is allowed."""
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current",
        [SessionState.STARTED, SessionState.IN_PROGRESS, SessionState.EXTRACTING],
    )
    def test_failure_and_cancel_from_live_states(self, current: SessionState) -> None:
        """Any live state may fail or be cancelled back to Idle."""
        assert can_transition(current, SessionState.FAILED)
        assert can_transition(current, SessionState.IDLE)

    @pytest.mark.parametrize("terminal", [SessionState.COMPLETED, SessionState.FAILED])
    def test_terminal_states_are_final(self, terminal: SessionState) -> None:
        """Nothing leaves Completed or Failed."""
        for target in SessionState:
            assert not can_transition(terminal, target)

    def test_skipping_phases_is_rejected(self) -> None:
        """Idle cannot jump straight to Completed."""
        assert not can_transition(SessionState.IDLE, SessionState.COMPLETED)
        assert not can_transition(SessionState.EXTRACTING, SessionState.IN_PROGRESS)


class TestDownloadSession:
    """Tests for DownloadSession."""

    def test_transition_updates_state(self) -> None:
        """transition moves the session."""
        session = DownloadSession(package_id="stellar_quest", kind=SessionKind.INSTALL)
        session.transition(SessionState.STARTED)
        assert session.state is SessionState.STARTED

    def test_invalid_transition_raises(self) -> None:
        """Forbidden moves raise InvalidTransitionError."""
        session = DownloadSession(package_id="stellar_quest", kind=SessionKind.INSTALL)

        with pytest.raises(InvalidTransitionError, match="idle to extracting"):
            session.transition(SessionState.EXTRACTING)

    def test_progress_percent(self) -> None:
        """Progress is a percentage of the known total."""
        session = DownloadSession(
            package_id="stellar_quest",
            kind=SessionKind.INSTALL,
            bytes_downloaded=256,
            total_bytes=1024,
        )
        assert session.progress_percent == 25.0

    def test_progress_percent_unknown_total(self) -> None:
        """Without a total there is no percentage."""
        session = DownloadSession(package_id="stellar_quest", kind=SessionKind.INSTALL)
        assert session.progress_percent is None

    def test_attempt_succeeded(self) -> None:
        """An attempt without an error succeeded."""
        assert MirrorAttempt("Primary", "https://p").succeeded
        assert not MirrorAttempt("Primary", "https://p", error="HTTP 500").succeeded
