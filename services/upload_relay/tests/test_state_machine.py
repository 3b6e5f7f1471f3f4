"""Tests for the upload relay state machine."""

import pytest

from services.upload_relay.app.core.schemas import UploadState
from services.upload_relay.app.core.state_machine import (
    InvalidTransitionError,
    StateMachine,
    UploadRun,
)


class TestStateMachine:
    """Tests for the transition table."""

    def test_happy_path_transitions_valid(self):
        path = StateMachine.HAPPY_PATH
        for current, target in zip(path, path[1:]):
            assert StateMachine.is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "state",
        [UploadState.VALIDATING, UploadState.STAGING_REQUESTED, UploadState.BYTES_UPLOADED],
    )
    def test_failed_reachable_from_non_terminal_states(self, state):
        assert StateMachine.is_valid_transition(state, UploadState.FAILED)

    def test_cannot_skip_upload_step(self):
        assert not StateMachine.is_valid_transition(
            UploadState.STAGING_REQUESTED,
            UploadState.FILE_REGISTERED,
        )

    def test_cannot_leave_terminal_states(self):
        for terminal in (UploadState.FILE_REGISTERED, UploadState.FAILED):
            assert StateMachine.get_valid_next_states(terminal) == []
            assert StateMachine.is_terminal_state(terminal)

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            StateMachine.validate_transition(UploadState.VALIDATING, UploadState.BYTES_UPLOADED)

        assert exc_info.value.current_state == UploadState.VALIDATING
        assert exc_info.value.target_state == UploadState.BYTES_UPLOADED
        assert "validating" in str(exc_info.value)

    def test_next_states_from_validating(self):
        assert StateMachine.get_valid_next_states(UploadState.VALIDATING) == [
            UploadState.FAILED,
            UploadState.STAGING_REQUESTED,
        ]


class TestUploadRun:
    """Tests for per-request state tracking."""

    def test_starts_validating(self):
        run = UploadRun()

        assert run.state == UploadState.VALIDATING
        assert run.history == [UploadState.VALIDATING]
        assert not run.is_finished

    def test_full_run(self):
        run = UploadRun()
        run.advance(UploadState.STAGING_REQUESTED)
        run.advance(UploadState.BYTES_UPLOADED)
        run.advance(UploadState.FILE_REGISTERED)

        assert run.history == list(StateMachine.HAPPY_PATH)
        assert run.is_finished

    def test_fail_returns_last_state(self):
        run = UploadRun()
        run.advance(UploadState.STAGING_REQUESTED)

        failed_at = run.fail()

        assert failed_at == UploadState.STAGING_REQUESTED
        assert run.state == UploadState.FAILED
        assert run.is_finished

    def test_cannot_fail_twice(self):
        run = UploadRun()
        run.fail()

        with pytest.raises(InvalidTransitionError):
            run.fail()
