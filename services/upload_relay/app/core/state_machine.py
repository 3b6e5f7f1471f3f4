"""Upload relay state machine."""

from services.upload_relay.app.core.schemas import UploadState


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        current_state: UploadState,
        target_state: UploadState,
        message: str | None = None,
    ):
        self.current_state = current_state
        self.target_state = target_state
        self.message = message or (
            f"Invalid transition from {current_state.value} to {target_state.value}"
        )
        super().__init__(self.message)


class StateMachine:
    """Lifecycle of one relayed upload.

    Valid transitions:
    - validating -> staging_requested (file accepted)
    - staging_requested -> bytes_uploaded (staged target received, bytes sent)
    - bytes_uploaded -> file_registered (file record created)
    - any non-terminal state -> failed
    """

    HAPPY_PATH: tuple[UploadState, ...] = (
        UploadState.VALIDATING,
        UploadState.STAGING_REQUESTED,
        UploadState.BYTES_UPLOADED,
        UploadState.FILE_REGISTERED,
    )

    TERMINAL_STATES: frozenset[UploadState] = frozenset(
        {UploadState.FILE_REGISTERED, UploadState.FAILED}
    )

    VALID_TRANSITIONS: set[tuple[UploadState, UploadState]] = {
        (UploadState.VALIDATING, UploadState.STAGING_REQUESTED),
        (UploadState.STAGING_REQUESTED, UploadState.BYTES_UPLOADED),
        (UploadState.BYTES_UPLOADED, UploadState.FILE_REGISTERED),
        (UploadState.VALIDATING, UploadState.FAILED),
        (UploadState.STAGING_REQUESTED, UploadState.FAILED),
        (UploadState.BYTES_UPLOADED, UploadState.FAILED),
    }

    @classmethod
    def is_valid_transition(
        cls,
        current_state: UploadState,
        target_state: UploadState,
    ) -> bool:
        """Check if a state transition is valid."""
        return (current_state, target_state) in cls.VALID_TRANSITIONS

    @classmethod
    def validate_transition(
        cls,
        current_state: UploadState,
        target_state: UploadState,
    ) -> None:
        """Validate a state transition, raising an error if invalid.

        Raises:
            InvalidTransitionError: If transition is not valid
        """
        if not cls.is_valid_transition(current_state, target_state):
            raise InvalidTransitionError(current_state, target_state)

    @classmethod
    def get_valid_next_states(cls, current_state: UploadState) -> list[UploadState]:
        """Get list of valid next states from current state."""
        return sorted(
            (target for (source, target) in cls.VALID_TRANSITIONS if source == current_state),
            key=lambda state: state.value,
        )

    @classmethod
    def is_terminal_state(cls, state: UploadState) -> bool:
        return state in cls.TERMINAL_STATES


class UploadRun:
    """Tracks the current state of a single relay run."""

    def __init__(self) -> None:
        self.state = UploadState.VALIDATING
        self.history: list[UploadState] = [UploadState.VALIDATING]

    def advance(self, target_state: UploadState) -> None:
        """Move to ``target_state``, enforcing the transition table."""
        StateMachine.validate_transition(self.state, target_state)
        self.state = target_state
        self.history.append(target_state)

    def fail(self) -> UploadState:
        """Move to ``failed`` and return the state the run failed in."""
        failed_at = self.state
        self.advance(UploadState.FAILED)
        return failed_at

    @property
    def is_finished(self) -> bool:
        return StateMachine.is_terminal_state(self.state)
