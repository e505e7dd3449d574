"""Session state machine for managing state transitions."""

from sideroom.schemas import SessionState


class SessionStateMachine:
    """State machine for one room view's live-broadcast session.

    State flow with triggers:
    - UNINITIALIZED -> CREATING (owner create) | CREATED/ACTIVE (viewer learns of a session by polling)
    - CREATING -> CREATED (provider returned key + playback id) | ERRORED | UNINITIALIZED (stop)
    - CREATED -> ACTIVE (owner mark_active, or poll reports media) | CREATING (provider lost the session)
      | UNINITIALIZED (stop, or viewer poll finds no session) | ERRORED
    - ACTIVE -> CREATED (viewer poll reports media stopped) | CREATING | UNINITIALIZED | ERRORED
    - ERRORED -> CREATING (owner retries) | UNINITIALIZED (stop)

    There are no terminal states. A room view's session can always be created again.
    """

    TRANSITIONS: dict[SessionState, set[SessionState]] = {
        SessionState.UNINITIALIZED: {
            SessionState.CREATING,
            SessionState.CREATED,
            SessionState.ACTIVE,
            SessionState.ERRORED,
        },
        SessionState.CREATING: {
            SessionState.CREATED,
            SessionState.ERRORED,
            SessionState.UNINITIALIZED,
        },
        SessionState.CREATED: {
            SessionState.ACTIVE,
            SessionState.CREATING,
            SessionState.UNINITIALIZED,
            SessionState.ERRORED,
        },
        SessionState.ACTIVE: {
            SessionState.CREATED,
            SessionState.CREATING,
            SessionState.UNINITIALIZED,
            SessionState.ERRORED,
        },
        SessionState.ERRORED: {
            SessionState.CREATING,
            SessionState.UNINITIALIZED,
        },
    }

    @classmethod
    def can_transition(cls, current: SessionState, new: SessionState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current session state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def get_valid_transitions(cls, state: SessionState) -> set[SessionState]:
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: SessionState) -> set[SessionState]:
        """Get all states that can transition to the target state."""
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
