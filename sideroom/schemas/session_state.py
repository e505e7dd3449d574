"""Common enums used across schemas."""

from enum import Enum


class SessionState(str, Enum):
    """Live-broadcast session lifecycle states.

    State Transition Flow:

    UNINITIALIZED → CREATING → CREATED → ACTIVE
          ↑            ↓          ↓         ↓
          └──────── ERRORED ←─────┴─────────┘

    State Descriptions:
    - UNINITIALIZED: No provider session. Initial state and the state after stop().
    - CREATING: create() requested a session from the provider and awaits the answer.
    - CREATED: Provider returned a stream key and playback id. Media not yet confirmed.
    - ACTIVE: Owner signalled that the encoder is sending media, or a poll reported it.
    - ERRORED: A provider call failed. The last error is kept for display.
      Retryable back to CREATING.

    There is no terminal state; a stopped session may be created again.
    """

    UNINITIALIZED = "uninitialized"
    CREATING = "creating"
    CREATED = "created"
    ACTIVE = "active"
    ERRORED = "errored"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def polling_states(cls) -> list["SessionState"]:
        """States in which the provider is polled for status."""
        return [SessionState.CREATED, SessionState.ACTIVE]


__all__ = ["SessionState"]
