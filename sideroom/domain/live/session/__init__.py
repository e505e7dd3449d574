from .session_coordinator import StreamSessionCoordinator
from .session_models import StreamSessionSnapshot
from .session_state_machine import SessionStateMachine

__all__ = ["SessionStateMachine", "StreamSessionCoordinator", "StreamSessionSnapshot"]
