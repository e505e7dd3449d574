from .presence import ElapsedTimer, format_elapsed, is_recently_online
from .room_view import RoomView
from .session import SessionStateMachine, StreamSessionCoordinator, StreamSessionSnapshot

__all__ = [
    "ElapsedTimer",
    "RoomView",
    "SessionStateMachine",
    "StreamSessionCoordinator",
    "StreamSessionSnapshot",
    "format_elapsed",
    "is_recently_online",
]
