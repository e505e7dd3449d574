"""Pydantic schemas for room snapshots and session state."""

from .room import PresenceData, Room, RoomMember, RoomRole, RoomStyle, User
from .session_state import SessionState

__all__ = [
    "PresenceData",
    "Room",
    "RoomMember",
    "RoomRole",
    "RoomStyle",
    "SessionState",
    "User",
]
