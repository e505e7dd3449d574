"""Membership snapshot provider.

The document store owns room data; the coordinator only reads snapshots.
"""

from typing import Protocol, runtime_checkable

from loguru import logger

from sideroom.schemas import Room


@runtime_checkable
class MembershipProvider(Protocol):
    async def get_room(self, room_id: str) -> Room | None: ...


class InMemoryMembershipProvider:
    """Snapshot provider backed by a dict. Used in demo mode and tests."""

    def __init__(self, rooms: list[Room] | None = None) -> None:
        self._rooms: dict[str, Room] = {room.id: room for room in rooms or []}

    def put(self, room: Room) -> None:
        self._rooms[room.id] = room

    async def get_room(self, room_id: str) -> Room | None:
        room = self._rooms.get(room_id)
        if room is None:
            logger.debug(f"Room {room_id} not found in memory")
            return None
        # Snapshots are read-only projections
        return room.model_copy(deep=True)
