"""Example script walking one room through a broadcast (demo mode).

Runs entirely in-process: the stream API client returns stubs while
DEMO_MODE=true, so no backend or Mux account is needed.
"""

import asyncio
import json

from sideroom.domain.live import RoomView
from sideroom.schemas import Room, RoomMember, RoomRole
from sideroom.services.membership import InMemoryMembershipProvider
from sideroom.services.notifier import RecordingNotifier
from sideroom.services.stream_api_client import StreamApiClient

ROOM = Room(
    id="room_demo",
    name="Late Night Talk",
    owner_id="alice",
    members=[RoomMember(user_id="bob", username="bob", role=RoomRole.MEMBER)],
    viewers=[RoomMember(user_id="carol", username="carol", role=RoomRole.VIEWER)],
    max_members=10,
)


async def main():
    membership = InMemoryMembershipProvider([ROOM])
    provider = StreamApiClient(demo_mode=True)
    notifier = RecordingNotifier()

    async with RoomView(
        "room_demo", "alice", membership=membership, provider=provider, notifier=notifier
    ) as owner:
        print("Owner view after open:")
        print(json.dumps(owner.coordinator.snapshot().owner_view(), indent=2))

        owner.coordinator.mark_active()
        await asyncio.sleep(2)
        print(f"On air for {owner.timer.tick()}")

        async with RoomView("room_demo", "carol", membership=membership, provider=provider) as viewer:
            await asyncio.sleep(0.1)
            print("Viewer sees:")
            print(json.dumps(viewer.coordinator.snapshot().public_view(), indent=2))
            print(f"Viewer may chat: {viewer.try_send_message()}")

        await owner.coordinator.stop()
        print(f"Owner state after stop: {owner.coordinator.state}")

    if notifier.messages:
        print(f"Notices: {notifier.messages}")


if __name__ == "__main__":
    asyncio.run(main())
