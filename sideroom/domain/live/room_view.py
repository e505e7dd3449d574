"""Per-view lifecycle: what exists while one user has one room open."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from loguru import logger

from sideroom.domain import access
from sideroom.schemas import Room, RoomRole
from sideroom.services.membership import MembershipProvider
from sideroom.services.notifier import LoggingNotifier, Notifier
from sideroom.services.video_provider import VideoProvider
from sideroom.shared.periodic import PeriodicTask
from sideroom.shared import rate_limiter
from sideroom.shared.rate_limiter import SlidingWindowRateLimiter
from sideroom.utils.room_errors import RateLimited, RoomError, RoomErrorCode, RoomStatusCode

from .presence import ElapsedTimer
from .session.session_coordinator import StreamSessionCoordinator


class RoomView:
    """One user's open room.

    `open()` loads the membership snapshot, resolves the user's role and
    starts the session coordinator: owners create a session right away,
    everyone else starts polling for one. `close()` cancels every timer and
    makes the coordinator ignore in-flight provider answers.
    """

    def __init__(
        self,
        room_id: str,
        user_id: str,
        *,
        membership: MembershipProvider,
        provider: VideoProvider,
        notifier: Notifier | None = None,
        message_limiter: SlidingWindowRateLimiter | None = None,
        presence_limiter: SlidingWindowRateLimiter | None = None,
        coordinator_factory: Callable[..., StreamSessionCoordinator] | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.room_id = room_id
        self.user_id = user_id
        self.membership = membership
        self.provider = provider
        self.notifier = notifier or LoggingNotifier()
        self._message_limiter = message_limiter or rate_limiter.message_limiter
        self._presence_limiter = presence_limiter or rate_limiter.presence_limiter
        self._coordinator_factory = coordinator_factory or StreamSessionCoordinator
        self._sleep = sleep

        self.room: Room | None = None
        self.role: RoomRole | None = None
        self.coordinator: StreamSessionCoordinator | None = None
        self.timer = ElapsedTimer(now=clock)
        self._tick_task: PeriodicTask | None = None

    @property
    def is_open(self) -> bool:
        return self.coordinator is not None and not self.coordinator.closed

    async def open(self) -> None:
        if self.is_open:
            return

        room = await self.membership.get_room(self.room_id)
        if room is None:
            raise RoomError(
                f"Room not found: {self.room_id}",
                errcode=RoomErrorCode.E_ROOM_NOT_FOUND,
                status_code=RoomStatusCode.NOT_FOUND,
            )
        self.room = room
        self.role = access.role_of(room, self.user_id)
        logger.info(f"User {self.user_id} opened room {self.room_id} as {self.role}")

        coordinator = self._coordinator_factory(
            room, self.user_id, self.provider, notifier=self.notifier, sleep=self._sleep
        )
        coordinator.add_listener(self.timer.on_session_change)
        self.coordinator = coordinator

        self._tick_task = PeriodicTask(
            self._tick, 1.0, name=f"on-air-timer:{self.room_id}", sleep=self._sleep
        )
        self._tick_task.start()

        if coordinator.is_owner:
            try:
                await coordinator.create()
            except RateLimited:
                logger.debug(f"Initial stream creation for room {self.room_id} rate limited")
            except RoomError as e:
                # Already surfaced through the notifier; the owner may retry
                logger.warning(f"Initial stream creation for room {self.room_id} failed: {e.errmesg}")
        else:
            coordinator.start_polling(run_immediately=True)

    async def _tick(self) -> None:
        self.timer.tick()

    def close(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None
        if self.coordinator is not None:
            self.coordinator.close()
        self.timer.set_active(False)
        logger.info(f"User {self.user_id} closed room {self.room_id}")

    async def __aenter__(self) -> "RoomView":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def try_send_message(self) -> bool:
        """Whether a chat send may go out now: permitted and within the send budget."""
        if self.room is None or not access.can_send_messages(self.room, self.user_id):
            return False
        return self._message_limiter.try_acquire(f"{self.room_id}:{self.user_id}")

    def try_heartbeat(self) -> bool:
        """Whether a presence heartbeat may be written now."""
        if self.room is None or not access.has_access(self.room, self.user_id):
            return False
        return self._presence_limiter.try_acquire(f"{self.room_id}:{self.user_id}")
