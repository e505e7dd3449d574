"""Live-broadcast session coordinator for one room view."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from loguru import logger

from sideroom.app_config import get_app_environ_config
from sideroom.domain.access import is_owner
from sideroom.schemas import Room, SessionState
from sideroom.services import notifier as notices
from sideroom.services.notifier import LoggingNotifier, Notifier
from sideroom.services.video_provider import ProviderSessionStatus, VideoProvider
from sideroom.shared.periodic import PeriodicTask
from sideroom.shared.rate_limiter import (
    SlidingWindowRateLimiter,
    status_poll_limiter,
    stream_limiter,
)
from sideroom.utils.room_errors import (
    InvalidProviderResponse,
    PermissionDenied,
    ProviderUnavailable,
    RateLimited,
    RoomError,
    RoomErrorCode,
    RoomStatusCode,
    SessionNotFound,
)

from .session_models import StreamSessionSnapshot
from .session_state_machine import SessionStateMachine

SessionListener = Callable[[StreamSessionSnapshot], None]


class StreamSessionCoordinator:
    """Drives one room's broadcast session against a `VideoProvider`.

    Owned by exactly one room view. Owners create, activate and stop the
    session; everyone else only observes it through status polls. Every
    provider call is admitted by a rate limiter first.

    Provider answers are applied only if they still belong to the session they
    were issued for: each create/stop/close bumps a generation counter, and
    each poll remembers the session id it was issued under.
    """

    def __init__(
        self,
        room: Room,
        user_id: str,
        provider: VideoProvider,
        *,
        notifier: Notifier | None = None,
        operation_limiter: SlidingWindowRateLimiter | None = None,
        poll_limiter: SlidingWindowRateLimiter | None = None,
        poll_interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self.room_id = room.id
        self.user_id = user_id
        self.is_owner = is_owner(room, user_id)
        self.provider = provider
        self.notifier = notifier or LoggingNotifier()
        self._stream_limiter = operation_limiter or stream_limiter
        self._poll_limiter = poll_limiter or status_poll_limiter
        self.poll_interval = poll_interval or get_app_environ_config().STREAM_STATUS_POLL_SECONDS
        self._sleep = sleep

        self.state = SessionState.UNINITIALIZED
        self.session_id = ""
        self.stream_key = ""
        self.playback_id = ""
        self.is_active = False
        self.last_error: str | None = None

        self._generation = 0
        self._closed = False
        self._poll_in_flight = False
        self._poll_task: PeriodicTask | None = None
        self._listeners: list[SessionListener] = []
        self._not_available_shown = False
        self._check_failed_shown = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and self._poll_task.is_running

    def snapshot(self) -> StreamSessionSnapshot:
        return StreamSessionSnapshot(
            room_id=self.room_id,
            state=self.state,
            session_id=self.session_id,
            stream_key=self.stream_key,
            playback_id=self.playback_id,
            is_active=self.is_active,
            last_error=self.last_error,
        )

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self) -> None:
        if self._closed:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Session listener failed for room {self.room_id}: {e!s}")

    def _notify(self, message: str) -> None:
        if not self._closed:
            self.notifier.notify(message)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        if self.state == new_state:
            return
        if not SessionStateMachine.can_transition(self.state, new_state):
            raise RoomError(
                f"Invalid state transition: {self.state} -> {new_state}",
                errcode=RoomErrorCode.E_INVALID_REQUEST,
                status_code=RoomStatusCode.BAD_REQUEST,
            )
        logger.info(f"Room {self.room_id} session state {self.state} -> {new_state}")
        self.state = new_state

    def _reset_fields(self) -> None:
        self.session_id = ""
        self.stream_key = ""
        self.playback_id = ""
        self.is_active = False

    def _require_open(self, action: str) -> None:
        if self._closed:
            raise RoomError(
                f"Cannot {action} the stream: session coordinator is closed",
                errcode=RoomErrorCode.E_INVALID_REQUEST,
                status_code=RoomStatusCode.BAD_REQUEST,
            )

    def _require_owner(self, action: str) -> None:
        if not self.is_owner:
            logger.warning(f"User {self.user_id} denied {action} on room {self.room_id}")
            self._notify(notices.STREAM_OWNER_ONLY)
            raise PermissionDenied(f"Only the room owner can {action} the stream")

    def _acquire_stream_slot(self, action: str) -> None:
        if not self._stream_limiter.try_acquire(self.room_id):
            retry_after = self._stream_limiter.retry_after(self.room_id)
            logger.debug(
                f"Stream {action} for room {self.room_id} rate limited, retry in {retry_after:.1f}s"
            )
            raise RateLimited(f"Too many stream operations, retry in {retry_after:.1f}s")

    def _is_stale(self, generation: int, issued_for: str | None = None) -> bool:
        if self._closed or generation != self._generation:
            return True
        return issued_for is not None and issued_for != self.session_id

    def _fail(self, error: RoomError) -> None:
        logger.warning(f"Room {self.room_id} session failed: {error.errcode} {error.errmesg}")
        self.last_error = error.errmesg
        self.is_active = False
        self._transition(SessionState.ERRORED)
        self._notify(error.errmesg)
        self._emit()

    # ------------------------------------------------------------------
    # Owner actions
    # ------------------------------------------------------------------

    async def create(self) -> StreamSessionSnapshot:
        """Request a new provider session for the room (owner only).

        Raises:
            PermissionDenied: Caller is not the room owner
            RateLimited: Stream operation budget exhausted; retry later
            InvalidProviderResponse: Provider answer lacked a stream key or playback id
            ProviderUnavailable: Provider could not be reached or refused
        """
        self._require_open("create")
        self._require_owner("create")
        if self.state not in {SessionState.UNINITIALIZED, SessionState.ERRORED}:
            raise RoomError(
                f"Cannot create a stream session while {self.state}",
                errcode=RoomErrorCode.E_INVALID_REQUEST,
                status_code=RoomStatusCode.BAD_REQUEST,
            )
        await self._create()
        return self.snapshot()

    async def _create(self) -> None:
        if self._closed:
            return
        self._acquire_stream_slot("create")

        self._generation += 1
        generation = self._generation
        self._reset_fields()
        self.last_error = None
        self._transition(SessionState.CREATING)
        self._emit()

        try:
            created = await self.provider.create_session(self.room_id)
        except RoomError as e:
            error = e
        except Exception as e:
            logger.error(f"Unexpected provider error creating session for room {self.room_id}: {e!s}")
            error = ProviderUnavailable(f"Failed to create stream: {e!s}")
        else:
            error = None

        if self._is_stale(generation):
            logger.warning(f"Discarding stale create result for room {self.room_id}")
            return

        if error is None:
            playback_id = created.first_playback_id
            if not created.stream_key or not playback_id:
                error = InvalidProviderResponse("Invalid stream data received from server")

        if error is not None:
            self._fail(error)
            raise error

        self.session_id = created.session_id or ""
        self.stream_key = created.stream_key
        self.playback_id = playback_id
        self.is_active = False
        self._transition(SessionState.CREATED)
        logger.info(f"Room {self.room_id} stream session {self.session_id} created")
        self._emit()
        self.start_polling()

    def mark_active(self) -> StreamSessionSnapshot:
        """Owner signals that the encoder is sending media."""
        self._require_open("start")
        self._require_owner("start")
        if self.state == SessionState.ACTIVE:
            return self.snapshot()
        if self.state != SessionState.CREATED:
            raise RoomError(
                f"Cannot start streaming while {self.state}",
                errcode=RoomErrorCode.E_INVALID_REQUEST,
                status_code=RoomStatusCode.BAD_REQUEST,
            )
        self.is_active = True
        self._transition(SessionState.ACTIVE)
        self._emit()
        return self.snapshot()

    async def stop(self) -> StreamSessionSnapshot:
        """Delete the provider session and reset local state (owner only).

        Local state is reset even when the provider delete fails; the failure
        is then surfaced as `ProviderUnavailable`.
        """
        self._require_owner("stop")
        if self.state == SessionState.UNINITIALIZED and not self.session_id:
            return self.snapshot()
        self._acquire_stream_slot("stop")

        session_id = self.session_id
        self._generation += 1
        self.cancel_polling()

        error: RoomError | None = None
        if session_id:
            try:
                await self.provider.delete_session(session_id)
            except SessionNotFound:
                logger.info(f"Stream session {session_id} already gone on provider")
            except RoomError as e:
                error = e
            except Exception as e:
                logger.error(f"Unexpected provider error deleting session {session_id}: {e!s}")
                error = ProviderUnavailable(f"Failed to stop stream: {e!s}")

        if self._closed:
            return self.snapshot()

        self._reset_fields()
        self._transition(SessionState.UNINITIALIZED)
        if error is not None:
            logger.warning(f"Failed to stop stream session {session_id}: {error.errmesg}")
            self.last_error = error.errmesg
            self._notify(notices.STREAM_STOP_FAILED)
            self._emit()
            raise ProviderUnavailable(f"Failed to stop streaming: {error.errmesg}") from error

        self.last_error = None
        logger.info(f"Room {self.room_id} stream session {session_id} stopped")
        self._emit()
        return self.snapshot()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def start_polling(self, run_immediately: bool = False) -> None:
        if self._closed or self.is_polling:
            return
        self._poll_task = PeriodicTask(
            self.poll_once,
            self.poll_interval,
            name=f"stream-status:{self.room_id}",
            run_immediately=run_immediately,
            sleep=self._sleep,
        )
        self._poll_task.start()

    def cancel_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    async def poll_once(self) -> None:
        """Check provider status once and apply the answer if still current.

        Skipped silently when closed, when a previous poll is pending, when an
        owner has no session to check, or when the poll budget is exhausted.
        """
        if self._closed or self._poll_in_flight:
            return
        if self.is_owner and self.state not in SessionState.polling_states():
            return
        if not self._poll_limiter.try_acquire(self.room_id):
            logger.debug(f"Status poll for room {self.room_id} skipped by rate limiter")
            return

        generation = self._generation
        issued_for = self.session_id
        status: ProviderSessionStatus | None = None
        failure: RoomError | None = None
        not_found = False

        self._poll_in_flight = True
        try:
            status = await self.provider.get_session_status(self.room_id)
        except SessionNotFound:
            not_found = True
        except RoomError as e:
            failure = e
        except Exception as e:
            failure = ProviderUnavailable(f"Failed to check stream status: {e!s}")
        finally:
            self._poll_in_flight = False

        if self._is_stale(generation, issued_for):
            logger.debug(f"Discarding stale status poll for room {self.room_id}")
            return

        if not_found:
            await self._handle_not_found()
        elif failure is not None:
            self._handle_poll_failure(failure)
        elif status is not None:
            self._apply_status(status)

    async def _handle_not_found(self) -> None:
        if self.is_owner:
            logger.info(f"No stream found for room {self.room_id}, creating new stream")
            try:
                await self._create()
            except RateLimited:
                logger.debug(f"Re-creation for room {self.room_id} deferred by rate limiter")
            except RoomError as e:
                logger.warning(f"Re-creation for room {self.room_id} failed: {e.errmesg}")
            return

        logger.info(f"No stream found for room {self.room_id}")
        changed = self.state != SessionState.UNINITIALIZED or bool(self.session_id)
        self._reset_fields()
        self._transition(SessionState.UNINITIALIZED)
        if not self._not_available_shown:
            self._not_available_shown = True
            self._notify(notices.STREAM_NOT_AVAILABLE)
        if changed:
            self._emit()

    def _handle_poll_failure(self, failure: RoomError) -> None:
        # Transient: state is left as it was until the next poll succeeds
        logger.warning(f"Status check failed for room {self.room_id}: {failure.errmesg}")
        self.last_error = failure.errmesg
        if not self._check_failed_shown:
            self._check_failed_shown = True
            self._notify(notices.STREAM_CHECK_FAILED)
            self._emit()

    def _apply_status(self, status: ProviderSessionStatus) -> None:
        logger.debug(f"Room {self.room_id} status: {status.model_dump()}")
        if (
            self.is_owner
            and status.session_id
            and self.session_id
            and status.session_id != self.session_id
        ):
            logger.debug(
                f"Ignoring status for session {status.session_id}, current is {self.session_id}"
            )
            return

        before = self.snapshot()
        self._not_available_shown = False
        self._check_failed_shown = False
        self.last_error = None

        if status.playback_id:
            self.playback_id = status.playback_id

        if self.is_owner:
            if status.session_id and not self.session_id:
                self.session_id = status.session_id
            # The owner's explicit start is kept until they stop
            if status.is_active and self.state == SessionState.CREATED:
                self.is_active = True
                self._transition(SessionState.ACTIVE)
        else:
            if status.session_id:
                self.session_id = status.session_id
            self.is_active = status.is_active
            self._transition(SessionState.ACTIVE if status.is_active else SessionState.CREATED)

        if self.snapshot() != before:
            self._emit()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Cancel polling and ignore every in-flight provider answer."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self.cancel_polling()
        self._listeners.clear()
        logger.info(f"Room {self.room_id} session coordinator closed")
