"""On-air elapsed time and recently-online checks."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from loguru import logger

from sideroom.app_config import get_app_environ_config
from sideroom.schemas import PresenceData

from .session.session_models import StreamSessionSnapshot

ZERO_DISPLAY = "00:00:00"


def format_elapsed(seconds: float) -> str:
    """Format as HH:MM:SS. Hours keep growing past 99; there is no days field."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ElapsedTimer:
    """Stopwatch driven by the session's activity flag.

    Each active period starts from zero; nothing accumulates across periods.
    `tick()` refreshes `display` and is meant to be called once per second
    while active.
    """

    def __init__(self, now: Callable[[], float] | None = None) -> None:
        self._clock = now or time.monotonic
        self._started_at: float | None = None
        self.display = ZERO_DISPLAY

    @property
    def is_active(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed_seconds(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, self._clock() - self._started_at)

    def set_active(self, active: bool) -> None:
        if active and self._started_at is None:
            self._started_at = self._clock()
            self.display = ZERO_DISPLAY
            logger.debug("Broadcast went live, starting timer")
        elif not active and self._started_at is not None:
            self._started_at = None
            self.display = ZERO_DISPLAY
            logger.debug("Broadcast went offline, resetting timer")

    def tick(self) -> str:
        if self._started_at is not None:
            self.display = format_elapsed(self.elapsed_seconds)
        return self.display

    def on_session_change(self, snapshot: StreamSessionSnapshot) -> None:
        self.set_active(snapshot.is_active)


def is_recently_online(
    presence: PresenceData,
    now: datetime | None = None,
    window_seconds: int | None = None,
) -> bool:
    """Online if flagged online, or last seen within the window."""
    if presence.is_online:
        return True
    if presence.last_seen is None:
        return False
    if window_seconds is None:
        window_seconds = get_app_environ_config().PRESENCE_ONLINE_WINDOW_SECONDS
    now = now or datetime.now(timezone.utc)
    last_seen = presence.last_seen
    if last_seen.tzinfo is None:
        last_seen = last_seen.replace(tzinfo=timezone.utc)
    return now - last_seen < timedelta(seconds=window_seconds)
