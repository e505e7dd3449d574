"""
In-process sliding-window rate limiter.

Each key keeps the timestamps of its admitted requests inside the trailing
window. Old timestamps are pruned lazily on every call; there is no background
timer.

Configuration guidelines:
- `max_requests` is the number of admissions allowed within any trailing
  `window_millis` interval, e.g. chat sends: `10` per `5000` ms.
- A limiter instance is shared by every caller that should count against the
  same budget. Independent budgets need independent instances.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from sideroom.app_config import get_app_environ_config


@dataclass(frozen=True)
class RateLimitConfig:
    """Validated limiter parameters."""

    max_requests: int
    window_millis: int

    def __post_init__(self) -> None:
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int):
            raise ValueError(f"max_requests must be an integer (got {self.max_requests!r})")
        if isinstance(self.window_millis, bool) or not isinstance(self.window_millis, int):
            raise ValueError(f"window_millis must be an integer (got {self.window_millis!r})")
        if self.max_requests <= 0:
            raise ValueError(f"max_requests must be > 0 (got {self.max_requests})")
        if self.window_millis <= 0:
            raise ValueError(f"window_millis must be > 0 (got {self.window_millis})")

    @staticmethod
    def from_string(raw: str) -> "RateLimitConfig":
        """Parse `"<max_requests>/<window_millis>"`, e.g. `"10/5000"`."""
        try:
            max_raw, window_raw = raw.split("/", 1)
            return RateLimitConfig(int(max_raw.strip()), int(window_raw.strip()))
        except (AttributeError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid rate limit value: {raw!r}") from exc


class SlidingWindowRateLimiter:
    """
    Sliding-window admission control keyed by an arbitrary string.

    `try_acquire` checks and records under one lock, so two concurrent callers
    competing for the last slot never both get admitted.
    """

    def __init__(
        self,
        max_requests: int,
        window_millis: int,
        *,
        label: str = "default",
        now: Callable[[], float] | None = None,
    ) -> None:
        self._config = RateLimitConfig(max_requests, window_millis)
        self.label = label
        self._clock = now or time.monotonic
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_string(
        cls, raw: str, *, label: str = "default", now: Callable[[], float] | None = None
    ) -> "SlidingWindowRateLimiter":
        config = RateLimitConfig.from_string(raw)
        return cls(config.max_requests, config.window_millis, label=label, now=now)

    @property
    def max_requests(self) -> int:
        return self._config.max_requests

    @property
    def window_millis(self) -> int:
        return self._config.window_millis

    def _now_millis(self) -> float:
        return float(self._clock()) * 1000.0

    def _prune(self, key: str, now_ms: float) -> deque[float]:
        window = self._windows.get(key)
        if window is None:
            return deque()
        while window and now_ms - window[0] >= self.window_millis:
            window.popleft()
        if not window:
            del self._windows[key]
        return window

    def try_acquire(self, key: str) -> bool:
        """
        Admit one request for `key` if the trailing window has room.

        Returns True and records the admission when fewer than `max_requests`
        were admitted within the last `window_millis`; otherwise returns False
        and records nothing.
        """
        with self._lock:
            now_ms = self._now_millis()
            window = self._prune(key, now_ms)
            if len(window) >= self.max_requests:
                logger.debug(f"Rate limited: label={self.label} key={key}")
                return False
            window.append(now_ms)
            self._windows[key] = window
            return True

    def remaining(self, key: str) -> int:
        """Number of admissions still available in the current window."""
        with self._lock:
            window = self._prune(key, self._now_millis())
            return self.max_requests - len(window)

    def retry_after(self, key: str) -> float:
        """Seconds until the next admission for `key` becomes possible (0 if now)."""
        with self._lock:
            now_ms = self._now_millis()
            window = self._prune(key, now_ms)
            if len(window) < self.max_requests:
                return 0.0
            return max(0.0, (window[0] + self.window_millis - now_ms) / 1000.0)

    def reset(self, key: str) -> None:
        """Clear all recorded admissions for one key."""
        with self._lock:
            self._windows.pop(key, None)

    def reset_all(self) -> None:
        with self._lock:
            self._windows.clear()


_cfg = get_app_environ_config()

# Chat sends per user
message_limiter = SlidingWindowRateLimiter.from_string(_cfg.MESSAGE_RATE_LIMIT, label="message")
# Presence heartbeats per user
presence_limiter = SlidingWindowRateLimiter.from_string(_cfg.PRESENCE_RATE_LIMIT, label="presence")
# Owner stream operations (create/stop) per room
stream_limiter = SlidingWindowRateLimiter.from_string(_cfg.STREAM_RATE_LIMIT, label="stream")
# Provider status polls per room, shared by every view mounted in this process
status_poll_limiter = SlidingWindowRateLimiter.from_string(
    _cfg.STATUS_POLL_RATE_LIMIT, label="status_poll"
)
