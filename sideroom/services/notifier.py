"""Notification surface for human-readable status strings."""

from typing import Protocol, runtime_checkable

from loguru import logger

STREAM_NOT_AVAILABLE = "Stream is not available. Please wait for the owner to start streaming."
STREAM_CHECK_FAILED = "Failed to check stream status. Please try again later."
STREAM_STOP_FAILED = "Failed to stop streaming. Please try again."
STREAM_OWNER_ONLY = "Only the room owner can manage the stream."


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class LoggingNotifier:
    """Writes notices to the log. Default sink when the caller supplies none."""

    def notify(self, message: str) -> None:
        logger.info(f"Room notice: {message}")


class RecordingNotifier:
    """Keeps every notice in order, for presentation layers that poll for messages."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)

    @property
    def last(self) -> str | None:
        return self.messages[-1] if self.messages else None

    def clear(self) -> None:
        self.messages.clear()
