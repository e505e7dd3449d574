"""Error taxonomy for the room session coordinator.

Errors carry a stable `errcode`, a human-readable `errmesg` and an HTTP-like
`status_code` so a presentation layer can render them without inspecting types.
"""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class RoomErrorCode(str, Enum):
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_PERMISSION_DENIED = "E_PERMISSION_DENIED"
    E_INVALID_PROVIDER_RESPONSE = "E_INVALID_PROVIDER_RESPONSE"
    E_PROVIDER_UNAVAILABLE = "E_PROVIDER_UNAVAILABLE"
    E_SESSION_NOT_FOUND = "E_SESSION_NOT_FOUND"
    E_ROOM_NOT_FOUND = "E_ROOM_NOT_FOUND"
    E_RATE_LIMITED = "E_RATE_LIMITED"
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"

    def __str__(self) -> str:
        return self.value


class RoomStatusCode(IntEnum):
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


class RoomError(Exception):
    """Base error raised by the coordinator and provider adapters."""

    default_errcode = RoomErrorCode.E_INTERNAL_ERROR
    default_status_code = RoomStatusCode.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        errmesg: str,
        *,
        errcode: RoomErrorCode | None = None,
        status_code: RoomStatusCode | None = None,
    ) -> None:
        super().__init__(errmesg)
        self.errcode = (errcode or self.default_errcode).value
        self.errmesg = errmesg
        self.status_code = int(status_code or self.default_status_code)
        self.erresid = uuid4().hex[:10]

        caller_frame = inspect.stack()[1]
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(errcode={self.errcode!r}, errmesg={self.errmesg!r})"


class PermissionDenied(RoomError):
    """A non-owner attempted an owner-only session action."""

    default_errcode = RoomErrorCode.E_PERMISSION_DENIED
    default_status_code = RoomStatusCode.FORBIDDEN


class InvalidProviderResponse(RoomError):
    """The provider answered successfully but left out required fields."""

    default_errcode = RoomErrorCode.E_INVALID_PROVIDER_RESPONSE
    default_status_code = RoomStatusCode.BAD_GATEWAY


class ProviderUnavailable(RoomError):
    """Transport failure or a non-2xx answer other than "not found"."""

    default_errcode = RoomErrorCode.E_PROVIDER_UNAVAILABLE
    default_status_code = RoomStatusCode.SERVICE_UNAVAILABLE


class SessionNotFound(RoomError):
    default_errcode = RoomErrorCode.E_SESSION_NOT_FOUND
    default_status_code = RoomStatusCode.NOT_FOUND


class RateLimited(RoomError):
    default_errcode = RoomErrorCode.E_RATE_LIMITED
    default_status_code = RoomStatusCode.TOO_MANY_REQUESTS


__all__ = [
    "InvalidProviderResponse",
    "PermissionDenied",
    "ProviderUnavailable",
    "RateLimited",
    "RoomError",
    "RoomErrorCode",
    "RoomStatusCode",
    "SessionNotFound",
]
