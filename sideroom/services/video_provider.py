"""Video-provider capability consumed by the session coordinator.

Implementations perform the transport work and translate failures into the
room error taxonomy:

- `SessionNotFound` when the provider has no session for the room
- `ProviderUnavailable` for transport failures and any other non-2xx answer

Implementations never retry; retry policy belongs to the coordinator.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ProviderPlaybackId(BaseModel):
    id: str | None = None
    policy: str = "public"


class ProviderSession(BaseModel):
    """Answer to `create_session`. Fields may be missing; the coordinator validates them."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str | None = Field(
        default=None,
        alias="id",
        validation_alias=AliasChoices("id", "session_id", "sessionId", "streamId"),
    )
    stream_key: str | None = Field(
        default=None, validation_alias=AliasChoices("stream_key", "streamKey")
    )
    playback_ids: list[ProviderPlaybackId] = Field(
        default_factory=list, validation_alias=AliasChoices("playback_ids", "playbackIds")
    )

    @property
    def first_playback_id(self) -> str | None:
        for playback in self.playback_ids:
            if playback.id:
                return playback.id
        return None


class ProviderSessionStatus(BaseModel):
    """Answer to `get_session_status`."""

    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(default=False, validation_alias=AliasChoices("isActive", "is_active"))
    playback_id: str | None = Field(
        default=None, validation_alias=AliasChoices("playbackId", "playback_id")
    )
    session_id: str | None = Field(
        default=None, validation_alias=AliasChoices("streamId", "sessionId", "session_id")
    )


@runtime_checkable
class VideoProvider(Protocol):
    async def create_session(self, room_id: str) -> ProviderSession: ...

    async def get_session_status(self, room_id: str) -> ProviderSessionStatus: ...

    async def delete_session(self, session_id: str) -> None: ...


__all__ = [
    "ProviderPlaybackId",
    "ProviderSession",
    "ProviderSessionStatus",
    "VideoProvider",
]
