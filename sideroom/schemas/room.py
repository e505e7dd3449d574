"""Room projections read from the document store.

The store owns these records; the coordinator only reads them. Field names
follow the store's camelCase documents and are also accepted in snake_case.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _parse_timestamp(v: Any) -> Any:
    """Accept datetimes, epoch millis, or `{"seconds": ..., "nanoseconds": ...}` mappings."""
    if v is None or isinstance(v, datetime):
        return v
    if isinstance(v, (int, float)):
        return datetime.fromtimestamp(v / 1000, tz=timezone.utc)
    if isinstance(v, dict) and "seconds" in v:
        seconds = float(v["seconds"]) + float(v.get("nanoseconds", 0)) / 1e9
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return v


def _camel(snake: str, camel: str) -> Any:
    return Field(
        default=None,
        alias=camel,
        validation_alias=AliasChoices(camel, snake),
    )


class RoomRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"

    def __str__(self) -> str:
        return self.value


class RoomMember(BaseModel):
    """Room-scoped participant record."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", validation_alias=AliasChoices("userId", "user_id"))
    username: str = ""
    avatar: str = ""
    role: RoomRole = RoomRole.MEMBER
    joined_at: datetime | None = _camel("joined_at", "joinedAt")

    @field_validator("joined_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return _parse_timestamp(v)


class RoomStyle(BaseModel):
    """Visual customization. Opaque to the coordinator."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    header_color: str | None = _camel("header_color", "headerColor")
    background_color: str | None = _camel("background_color", "backgroundColor")
    text_color: str | None = _camel("text_color", "textColor")
    accent_color: str | None = _camel("accent_color", "accentColor")
    font: str | None = None


class Room(BaseModel):
    """Read-only snapshot of a room document."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    description: str = ""
    owner_id: str = Field(..., alias="ownerId", validation_alias=AliasChoices("ownerId", "owner_id"))
    members: list[RoomMember] = Field(default_factory=list)
    viewers: list[RoomMember] = Field(default_factory=list)

    is_private: bool = Field(
        default=False, alias="isPrivate", validation_alias=AliasChoices("isPrivate", "is_private")
    )
    password: str | None = None
    max_members: int | None = _camel("max_members", "maxMembers")

    # Live state
    is_live: bool = Field(
        default=False, alias="isLive", validation_alias=AliasChoices("isLive", "is_live")
    )
    is_recording: bool = Field(
        default=False,
        alias="isRecording",
        validation_alias=AliasChoices("isRecording", "is_recording"),
    )
    current_stream_id: str | None = _camel("current_stream_id", "currentStreamId")
    current_recording_id: str | None = _camel("current_recording_id", "currentRecordingId")

    style: RoomStyle | None = None
    category: str = ""
    tags: list[str] = Field(default_factory=list)

    created_at: datetime | None = _camel("created_at", "createdAt")
    updated_at: datetime | None = _camel("updated_at", "updatedAt")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return _parse_timestamp(v)


class User(BaseModel):
    """Authenticated user as seen by the room view."""

    id: str
    username: str = ""
    avatar: str = ""


class PresenceData(BaseModel):
    """Presence record written by heartbeats."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", validation_alias=AliasChoices("userId", "user_id"))
    is_online: bool = Field(
        default=False, alias="isOnline", validation_alias=AliasChoices("isOnline", "is_online")
    )
    last_seen: datetime | None = _camel("last_seen", "lastSeen")
    role: RoomRole | None = None

    @field_validator("last_seen", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        return _parse_timestamp(v)
