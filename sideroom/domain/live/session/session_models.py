"""Session domain models."""

from pydantic import BaseModel

from sideroom.app_config import get_app_environ_config
from sideroom.schemas import SessionState


class StreamSessionSnapshot(BaseModel):
    """Point-in-time copy of a room view's session."""

    room_id: str
    state: SessionState = SessionState.UNINITIALIZED
    session_id: str = ""
    stream_key: str = ""
    playback_id: str = ""
    is_active: bool = False
    last_error: str | None = None

    @property
    def playback_url(self) -> str | None:
        if not self.playback_id:
            return None
        return f"{get_app_environ_config().MUX_STREAM_BASE_URL}/{self.playback_id}.m3u8"

    @property
    def thumbnail_url(self) -> str | None:
        if not self.playback_id:
            return None
        return f"{get_app_environ_config().MUX_IMAGE_BASE_URL}/{self.playback_id}/thumbnail.jpg"

    @property
    def rtmp_ingest_url(self) -> str:
        return get_app_environ_config().MUX_RTMP_INGEST_BASE_URL

    def owner_view(self) -> dict:
        """Everything, including the stream key and where to send media."""
        data = self.model_dump(mode="json")
        data["playback_url"] = self.playback_url
        data["thumbnail_url"] = self.thumbnail_url
        data["rtmp_ingest_url"] = self.rtmp_ingest_url if self.stream_key else None
        return data

    def public_view(self) -> dict:
        """Safe for non-owners: the stream key is never included."""
        data = self.model_dump(mode="json", exclude={"stream_key"})
        data["playback_url"] = self.playback_url
        data["thumbnail_url"] = self.thumbnail_url
        return data
