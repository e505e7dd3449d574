"""Mux helper service.

This module provides a thin wrapper around the `mux-python` package and an
async `VideoProvider` adapter on top of it.

Based on the official Mux Python SDK:
https://github.com/muxinc/mux-python

Rooms are mapped to live streams through the stream's `passthrough` field,
which is set to the room id at creation time.

Usage:
    from sideroom.services.mux_service import MuxVideoProvider

    provider = MuxVideoProvider()
    session = await provider.create_session("room_1")
    status = await provider.get_session_status("room_1")
    await provider.delete_session(session.session_id)
"""

from __future__ import annotations

import asyncio

import mux_python
from loguru import logger
from mux_python.exceptions import ApiException as MuxApiException
from mux_python.exceptions import NotFoundException as MuxNotFoundException
from pydantic import BaseModel, Field

from sideroom.app_config import AppEnvironConfig, get_app_environ_config
from sideroom.services.video_provider import (
    ProviderPlaybackId,
    ProviderSession,
    ProviderSessionStatus,
)
from sideroom.utils.room_errors import (
    ProviderUnavailable,
    RoomError,
    RoomErrorCode,
    RoomStatusCode,
    SessionNotFound,
)

_LIST_PAGE_SIZE = 100
_LIST_MAX_PAGES = 10


class MuxPlaybackId(BaseModel):
    """Mux playback ID model."""

    id: str
    policy: str


class MuxLiveStream(BaseModel):
    """Mux live stream data model."""

    id: str
    stream_key: str | None = None
    status: str
    playback_ids: list[MuxPlaybackId] = Field(default_factory=list)
    active_asset_id: str | None = None
    created_at: str | None = None
    passthrough: str | None = None


def _to_live_stream(mux_data) -> MuxLiveStream:
    playback_ids = [
        MuxPlaybackId(id=pb.id, policy=str(pb.policy))  # type: ignore[attr-defined]
        for pb in (mux_data.playback_ids or [])
    ]
    return MuxLiveStream(
        id=mux_data.id,
        stream_key=mux_data.stream_key,
        status=str(mux_data.status),
        playback_ids=playback_ids,
        active_asset_id=mux_data.active_asset_id,
        created_at=mux_data.created_at,
        passthrough=mux_data.passthrough,
    )


class MuxService:
    """Service wrapper for Mux Video API (mux-python package)."""

    def __init__(self, cfg: AppEnvironConfig | None = None) -> None:
        self._cfg = cfg or get_app_environ_config()
        self._demo_mode = bool(self._cfg.DEMO_MODE)
        self._configuration: mux_python.Configuration | None = None
        self._live_api: mux_python.LiveStreamsApi | None = None
        self._timeout = self._cfg.STREAM_API_TIMEOUT_SECONDS
        logger.info("MuxService initialized")

    def _get_configuration(self) -> mux_python.Configuration:
        """Get or create Mux configuration with credentials.

        Raises:
            RoomError: If MUX_TOKEN_ID or MUX_TOKEN_SECRET is not configured
        """
        if self._configuration is None:
            token_id = self._cfg.MUX_TOKEN_ID
            token_secret = self._cfg.MUX_TOKEN_SECRET

            if not token_id or not token_secret:
                logger.error("MUX_TOKEN_ID or MUX_TOKEN_SECRET not configured")
                raise RoomError(
                    "Streaming provider credentials must be configured. Set them in env.local or environment variables.",
                    errcode=RoomErrorCode.E_INVALID_REQUEST,
                    status_code=RoomStatusCode.BAD_REQUEST,
                )

            self._configuration = mux_python.Configuration()
            self._configuration.username = token_id
            self._configuration.password = token_secret
            logger.info("Mux configuration created")

        return self._configuration

    def _get_live_api(self) -> mux_python.LiveStreamsApi:
        if self._live_api is None:
            config = self._get_configuration()
            self._live_api = mux_python.LiveStreamsApi(mux_python.ApiClient(config))
            logger.info("Mux LiveStreamsApi client created")
        return self._live_api

    def create_live_stream(
        self,
        passthrough: str,
        playback_policy: str = "public",
        reconnect_window: int | None = 60,
        test: bool = False,
    ) -> MuxLiveStream:
        """Create a new Mux live stream tagged with `passthrough`.

        Args:
            passthrough: Room identifier stored on the stream for later lookup
            playback_policy: Playback policy ("public" or "signed")
            reconnect_window: Time in seconds for reconnection window
            test: Create test live stream

        Returns:
            MuxLiveStream with id, stream_key, playback_ids and status

        Raises:
            ApiException: If API request fails
        """
        if self._demo_mode:
            logger.info("MuxService DEMO_MODE=true: returning stubbed live stream")
            return MuxLiveStream(
                id=f"ls_demo_{passthrough}",
                stream_key="sk_demo_redacted",
                status="idle",
                playback_ids=[MuxPlaybackId(id=f"pb_demo_{passthrough}", policy="public")],
                passthrough=passthrough,
            )

        live_api = self._get_live_api()
        policies = [playback_policy.lower()]
        kwargs_for_request: dict = {
            "playback_policy": policies,
            "new_asset_settings": mux_python.CreateAssetRequest(playback_policy=policies),
            "passthrough": passthrough,
            "test": test,
        }
        if reconnect_window is not None:
            kwargs_for_request["reconnect_window"] = reconnect_window

        create_request = mux_python.CreateLiveStreamRequest(**kwargs_for_request)  # type: ignore[arg-type]
        logger.info(f"Creating Mux live stream for passthrough={passthrough}")
        response = live_api.create_live_stream(create_request, _request_timeout=self._timeout)

        result = _to_live_stream(response.data)  # type: ignore[attr-defined]
        logger.info(f"Created Mux live stream with id={result.id}")
        return result

    def find_live_stream(self, passthrough: str) -> MuxLiveStream | None:
        """Find the newest non-disabled live stream whose passthrough matches."""
        if self._demo_mode:
            return MuxLiveStream(
                id=f"ls_demo_{passthrough}",
                status="idle",
                playback_ids=[MuxPlaybackId(id=f"pb_demo_{passthrough}", policy="public")],
                passthrough=passthrough,
            )

        live_api = self._get_live_api()
        for page in range(1, _LIST_MAX_PAGES + 1):
            response = live_api.list_live_streams(
                limit=_LIST_PAGE_SIZE, page=page, _request_timeout=self._timeout
            )
            streams = response.data or []  # type: ignore[attr-defined]
            for mux_data in streams:
                if mux_data.passthrough == passthrough and mux_data.status != "disabled":
                    return _to_live_stream(mux_data)
            if len(streams) < _LIST_PAGE_SIZE:
                break
        return None

    def delete_live_stream(self, stream_id: str) -> None:
        """Delete a live stream.

        Raises:
            NotFoundException: If stream not found
            ApiException: If API request fails
        """
        if self._demo_mode:
            logger.info("MuxService DEMO_MODE=true: delete_live_stream is a no-op")
            return

        live_api = self._get_live_api()
        logger.info(f"Deleting Mux live stream id={stream_id}")
        live_api.delete_live_stream(stream_id, _request_timeout=self._timeout)
        logger.info(f"Deleted Mux live stream id={stream_id}")

    def get_playback_url(self, playback_id: str) -> str:
        """HLS playback URL for a playback ID.

        Example:
            >>> mux_service.get_playback_url("abc123")
            'https://stream.mux.com/abc123.m3u8'
        """
        return f"{self._cfg.MUX_STREAM_BASE_URL}/{playback_id}.m3u8"


class MuxVideoProvider:
    """`VideoProvider` backed directly by Mux.

    mux-python is synchronous, so each call runs in a worker thread.
    """

    def __init__(self, service: MuxService | None = None) -> None:
        self.mux = service or MuxService()

    async def _call(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except MuxNotFoundException as e:
            raise SessionNotFound(f"Mux live stream not found: {e.reason}") from e
        except MuxApiException as e:
            logger.warning(f"Mux API error: status={e.status} reason={e.reason}")
            raise ProviderUnavailable(f"Mux API error {e.status}: {e.reason}") from e
        except OSError as e:
            raise ProviderUnavailable(f"Mux unreachable: {e!s}") from e

    async def create_session(self, room_id: str) -> ProviderSession:
        stream = await self._call(self.mux.create_live_stream, room_id)
        return ProviderSession(
            session_id=stream.id,
            stream_key=stream.stream_key,
            playback_ids=[
                ProviderPlaybackId(id=pb.id, policy=pb.policy) for pb in stream.playback_ids
            ],
        )

    async def get_session_status(self, room_id: str) -> ProviderSessionStatus:
        stream = await self._call(self.mux.find_live_stream, room_id)
        if stream is None:
            raise SessionNotFound(f"No Mux live stream for room {room_id}")
        return ProviderSessionStatus(
            is_active=stream.status == "active",
            playback_id=stream.playback_ids[0].id if stream.playback_ids else None,
            session_id=stream.id,
        )

    async def delete_session(self, session_id: str) -> None:
        await self._call(self.mux.delete_live_stream, session_id)
