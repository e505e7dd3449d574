"""Tests for MuxService and the Mux-backed VideoProvider."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from mux_python.exceptions import ApiException, NotFoundException

from sideroom.app_config import AppEnvironConfig
from sideroom.services.mux_service import MuxService, MuxVideoProvider
from sideroom.services.video_provider import VideoProvider
from sideroom.utils.room_errors import ProviderUnavailable, RoomError, SessionNotFound


def mux_stream(stream_id="ls_1", passthrough="room_1", status="idle", playback_id="pb_1"):
    return SimpleNamespace(
        id=stream_id,
        stream_key=f"sk_{stream_id}",
        status=status,
        playback_ids=[SimpleNamespace(id=playback_id, policy="public")] if playback_id else [],
        active_asset_id=None,
        created_at="1714560000",
        passthrough=passthrough,
    )


@pytest.fixture
def live_api() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mux_service(live_api) -> MuxService:
    cfg = AppEnvironConfig(DEMO_MODE=False, MUX_TOKEN_ID="token-id", MUX_TOKEN_SECRET="secret")
    service = MuxService(cfg)
    service._live_api = live_api
    return service


class TestMuxService:
    def test_create_live_stream_tags_passthrough(self, mux_service, live_api):
        live_api.create_live_stream.return_value = SimpleNamespace(data=mux_stream())

        stream = mux_service.create_live_stream("room_1")

        request = live_api.create_live_stream.call_args.args[0]
        assert request.passthrough == "room_1"
        assert request.playback_policy == ["public"]
        assert stream.id == "ls_1"
        assert stream.stream_key == "sk_ls_1"
        assert stream.playback_ids[0].id == "pb_1"

    def test_find_live_stream_matches_passthrough(self, mux_service, live_api):
        live_api.list_live_streams.return_value = SimpleNamespace(
            data=[
                mux_stream("ls_other", passthrough="room_2"),
                mux_stream("ls_old", status="disabled"),
                mux_stream("ls_1", status="active"),
            ]
        )

        stream = mux_service.find_live_stream("room_1")

        assert stream is not None
        assert stream.id == "ls_1"
        assert stream.status == "active"

    def test_find_live_stream_pages_until_short_page(self, mux_service, live_api):
        full_page = [mux_stream(f"ls_{i}", passthrough="room_x") for i in range(100)]
        live_api.list_live_streams.side_effect = [
            SimpleNamespace(data=full_page),
            SimpleNamespace(data=[mux_stream("ls_1")]),
        ]

        stream = mux_service.find_live_stream("room_1")

        assert stream.id == "ls_1"
        assert live_api.list_live_streams.call_count == 2

    def test_find_live_stream_none(self, mux_service, live_api):
        live_api.list_live_streams.return_value = SimpleNamespace(data=[])

        assert mux_service.find_live_stream("room_1") is None

    def test_missing_credentials(self):
        service = MuxService(AppEnvironConfig(DEMO_MODE=False, MUX_TOKEN_ID=None, MUX_TOKEN_SECRET=None))

        with pytest.raises(RoomError) as exc_info:
            service.create_live_stream("room_1")

        assert exc_info.value.errcode == "E_INVALID_REQUEST"
        assert exc_info.value.status_code == 400

    def test_playback_url(self, mux_service):
        assert mux_service.get_playback_url("abc123") == "https://stream.mux.com/abc123.m3u8"

    def test_demo_mode_stubs(self, live_api):
        service = MuxService(AppEnvironConfig(DEMO_MODE=True))
        service._live_api = live_api

        stream = service.create_live_stream("room_1")
        service.delete_live_stream(stream.id)

        assert stream.id == "ls_demo_room_1"
        assert service.find_live_stream("room_1").passthrough == "room_1"
        live_api.create_live_stream.assert_not_called()
        live_api.delete_live_stream.assert_not_called()


class TestMuxVideoProvider:
    async def test_create_session(self, mux_service, live_api):
        live_api.create_live_stream.return_value = SimpleNamespace(data=mux_stream())
        provider = MuxVideoProvider(mux_service)

        session = await provider.create_session("room_1")

        assert session.session_id == "ls_1"
        assert session.stream_key == "sk_ls_1"
        assert session.first_playback_id == "pb_1"

    async def test_status_active(self, mux_service, live_api):
        live_api.list_live_streams.return_value = SimpleNamespace(
            data=[mux_stream(status="active")]
        )

        status = await MuxVideoProvider(mux_service).get_session_status("room_1")

        assert status.is_active is True
        assert status.playback_id == "pb_1"
        assert status.session_id == "ls_1"

    async def test_status_without_stream_is_not_found(self, mux_service, live_api):
        live_api.list_live_streams.return_value = SimpleNamespace(data=[])

        with pytest.raises(SessionNotFound):
            await MuxVideoProvider(mux_service).get_session_status("room_1")

    async def test_delete_not_found(self, mux_service, live_api):
        live_api.delete_live_stream.side_effect = NotFoundException(status=404, reason="Not Found")

        with pytest.raises(SessionNotFound):
            await MuxVideoProvider(mux_service).delete_session("ls_1")

    async def test_api_error_is_provider_unavailable(self, mux_service, live_api):
        live_api.list_live_streams.side_effect = ApiException(status=500, reason="Server Error")

        with pytest.raises(ProviderUnavailable):
            await MuxVideoProvider(mux_service).get_session_status("room_1")

    async def test_network_error_is_provider_unavailable(self, mux_service, live_api):
        live_api.create_live_stream.side_effect = ConnectionResetError("reset by peer")

        with pytest.raises(ProviderUnavailable):
            await MuxVideoProvider(mux_service).create_session("room_1")

    def test_satisfies_video_provider(self, mux_service):
        assert isinstance(MuxVideoProvider(mux_service), VideoProvider)
