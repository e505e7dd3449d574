"""Tests for StreamApiClient against a mocked HTTP transport."""

import json

import httpx
import pytest

from sideroom.services.stream_api_client import StreamApiClient
from sideroom.services.video_provider import VideoProvider
from sideroom.utils.room_errors import (
    InvalidProviderResponse,
    ProviderUnavailable,
    SessionNotFound,
)


def make_client(handler, **kwargs) -> StreamApiClient:
    kwargs.setdefault("demo_mode", False)
    return StreamApiClient(
        "http://stream.test", transport=httpx.MockTransport(handler), **kwargs
    )


class TestCreateSession:
    async def test_parses_provider_payload(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "id": "ls_1",
                    "stream_key": "sk_1",
                    "playback_ids": [{"id": "pb_1", "policy": "public"}],
                },
            )

        session = await make_client(handler).create_session("room_1")

        assert session.session_id == "ls_1"
        assert session.stream_key == "sk_1"
        assert session.first_playback_id == "pb_1"
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/api/create-stream"
        assert json.loads(requests[0].content) == {"roomId": "room_1", "userId": "owner"}

    async def test_camel_case_payload(self):
        def handler(request):
            return httpx.Response(
                200, json={"streamId": "ls_1", "streamKey": "sk_1", "playbackIds": [{"id": "pb_1"}]}
            )

        session = await make_client(handler).create_session("room_1")

        assert session.session_id == "ls_1"
        assert session.stream_key == "sk_1"

    async def test_missing_fields_are_left_to_the_caller(self):
        def handler(request):
            return httpx.Response(200, json={"id": "ls_1"})

        session = await make_client(handler).create_session("room_1")

        assert session.stream_key is None
        assert session.first_playback_id is None

    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(InvalidProviderResponse):
            await make_client(handler).create_session("room_1")

    async def test_server_error_is_provider_unavailable(self):
        def handler(request):
            return httpx.Response(500, json={"error": "mux exploded"})

        with pytest.raises(ProviderUnavailable) as exc_info:
            await make_client(handler).create_session("room_1")

        assert "mux exploded" in exc_info.value.errmesg
        assert exc_info.value.status_code == 503

    async def test_transport_error_is_provider_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnavailable):
            await make_client(handler).create_session("room_1")


class TestGetSessionStatus:
    async def test_parses_status(self):
        def handler(request):
            assert request.url.path == "/api/streams/room_1/status"
            return httpx.Response(
                200, json={"isActive": True, "playbackId": "pb_1", "streamId": "ls_1"}
            )

        status = await make_client(handler).get_session_status("room_1")

        assert status.is_active is True
        assert status.playback_id == "pb_1"
        assert status.session_id == "ls_1"

    async def test_404_is_session_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"error": "Stream not found"})

        with pytest.raises(SessionNotFound):
            await make_client(handler).get_session_status("room_1")

    async def test_timeout_is_provider_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderUnavailable):
            await make_client(handler).get_session_status("room_1")


class TestDeleteSession:
    async def test_sends_stream_id(self):
        requests: list[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"success": True})

        await make_client(handler).delete_session("ls_1")

        assert requests[0].url.path == "/api/delete-stream"
        assert json.loads(requests[0].content) == {"streamId": "ls_1"}

    async def test_404_is_session_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"error": "Stream not found"})

        with pytest.raises(SessionNotFound):
            await make_client(handler).delete_session("ls_1")


class TestHeaders:
    async def test_api_key_header(self):
        seen: dict[str, str] = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={"isActive": False})

        await make_client(handler, api_key="secret").get_session_status("room_1")

        assert seen["x-api-key"] == "secret"

    async def test_no_api_key_header_when_unset(self):
        seen: dict[str, str] = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={"isActive": False})

        await make_client(handler, api_key="").get_session_status("room_1")

        assert "x-api-key" not in seen


class TestDemoMode:
    async def test_demo_stubs_never_touch_the_network(self):
        def handler(request):
            raise AssertionError("network call in demo mode")

        client = make_client(handler, demo_mode=True)

        session = await client.create_session("room_1")
        status = await client.get_session_status("room_1")
        await client.delete_session(session.session_id)

        assert session.session_id == "ls_demo_room_1"
        assert session.first_playback_id == "pb_demo_room_1"
        assert status.session_id == session.session_id
        assert status.is_active is False

    def test_satisfies_video_provider(self):
        assert isinstance(StreamApiClient(demo_mode=True), VideoProvider)
