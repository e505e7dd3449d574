"""Integration tests for Mux service with real Mux API.

These tests are excluded from normal unit tests.
Run with: pytest integration_tests/services/test_mux_integration.py -v

Requires MUX_TOKEN_ID and MUX_TOKEN_SECRET environment variables.
"""

import os
import re
import uuid

import pytest

from sideroom.app_config import AppEnvironConfig
from sideroom.services.mux_service import MuxService, MuxVideoProvider
from sideroom.utils.room_errors import SessionNotFound


@pytest.mark.integration
class TestMuxServiceIntegration:
    """Integration tests for MuxService with real Mux API."""

    @pytest.fixture
    def mux_service(self) -> MuxService:
        """Create MuxService with real credentials.

        Raises:
            pytest.skip: If credentials are not provided via environment variables.
        """
        token_id = os.environ.get("MUX_TOKEN_ID")
        token_secret = os.environ.get("MUX_TOKEN_SECRET")

        if not token_id or not token_secret:
            pytest.skip("MUX_TOKEN_ID and MUX_TOKEN_SECRET environment variables required")

        cfg = AppEnvironConfig(DEMO_MODE=False, MUX_TOKEN_ID=token_id, MUX_TOKEN_SECRET=token_secret)
        return MuxService(cfg)

    @pytest.fixture
    def room_id(self) -> str:
        return f"it_room_{uuid.uuid4().hex[:12]}"

    def test_create_find_and_delete_live_stream(self, mux_service: MuxService, room_id: str) -> None:
        """Test creating, finding by room and deleting a live stream with Mux API.

        This test verifies:
        1. Live stream creation returns valid id, stream_key, playback_ids
        2. The stream can be found again by its room passthrough
        3. Live stream can be deleted
        """
        # Use test mode to avoid charges
        stream = mux_service.create_live_stream(room_id, playback_policy="public", test=True)

        try:
            assert stream.id, "stream id should not be empty"
            assert stream.stream_key, "stream_key should not be empty"
            assert len(stream.playback_ids) > 0, "Should have at least one playback ID"
            assert stream.passthrough == room_id
            assert re.match(r"^[a-zA-Z0-9]+$", stream.id), f"Invalid stream id format: {stream.id}"

            playback_id = stream.playback_ids[0].id
            assert mux_service.get_playback_url(playback_id) == (
                f"https://stream.mux.com/{playback_id}.m3u8"
            )

            found = mux_service.find_live_stream(room_id)
            assert found is not None
            assert found.id == stream.id
        finally:
            mux_service.delete_live_stream(stream.id)

    async def test_provider_reports_new_stream_as_idle(
        self, mux_service: MuxService, room_id: str
    ) -> None:
        stream = mux_service.create_live_stream(room_id, test=True)
        provider = MuxVideoProvider(mux_service)

        try:
            status = await provider.get_session_status(room_id)
            assert status.session_id == stream.id
            assert status.is_active is False
        finally:
            await provider.delete_session(stream.id)

        with pytest.raises(SessionNotFound):
            await provider.delete_session(stream.id)
