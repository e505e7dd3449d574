import httpx
from loguru import logger
from pydantic import ValidationError

from sideroom.app_config import get_app_environ_config
from sideroom.services.video_provider import (
    ProviderPlaybackId,
    ProviderSession,
    ProviderSessionStatus,
)
from sideroom.utils.room_errors import (
    InvalidProviderResponse,
    ProviderUnavailable,
    SessionNotFound,
)


class StreamApiClient:
    """Client for the stream backend that fronts the video provider.

    Endpoints:
    - POST /api/create-stream          body {roomId, userId}
    - GET  /api/streams/{roomId}/status
    - POST /api/delete-stream          body {streamId}
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        *,
        timeout: float | None = None,
        demo_mode: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        cfg = get_app_environ_config()
        self.base_url = (base_url or cfg.STREAM_API_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else cfg.STREAM_API_KEY
        self.timeout = timeout if timeout is not None else cfg.STREAM_API_TIMEOUT_SECONDS
        self._demo_mode = cfg.DEMO_MODE if demo_mode is None else demo_mode
        self._transport = transport

    def _build_headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.api_key:
            headers["X-Api-Key"] = self.api_key
        if extra:
            headers.update(extra)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._build_headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Stream API {method} {path} transport error: {e!s}")
            raise ProviderUnavailable(f"Stream provider unreachable: {e!s}") from e

        if response.status_code == 404:
            raise SessionNotFound(f"No stream session for {method} {path}")
        if response.is_error:
            detail = _error_detail(response)
            logger.warning(f"Stream API {method} {path} failed: {response.status_code} {detail}")
            raise ProviderUnavailable(
                f"Stream provider returned HTTP {response.status_code}: {detail}"
            )
        return response

    async def create_session(self, room_id: str) -> ProviderSession:
        """Ask the backend to create a live stream for the room."""
        if self._demo_mode:
            logger.info("Stream API DEMO_MODE=true: returning stubbed stream session")
            return ProviderSession(
                session_id=f"ls_demo_{room_id}",
                stream_key="sk_demo_redacted",
                playback_ids=[ProviderPlaybackId(id=f"pb_demo_{room_id}", policy="public")],
            )

        logger.info(f"Creating stream session for room {room_id}")
        response = await self._request(
            "POST", "/api/create-stream", json={"roomId": room_id, "userId": "owner"}
        )
        data = _json_object(response)
        try:
            session = ProviderSession.model_validate(data)
        except ValidationError as e:
            raise InvalidProviderResponse(f"Invalid stream data received from server: {e!s}") from e
        logger.info(f"Created stream session {session.session_id} for room {room_id}")
        return session

    async def get_session_status(self, room_id: str) -> ProviderSessionStatus:
        if self._demo_mode:
            return ProviderSessionStatus(
                is_active=False,
                playback_id=f"pb_demo_{room_id}",
                session_id=f"ls_demo_{room_id}",
            )

        response = await self._request("GET", f"/api/streams/{room_id}/status")
        data = _json_object(response)
        logger.debug(f"Stream status for room {room_id}: {data}")
        try:
            return ProviderSessionStatus.model_validate(data)
        except ValidationError as e:
            raise InvalidProviderResponse(f"Invalid stream status received: {e!s}") from e

    async def delete_session(self, session_id: str) -> None:
        if self._demo_mode:
            logger.info("Stream API DEMO_MODE=true: delete_session is a no-op")
            return

        logger.info(f"Deleting stream session {session_id}")
        await self._request("POST", "/api/delete-stream", json={"streamId": session_id})
        logger.info(f"Deleted stream session {session_id}")


def _json_object(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError as e:
        raise InvalidProviderResponse("Stream provider returned a non-JSON body") from e
    if not isinstance(data, dict):
        raise InvalidProviderResponse(f"Unexpected stream provider payload: {data!r}")
    return data


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return str(data)[:200]
