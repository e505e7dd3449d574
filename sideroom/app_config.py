from pydantic import BaseModel

from sideroom.config import config


def _flag(key: str, default: str) -> bool:
    return (config.get(key, default) or default).strip().lower() == "true"


def _text(key: str, default: str) -> str:
    return (config.get(key, default) or default).strip()


def _optional(key: str) -> str | None:
    return (config.get(key) or "").strip() or None


class AppEnvironConfig(BaseModel):
    # Public demo switch: when enabled, providers return stubs and avoid network calls.
    DEMO_MODE: bool = _flag("DEMO_MODE", "true")

    # Stream backend HTTP API
    STREAM_API_BASE_URL: str = _text("STREAM_API_BASE_URL", "http://localhost:3001")
    STREAM_API_KEY: str | None = _optional("STREAM_API_KEY")
    STREAM_API_TIMEOUT_SECONDS: float = float(_text("STREAM_API_TIMEOUT_SECONDS", "10"))
    STREAM_STATUS_POLL_SECONDS: float = float(_text("STREAM_STATUS_POLL_SECONDS", "5"))

    # Mux configuration
    MUX_TOKEN_ID: str | None = _optional("MUX_TOKEN_ID")
    MUX_TOKEN_SECRET: str | None = _optional("MUX_TOKEN_SECRET")
    MUX_RTMP_INGEST_BASE_URL: str = _text(
        "MUX_RTMP_INGEST_BASE_URL", "rtmps://global-live.mux.com:443/app"
    )
    MUX_STREAM_BASE_URL: str = _text("MUX_STREAM_BASE_URL", "https://stream.mux.com")
    MUX_IMAGE_BASE_URL: str = _text("MUX_IMAGE_BASE_URL", "https://image.mux.com")

    # Rate limits, "<max_requests>/<window_millis>"
    MESSAGE_RATE_LIMIT: str = _text("MESSAGE_RATE_LIMIT", "10/5000")
    PRESENCE_RATE_LIMIT: str = _text("PRESENCE_RATE_LIMIT", "1/1000")
    STREAM_RATE_LIMIT: str = _text("STREAM_RATE_LIMIT", "5/60000")
    STATUS_POLL_RATE_LIMIT: str = _text("STATUS_POLL_RATE_LIMIT", "12/60000")

    # Presence
    PRESENCE_ONLINE_WINDOW_SECONDS: int = int(_text("PRESENCE_ONLINE_WINDOW_SECONDS", "120"))


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
