"""
Configuration helpers for the streamlist backend.

Routers, services and stores read their knobs (data directory, flush delay,
log level, bind address) from the Settings object instead of os.environ.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_dir: str
    flush_delay_seconds: float
    json_indent: int | None
    stream_items_store: str
    log_level: str
    host: str
    port: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _optional_int(value: str | None) -> int | None:
        if value is None or not value.strip():
            return None
        try:
            return int(value)
        except ValueError:
            return None

    delay_ms = max(0, _int(os.getenv("DATASTORE_FLUSH_DELAY_MS", "1000"), 1000))

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        data_dir=os.getenv("DATASTORE_DIR") or os.getcwd(),
        flush_delay_seconds=delay_ms / 1000.0,
        json_indent=_optional_int(os.getenv("DATASTORE_JSON_INDENT")),
        stream_items_store=(os.getenv("STREAM_ITEMS_STORE") or "stream-items").strip(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_int(os.getenv("PORT", "3000"), 3000),
    )
