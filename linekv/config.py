"""
Settings loaded from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_PORT = 3000


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    # Storage
    data_file: str
    sync_writes: bool

    # HTTP listener
    host: str
    port: int

    # Logging
    log_level: str


def get_settings() -> Settings:
    data_file = os.getenv("KV_DATA_FILE", "data")
    if not data_file.strip():
        raise ValueError("KV_DATA_FILE cannot be empty")

    port = _env_int("KV_PORT", DEFAULT_PORT)
    if not 0 < port < 65536:
        raise ValueError(f"KV_PORT must be between 1 and 65535, got {port}")

    return Settings(
        data_file=data_file,
        sync_writes=_env_bool("KV_SYNC_WRITES", True),
        host=os.getenv("KV_HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
