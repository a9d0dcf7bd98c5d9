from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()  # Load .env file if present


def _get(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _get_bool(key: str, default: bool = False) -> bool:
    raw = _get(key, "1" if default else "0").strip().lower()
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    APP_NAME: str = _get("APP_NAME", "GMB Expedientes Offline")
    APP_ENV: str = _get("APP_ENV", "dev")

    # Supabase (remote data source)
    SUPABASE_URL: str = _get("SUPABASE_URL", "")
    SUPABASE_KEY: str = _get("SUPABASE_KEY", "")

    # Durable local storage
    OFFLINE_STORAGE_DIR: str = _get("OFFLINE_STORAGE_DIR", "data/offline")

    # Pending-operation queue and sync
    OFFLINE_MAX_RETRIES: int = int(_get("OFFLINE_MAX_RETRIES", "3"))
    OFFLINE_COMPLETED_RETENTION_HOURS: float = float(_get("OFFLINE_COMPLETED_RETENTION_HOURS", "24"))
    OFFLINE_FETCH_LIMIT: int = int(_get("OFFLINE_FETCH_LIMIT", "100"))
    OFFLINE_REMOTE_TIMEOUT: float = float(_get("OFFLINE_REMOTE_TIMEOUT", "10"))
    OFFLINE_RETRY_DELAY: float = float(_get("OFFLINE_RETRY_DELAY", "1.0"))
    OFFLINE_START_ONLINE: bool = _get_bool("OFFLINE_START_ONLINE", True)


settings = Settings()
