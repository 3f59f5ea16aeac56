# src/stack_track/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

- One Settings object for the whole app.
- No secrets required at import time (the API key is optional).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "STACKTRACK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Watched tags, "network:tag" ----
    tags: List[str]

    # ---- Polling ----
    initial_quantity: int
    update_quantity: int
    update_interval_seconds: float

    # ---- Stack Exchange API ----
    api_base_url: str
    api_key: Optional[str]
    fetch_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    state_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "stack-track") or "stack-track"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        tags = _env_list(_k("TAGS"), ["stackoverflow:python"])

        initial_quantity = max(1, _env_int(_k("INITIAL_QUANTITY"), 5))
        update_quantity = max(1, _env_int(_k("UPDATE_QUANTITY"), 5))
        update_interval_seconds = max(1.0, _env_float(_k("UPDATE_INTERVAL_SECONDS"), 60.0))

        api_base_url = _env(_k("API_BASE_URL"), "https://api.stackexchange.com/2.2").rstrip("/")
        api_key = (_env(_k("API_KEY"), "").strip() or None)
        fetch_timeout_seconds = _env_float(_k("FETCH_TIMEOUT_SECONDS"), 20.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/stack_track"))
        state_db_path = _env_path(_k("STATE_DB_PATH"), data_dir / "state.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            tags=tags,
            initial_quantity=initial_quantity,
            update_quantity=update_quantity,
            update_interval_seconds=update_interval_seconds,
            api_base_url=api_base_url,
            api_key=api_key,
            fetch_timeout_seconds=fetch_timeout_seconds,
            data_dir=data_dir,
            state_db_path=state_db_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
