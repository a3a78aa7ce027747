# src/taskboard_supervisor/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKBOARD"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


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
    log_to_file: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Supervision timing ----
    poll_interval_seconds: float
    start_delay_seconds: float
    stuck_after_seconds: float

    # ---- Reset ----
    reset_policy: str  # "preserve" | "clear"

    # ---- Demo executor ----
    actor_delay_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskboard")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_to_file = _env_bool(_k("LOG_TO_FILE"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskboard"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "boards.sqlite3")

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 3.0)
        start_delay_seconds = _env_float(_k("START_DELAY_SECONDS"), 1.0)
        stuck_after_seconds = _env_float(_k("STUCK_AFTER_SECONDS"), 300.0)

        reset_policy = _env(_k("RESET_POLICY"), "preserve").strip().lower() or "preserve"

        actor_delay_seconds = _env_float(_k("ACTOR_DELAY_SECONDS"), 0.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_to_file=log_to_file,
            data_dir=data_dir,
            db_path=db_path,
            poll_interval_seconds=poll_interval_seconds,
            start_delay_seconds=start_delay_seconds,
            stuck_after_seconds=stuck_after_seconds,
            reset_policy=reset_policy,
            actor_delay_seconds=actor_delay_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
