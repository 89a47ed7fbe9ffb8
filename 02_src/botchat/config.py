"""Project-level configuration and path helpers."""

import os
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "botchat.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_BOT_API_URL = "https://chat.botpress.cloud"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_RETENTION_DAYS = 30

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def bot_api_url() -> str:
    """Base URL of the bot backend, without trailing slash."""
    return os.getenv("BOT_API_URL", DEFAULT_BOT_API_URL).rstrip("/")


def poll_interval() -> float:
    """Seconds between two message polls."""
    return float(os.getenv("POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL)))


def retention_days() -> int:
    """Age in days after which saved conversations are swept."""
    return int(os.getenv("RETENTION_DAYS", str(DEFAULT_RETENTION_DAYS)))
