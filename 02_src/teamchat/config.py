"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
FILES_DIR = DATA_DIR / "chat-files"
DEFAULT_DB_PATH = DATA_DIR / "teamchat.db"
DEFAULT_SETTINGS_PATH = DATA_DIR / "local_settings.json"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

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


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass(frozen=True)
class ChatConfig:
    """Tunables for the chat subsystem."""

    message_limit: int = 100
    online_window_seconds: float = 120.0
    away_timeout_seconds: float = 300.0
    heartbeat_seconds: float = 30.0
    activity_throttle_seconds: float = 1.0
    max_attachment_bytes: int = 10 * 1024 * 1024
    reply_preview_chars: int = 100
    resubscribe_initial_delay: float = 0.5
    resubscribe_max_delay: float = 30.0
    files_base_url: str = "/files"

    @classmethod
    def from_env(cls) -> "ChatConfig":
        """Build config from CHAT_* environment variables."""
        return cls(
            message_limit=_env_int("CHAT_MESSAGE_LIMIT", 100),
            online_window_seconds=_env_float("CHAT_ONLINE_WINDOW", 120.0),
            away_timeout_seconds=_env_float("CHAT_AWAY_TIMEOUT", 300.0),
            heartbeat_seconds=_env_float("CHAT_HEARTBEAT", 30.0),
            activity_throttle_seconds=_env_float("CHAT_ACTIVITY_THROTTLE", 1.0),
            max_attachment_bytes=_env_int(
                "CHAT_MAX_ATTACHMENT_BYTES", 10 * 1024 * 1024
            ),
            reply_preview_chars=_env_int("CHAT_REPLY_PREVIEW_CHARS", 100),
            resubscribe_initial_delay=_env_float("CHAT_RESUBSCRIBE_DELAY", 0.5),
            resubscribe_max_delay=_env_float("CHAT_RESUBSCRIBE_MAX_DELAY", 30.0),
            files_base_url=os.getenv("CHAT_FILES_BASE_URL", "/files"),
        )
