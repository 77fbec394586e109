"""Per-installation key/value store backed by a JSON file."""

import json
import threading
from pathlib import Path
from typing import Any

from ..logging_config import get_logger

logger = get_logger(__name__)


class LocalSettingsStore:
    """Small persistent key/value store.

    Plays the role browser local storage has for the chat page: values are
    scoped to this installation and never synced to the row store. With
    ``path=None`` the store lives in memory only.
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path else None
        self._data: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        if not self._path or not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # Corrupt file: start fresh rather than refusing to open the page
            logger.warning("Could not read settings file %s: %s", self._path, e)
            self._data = {}

    def _flush(self) -> None:
        if not self._path:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False, indent=2)
        tmp.replace(self._path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()

    def clear(self) -> None:
        with self._lock:
            self._data = {}
            self._flush()
