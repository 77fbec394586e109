"""Local chat settings."""

from .local_store import LocalSettingsStore
from .service import ChatSettingsService, settings_key

__all__ = ["ChatSettingsService", "LocalSettingsStore", "settings_key"]
