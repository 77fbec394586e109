"""Chat display preferences for one user."""

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import BACKGROUND_IMAGES, CHAT_THEMES, ChatSettings
from ..models.rows import to_iso, utcnow
from ..models.settings import CUSTOM_THEME, DEFAULT_THEME
from .local_store import LocalSettingsStore

logger = get_logger(__name__)


def settings_key(user_id: str) -> str:
    return f"chat_settings_{user_id}"


class ChatSettingsService:
    """Reads and writes ``chat_settings_<user_id>`` in the local store."""

    def __init__(self, store: LocalSettingsStore, user_id: str):
        self._store = store
        self._user_id = user_id
        self._settings = self.load()

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    def load(self) -> ChatSettings:
        data = self._store.get(settings_key(self._user_id)) or {}
        return ChatSettings.from_dict(self._user_id, data)

    def _save(self) -> ChatSettings:
        data = self._settings.to_dict()
        data["updated_at"] = to_iso(utcnow())
        self._store.set(settings_key(self._user_id), data)
        return self._settings

    def save_nickname(self, nickname: str | None) -> ChatSettings:
        self._settings.nickname = (nickname or "").strip() or None
        logger.info("Nickname updated", extra={"context": {"user_id": self._user_id}})
        return self._save()

    def save_theme(self, theme: str) -> ChatSettings:
        if theme not in CHAT_THEMES:
            raise ValidationError(f"Unknown chat theme: {theme}")
        self._settings.chat_theme = theme
        # Picking a preset theme drops the custom background
        if theme != CUSTOM_THEME:
            self._settings.background_image = None
        return self._save()

    def save_background(self, image: str | None) -> ChatSettings:
        """Set a background by preset name or URL; ``None`` removes it."""
        if not image:
            self._settings.background_image = None
            if self._settings.chat_theme == CUSTOM_THEME:
                self._settings.chat_theme = DEFAULT_THEME
            return self._save()

        url = BACKGROUND_IMAGES.get(image, image)
        if not url.startswith(("http://", "https://", "/")):
            raise ValidationError(f"Background must be a preset or URL: {image}")
        self._settings.background_image = url
        self._settings.chat_theme = CUSTOM_THEME
        return self._save()

    def save_status(self, status: str) -> ChatSettings:
        self._settings.status = status
        return self._save()
