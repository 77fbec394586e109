"""Per-user chat display preferences."""

from dataclasses import dataclass

DEFAULT_THEME = "default"
CUSTOM_THEME = "custom"
AVAILABLE = "Available"

CHAT_THEMES: dict[str, str] = {
    "default": "Default",
    "gradient-blue": "Blue Gradient",
    "gradient-green": "Green Gradient",
    "gradient-orange": "Sunset",
    "gradient-purple": "Purple Haze",
    "pattern-dots": "Dots Pattern",
    "pattern-grid": "Grid Pattern",
    "custom": "Custom Image",
}

BACKGROUND_IMAGES: dict[str, str] = {
    "mountains": "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=1920&q=80",
    "ocean": "https://images.unsplash.com/photo-1505118380757-91f5f5632de0?w=1920&q=80",
    "forest": "https://images.unsplash.com/photo-1448375240586-882707db888b?w=1920&q=80",
    "city": "https://images.unsplash.com/photo-1519501025264-65ba15a82390?w=1920&q=80",
    "abstract": "https://images.unsplash.com/photo-1557682250-33bd709cbe85?w=1920&q=80",
    "space": "https://images.unsplash.com/photo-1534796636912-3b95b3ab5986?w=1920&q=80",
}


@dataclass
class ChatSettings:
    """Chat preferences stored locally for one user."""

    user_id: str
    nickname: str | None = None
    chat_theme: str = DEFAULT_THEME
    status: str = AVAILABLE
    background_image: str | None = None

    @classmethod
    def from_dict(cls, user_id: str, data: dict) -> "ChatSettings":
        return cls(
            user_id=user_id,
            nickname=data.get("nickname") or None,
            chat_theme=data.get("chat_theme") or DEFAULT_THEME,
            status=data.get("status") or AVAILABLE,
            background_image=data.get("background_image") or None,
        )

    def to_dict(self) -> dict:
        return {
            "nickname": self.nickname,
            "chat_theme": self.chat_theme,
            "status": self.status,
            "background_image": self.background_image,
        }
