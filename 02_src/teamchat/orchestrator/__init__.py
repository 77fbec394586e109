"""Chat page orchestrator."""

from .page import AdminResult, AutoConfirm, ChatPage, Confirmer
from .pickers import EMOJI_CATEGORIES, QUICK_REACTIONS, STATUS_OPTIONS, STICKER_PACKS, TRENDING_GIFS
from .unread import UnreadCounter
from .windows import (
    MIN_SIZE,
    Interaction,
    Point,
    PointerDocument,
    PopOutManager,
    PopOutWindow,
    Size,
    WindowState,
)

__all__ = [
    "AdminResult",
    "AutoConfirm",
    "ChatPage",
    "Confirmer",
    "EMOJI_CATEGORIES",
    "Interaction",
    "MIN_SIZE",
    "Point",
    "PointerDocument",
    "PopOutManager",
    "PopOutWindow",
    "QUICK_REACTIONS",
    "STATUS_OPTIONS",
    "STICKER_PACKS",
    "Size",
    "TRENDING_GIFS",
    "UnreadCounter",
    "WindowState",
]
