"""Core data models for Team Chat."""

from .changes import ALL_CHANGES, ChangeEvent, ChangeType, Table
from .members import ACTIVE, PENDING, Profile, TeamMember
from .messages import (
    FILE_BODY_PREFIX,
    Attachment,
    ChatMessage,
    PrivateMessage,
    TeamMessage,
)
from .presence import (
    Derived,
    DerivedPresence,
    Manual,
    ManualStatus,
    PresenceState,
    parse_manual_status,
    stored_status,
)
from .reactions import GroupedReaction, Reaction, ReactionToggle, ReactionType
from .settings import BACKGROUND_IMAGES, CHAT_THEMES, ChatSettings

__all__ = [
    # Messages
    "Attachment",
    "ChatMessage",
    "FILE_BODY_PREFIX",
    "PrivateMessage",
    "TeamMessage",
    # Reactions
    "GroupedReaction",
    "Reaction",
    "ReactionToggle",
    "ReactionType",
    # Members
    "ACTIVE",
    "PENDING",
    "Profile",
    "TeamMember",
    # Presence
    "Derived",
    "DerivedPresence",
    "Manual",
    "ManualStatus",
    "PresenceState",
    "parse_manual_status",
    "stored_status",
    # Settings
    "BACKGROUND_IMAGES",
    "CHAT_THEMES",
    "ChatSettings",
    # Change feed
    "ALL_CHANGES",
    "ChangeEvent",
    "ChangeType",
    "Table",
]
