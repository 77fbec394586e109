"""Reaction data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .rows import parse_iso, to_iso


class ReactionType(str, Enum):
    """Kind of value a reaction carries."""

    EMOJI = "emoji"
    GIF = "gif"  # value is the GIF URL
    STICKER = "sticker"


class ReactionToggle(str, Enum):
    """Outcome of toggling a reaction."""

    ADDED = "added"
    REMOVED = "removed"


@dataclass
class Reaction:
    """A single user's reaction to a message."""

    id: str
    message_id: str
    user_id: str
    user_name: str
    reaction_type: ReactionType
    reaction_value: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "Reaction":
        return cls(
            id=row["id"],
            message_id=row["message_id"],
            user_id=row["user_id"],
            user_name=row["user_name"],
            reaction_type=ReactionType(row["reaction_type"]),
            reaction_value=row["reaction_value"],
            created_at=parse_iso(row["created_at"]),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "message_id": self.message_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "reaction_type": self.reaction_type.value,
            "reaction_value": self.reaction_value,
            "created_at": to_iso(self.created_at),
        }


@dataclass
class GroupedReaction:
    """Reactions on one message that share the same value."""

    value: str
    type: ReactionType
    count: int = 0
    users: list[str] = field(default_factory=list)
    has_current_user: bool = False
