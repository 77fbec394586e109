"""Team membership and profile data models."""

from dataclasses import dataclass
from datetime import datetime

from .rows import parse_iso, to_iso

PENDING = "Pending"
ACTIVE = "Active"


@dataclass
class Profile:
    """A signed-up user's own profile row."""

    id: str
    name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    last_seen: datetime | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Profile":
        return cls(
            id=row["id"],
            name=row.get("name"),
            email=row.get("email"),
            avatar_url=row.get("avatar_url"),
            last_seen=parse_iso(row.get("last_seen")),
        )


@dataclass
class TeamMember:
    """A person on an owner's team.

    ``status`` is free text: the membership lifecycle values ``Pending`` and
    ``Active`` share the column with published presence strings ("Away",
    "Offline") and manual overrides ("Busy", "Do not disturb", ...).
    Use :func:`teamchat.presence.effective_presence` to interpret it.
    """

    id: str
    owner_id: str
    name: str
    email: str
    role: str = "Member"
    position: str | None = None
    avatar_url: str | None = None
    status: str = PENDING
    user_id: str | None = None
    last_seen: datetime | None = None
    chat_nickname: str | None = None
    is_chat_blocked: bool = False

    @property
    def chat_id(self) -> str:
        """Id used as sender/receiver in private messages."""
        return self.user_id or self.id

    @property
    def display_name(self) -> str:
        return self.chat_nickname or self.name

    @classmethod
    def from_row(cls, row: dict) -> "TeamMember":
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            email=row["email"],
            role=row.get("role") or "Member",
            position=row.get("position"),
            avatar_url=row.get("avatar_url"),
            status=row.get("status") or PENDING,
            user_id=row.get("user_id"),
            last_seen=parse_iso(row.get("last_seen")),
            chat_nickname=row.get("chat_nickname"),
            is_chat_blocked=bool(row.get("is_chat_blocked")),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "position": self.position,
            "avatar_url": self.avatar_url,
            "status": self.status,
            "user_id": self.user_id,
            "last_seen": to_iso(self.last_seen),
            "chat_nickname": self.chat_nickname,
            "is_chat_blocked": self.is_chat_blocked,
        }
