"""Message-related data models."""

from dataclasses import dataclass
from datetime import datetime

from .rows import parse_iso, to_iso

FILE_BODY_PREFIX = "Shared a file:"


@dataclass
class Attachment:
    """An uploaded file referenced by a message."""

    url: str
    name: str
    type: str  # MIME type, e.g. "image/png"

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/")


@dataclass
class TeamMessage:
    """A message posted to the whole team of an owner."""

    id: str
    owner_id: str
    sender_id: str
    sender_name: str
    sender_email: str
    body: str
    created_at: datetime
    sender_avatar: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    reply_to_id: str | None = None
    reply_to_message: str | None = None
    reply_to_sender: str | None = None

    @property
    def attachment(self) -> Attachment | None:
        if not self.file_url:
            return None
        return Attachment(
            url=self.file_url,
            name=self.file_name or "",
            type=self.file_type or "",
        )

    @property
    def display_body(self) -> str:
        """Body text as shown to readers; file placeholders are hidden."""
        if self.body.startswith(FILE_BODY_PREFIX):
            return ""
        return self.body

    @classmethod
    def from_row(cls, row: dict) -> "TeamMessage":
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            sender_id=row["sender_id"],
            sender_name=row["sender_name"],
            sender_email=row.get("sender_email") or "",
            body=row["message"],
            created_at=parse_iso(row["created_at"]),
            sender_avatar=row.get("sender_avatar"),
            file_url=row.get("file_url"),
            file_name=row.get("file_name"),
            file_type=row.get("file_type"),
            reply_to_id=row.get("reply_to_id"),
            reply_to_message=row.get("reply_to_message"),
            reply_to_sender=row.get("reply_to_sender"),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "sender_email": self.sender_email,
            "sender_avatar": self.sender_avatar,
            "message": self.body,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "reply_to_id": self.reply_to_id,
            "reply_to_message": self.reply_to_message,
            "reply_to_sender": self.reply_to_sender,
            "created_at": to_iso(self.created_at),
        }


@dataclass
class PrivateMessage:
    """A 1:1 message between two people inside an owner's team."""

    id: str
    team_owner_id: str
    sender_id: str
    receiver_id: str
    sender_name: str
    body: str
    created_at: datetime
    is_read: bool = False
    sender_avatar: str | None = None
    file_url: str | None = None
    file_name: str | None = None
    file_type: str | None = None
    reply_to_id: str | None = None
    reply_to_message: str | None = None
    reply_to_sender: str | None = None

    @property
    def attachment(self) -> Attachment | None:
        if not self.file_url:
            return None
        return Attachment(
            url=self.file_url,
            name=self.file_name or "",
            type=self.file_type or "",
        )

    @property
    def display_body(self) -> str:
        if self.body.startswith(FILE_BODY_PREFIX):
            return ""
        return self.body

    def involves(self, user_a: str, user_b: str) -> bool:
        """Whether this message belongs to the thread between two users."""
        return (self.sender_id == user_a and self.receiver_id == user_b) or (
            self.sender_id == user_b and self.receiver_id == user_a
        )

    @classmethod
    def from_row(cls, row: dict) -> "PrivateMessage":
        return cls(
            id=row["id"],
            team_owner_id=row["team_owner_id"],
            sender_id=row["sender_id"],
            receiver_id=row["receiver_id"],
            sender_name=row["sender_name"],
            body=row["message"],
            created_at=parse_iso(row["created_at"]),
            is_read=bool(row.get("is_read")),
            sender_avatar=row.get("sender_avatar"),
            file_url=row.get("file_url"),
            file_name=row.get("file_name"),
            file_type=row.get("file_type"),
            reply_to_id=row.get("reply_to_id"),
            reply_to_message=row.get("reply_to_message"),
            reply_to_sender=row.get("reply_to_sender"),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "team_owner_id": self.team_owner_id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "sender_name": self.sender_name,
            "sender_avatar": self.sender_avatar,
            "message": self.body,
            "file_url": self.file_url,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "is_read": self.is_read,
            "reply_to_id": self.reply_to_id,
            "reply_to_message": self.reply_to_message,
            "reply_to_sender": self.reply_to_sender,
            "created_at": to_iso(self.created_at),
        }


ChatMessage = TeamMessage | PrivateMessage
