"""Change feed data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Table(str, Enum):
    """Row store tables."""

    TEAM_MESSAGES = "team_messages"
    PRIVATE_MESSAGES = "private_messages"
    MESSAGE_REACTIONS = "message_reactions"
    PRIVATE_MESSAGE_REACTIONS = "private_message_reactions"
    TEAM_MEMBERS = "team_members"
    PROFILES = "profiles"


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ALL_CHANGES = frozenset(ChangeType)


@dataclass
class ChangeEvent:
    """A row-level change published by the row store."""

    id: str
    table: Table
    type: ChangeType
    record: dict  # new row; empty for DELETE
    timestamp: datetime
    old_record: dict = field(default_factory=dict)  # previous row for UPDATE/DELETE

    @property
    def row(self) -> dict:
        """The row a filter should be evaluated against."""
        return self.old_record if self.type == ChangeType.DELETE else self.record

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "table": self.table.value,
            "type": self.type.value,
            "record": self.record,
            "old_record": self.old_record,
            "timestamp": self.timestamp.isoformat(),
        }
