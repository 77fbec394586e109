"""SQLite row store implementation."""

import asyncio
import uuid
from pathlib import Path
from typing import Iterable, Protocol

import aiosqlite

from ..change_feed import IChangeFeed
from ..config import resolve_db_path
from ..logging_config import get_logger
from ..models import (
    ACTIVE,
    PENDING,
    ChangeEvent,
    ChangeType,
    PrivateMessage,
    Profile,
    Reaction,
    ReactionToggle,
    ReactionType,
    Table,
    TeamMember,
    TeamMessage,
)
from ..models.rows import to_iso, utcnow

logger = get_logger(__name__)

_BOOL_COLUMNS = frozenset({"is_read", "is_chat_blocked"})
_REACTION_TABLES = frozenset({Table.MESSAGE_REACTIONS, Table.PRIVATE_MESSAGE_REACTIONS})

_CONVERSATION = (
    "team_owner_id = ? AND ((sender_id = ? AND receiver_id = ?) "
    "OR (sender_id = ? AND receiver_id = ?))"
)


def _row_to_dict(row: aiosqlite.Row) -> dict:
    data = dict(row)
    data.pop("_seq", None)
    for column in _BOOL_COLUMNS & data.keys():
        data[column] = bool(data[column])
    return data


class IStorage(Protocol):
    """Row store for all chat data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Team messages
    async def insert_team_message(self, message: TeamMessage) -> TeamMessage:
        """Insert a team message and return the stored row."""
        ...

    async def list_team_messages(self, owner_id: str, limit: int = 100) -> list[TeamMessage]:
        """Most recent team messages, oldest first."""
        ...

    async def delete_team_message(self, message_id: str) -> bool:
        """Delete one team message."""
        ...

    async def delete_team_messages(self, owner_id: str) -> int:
        """Delete every message of a team."""
        ...

    # Private messages
    async def insert_private_message(self, message: PrivateMessage) -> PrivateMessage:
        """Insert a private message and return the stored row."""
        ...

    async def list_private_messages(
        self, owner_id: str, user_a: str, user_b: str, limit: int = 100
    ) -> list[PrivateMessage]:
        """Most recent messages between two users, oldest first."""
        ...

    async def mark_private_read(self, owner_id: str, receiver_id: str, sender_id: str) -> int:
        """Mark everything sender -> receiver as read."""
        ...

    async def mark_private_message_read(self, message_id: str) -> bool:
        """Mark a single private message as read."""
        ...

    async def count_unread_by_sender(self, owner_id: str, receiver_id: str) -> dict[str, int]:
        """Unread private message counts addressed to receiver, per sender."""
        ...

    async def delete_private_message(self, message_id: str) -> bool:
        """Delete one private message."""
        ...

    async def delete_conversation(self, owner_id: str, user_a: str, user_b: str) -> int:
        """Delete every message between two users."""
        ...

    # Reactions
    async def list_reactions(self, table: Table, message_id: str) -> list[Reaction]:
        """Reactions on a message, oldest first."""
        ...

    async def toggle_reaction(
        self,
        table: Table,
        message_id: str,
        user_id: str,
        user_name: str,
        reaction_type: ReactionType,
        value: str,
    ) -> ReactionToggle:
        """Atomically add the reaction, or remove it if it exists."""
        ...

    # Members / profiles
    async def save_member(self, member: TeamMember) -> TeamMember:
        """Insert or replace a team member."""
        ...

    async def get_member(self, member_id: str) -> TeamMember | None:
        """Get a team member by row id."""
        ...

    async def list_members(self, owner_id: str) -> list[TeamMember]:
        """All members of an owner's team."""
        ...

    async def find_membership(self, user_id: str, owner_id: str | None = None) -> TeamMember | None:
        """The linked (non-pending) membership of a user, optionally in one team."""
        ...

    async def find_member_by_email(self, owner_id: str, email: str) -> TeamMember | None:
        """Member of a team with the given email."""
        ...

    async def set_member_blocked(self, member_id: str, blocked: bool) -> TeamMember | None:
        """Flip the chat block flag of a member."""
        ...

    async def update_member_status(self, user_id: str, status: str) -> int:
        """Write status and last_seen to every membership of a user."""
        ...

    async def link_members_on_auth(self, user_id: str, email: str) -> list[TeamMember]:
        """Activate pending invites for an email that just authenticated."""
        ...

    async def touch_profile(self, user_id: str) -> None:
        """Upsert the profile's last_seen."""
        ...

    async def save_profile(self, profile: Profile) -> None:
        """Insert or replace a profile."""
        ...

    async def get_profile(self, user_id: str) -> Profile | None:
        """Get a profile by user id."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite row store; every committed write is published to the change feed."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        feed: IChangeFeed | None = None,
    ):
        self._db_path = resolve_db_path(db_path)
        self._feed = feed
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # Internals
    def _require(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    async def _fetch_all(self, sql: str, params: Iterable = ()) -> list[dict]:
        cursor = await self._require().execute(sql, tuple(params))
        rows = await cursor.fetchall()
        return [_row_to_dict(row) for row in rows]

    async def _fetch_one(self, sql: str, params: Iterable = ()) -> dict | None:
        cursor = await self._require().execute(sql, tuple(params))
        row = await cursor.fetchone()
        return _row_to_dict(row) if row else None

    async def _publish(self, events: list[ChangeEvent]) -> None:
        if not self._feed:
            return
        for event in events:
            await self._feed.publish(event)

    def _event(
        self,
        table: Table,
        change: ChangeType,
        record: dict | None = None,
        old_record: dict | None = None,
    ) -> ChangeEvent:
        return ChangeEvent(
            id=str(uuid.uuid4()),
            table=table,
            type=change,
            record=record or {},
            old_record=old_record or {},
            timestamp=utcnow(),
        )

    async def _insert(self, table: Table, row: dict) -> dict:
        conn = self._require()
        columns = ", ".join(row)
        placeholders = ", ".join("?" * len(row))
        async with self._lock:
            await conn.execute(
                f"INSERT INTO {table.value} ({columns}) VALUES ({placeholders})",
                tuple(row.values()),
            )
            await conn.commit()
            stored = await self._fetch_one(
                f"SELECT * FROM {table.value} WHERE id = ?", (row["id"],)
            )
        await self._publish([self._event(table, ChangeType.INSERT, record=stored)])
        return stored

    async def _update(
        self, table: Table, values: dict, where: str, params: Iterable = ()
    ) -> list[dict]:
        """Update matching rows; returns the new rows."""
        conn = self._require()
        params = tuple(params)
        assignments = ", ".join(f"{column} = ?" for column in values)
        async with self._lock:
            old_rows = await self._fetch_all(
                f"SELECT * FROM {table.value} WHERE {where}", params
            )
            if not old_rows:
                return []
            ids = [row["id"] for row in old_rows]
            id_marks = ",".join("?" * len(ids))
            await conn.execute(
                f"UPDATE {table.value} SET {assignments} WHERE id IN ({id_marks})",
                (*values.values(), *ids),
            )
            await conn.commit()
            new_rows = await self._fetch_all(
                f"SELECT * FROM {table.value} WHERE id IN ({id_marks})", ids
            )

        by_id = {row["id"]: row for row in old_rows}
        await self._publish(
            [
                self._event(table, ChangeType.UPDATE, record=new, old_record=by_id[new["id"]])
                for new in new_rows
            ]
        )
        return new_rows

    async def _delete(self, table: Table, where: str, params: Iterable = ()) -> list[dict]:
        """Delete matching rows; returns the deleted rows."""
        conn = self._require()
        params = tuple(params)
        async with self._lock:
            old_rows = await self._fetch_all(
                f"SELECT * FROM {table.value} WHERE {where}", params
            )
            if not old_rows:
                return []
            await conn.execute(f"DELETE FROM {table.value} WHERE {where}", params)
            await conn.commit()

        await self._publish(
            [self._event(table, ChangeType.DELETE, old_record=row) for row in old_rows]
        )
        return old_rows

    async def _delete_reactions_for(self, table: Table, message_ids: list[str]) -> None:
        # Reactions follow their message; no events, nothing watches an orphan
        if not message_ids:
            return
        conn = self._require()
        marks = ",".join("?" * len(message_ids))
        async with self._lock:
            await conn.execute(
                f"DELETE FROM {table.value} WHERE message_id IN ({marks})", message_ids
            )
            await conn.commit()

    # Team messages
    async def insert_team_message(self, message: TeamMessage) -> TeamMessage:
        """Insert a team message and return the stored row."""
        if not message.id:
            message.id = str(uuid.uuid4())
        if message.created_at is None:
            message.created_at = utcnow()

        stored = await self._insert(Table.TEAM_MESSAGES, message.to_row())
        return TeamMessage.from_row(stored)

    async def list_team_messages(self, owner_id: str, limit: int = 100) -> list[TeamMessage]:
        """Most recent team messages, oldest first."""
        rows = await self._fetch_all(
            """
            SELECT * FROM (
                SELECT *, rowid AS _seq FROM team_messages
                WHERE owner_id = ?
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
            )
            ORDER BY created_at ASC, _seq ASC
            """,
            (owner_id, limit),
        )
        return [TeamMessage.from_row(row) for row in rows]

    async def delete_team_message(self, message_id: str) -> bool:
        """Delete one team message."""
        deleted = await self._delete(Table.TEAM_MESSAGES, "id = ?", (message_id,))
        await self._delete_reactions_for(Table.MESSAGE_REACTIONS, [message_id] if deleted else [])
        return bool(deleted)

    async def delete_team_messages(self, owner_id: str) -> int:
        """Delete every message of a team."""
        deleted = await self._delete(Table.TEAM_MESSAGES, "owner_id = ?", (owner_id,))
        await self._delete_reactions_for(
            Table.MESSAGE_REACTIONS, [row["id"] for row in deleted]
        )
        return len(deleted)

    # Private messages
    async def insert_private_message(self, message: PrivateMessage) -> PrivateMessage:
        """Insert a private message and return the stored row."""
        if not message.id:
            message.id = str(uuid.uuid4())
        if message.created_at is None:
            message.created_at = utcnow()

        stored = await self._insert(Table.PRIVATE_MESSAGES, message.to_row())
        return PrivateMessage.from_row(stored)

    async def list_private_messages(
        self, owner_id: str, user_a: str, user_b: str, limit: int = 100
    ) -> list[PrivateMessage]:
        """Most recent messages between two users, oldest first."""
        rows = await self._fetch_all(
            f"""
            SELECT * FROM (
                SELECT *, rowid AS _seq FROM private_messages
                WHERE {_CONVERSATION}
                ORDER BY created_at DESC, rowid DESC
                LIMIT ?
            )
            ORDER BY created_at ASC, _seq ASC
            """,
            (owner_id, user_a, user_b, user_b, user_a, limit),
        )
        return [PrivateMessage.from_row(row) for row in rows]

    async def mark_private_read(self, owner_id: str, receiver_id: str, sender_id: str) -> int:
        """Mark everything sender -> receiver as read."""
        updated = await self._update(
            Table.PRIVATE_MESSAGES,
            {"is_read": 1},
            "team_owner_id = ? AND receiver_id = ? AND sender_id = ? AND is_read = 0",
            (owner_id, receiver_id, sender_id),
        )
        return len(updated)

    async def mark_private_message_read(self, message_id: str) -> bool:
        """Mark a single private message as read."""
        updated = await self._update(
            Table.PRIVATE_MESSAGES,
            {"is_read": 1},
            "id = ? AND is_read = 0",
            (message_id,),
        )
        return bool(updated)

    async def count_unread_by_sender(self, owner_id: str, receiver_id: str) -> dict[str, int]:
        """Unread private message counts addressed to receiver, per sender."""
        rows = await self._fetch_all(
            """
            SELECT sender_id, COUNT(*) AS unread
            FROM private_messages
            WHERE team_owner_id = ? AND receiver_id = ? AND is_read = 0
            GROUP BY sender_id
            """,
            (owner_id, receiver_id),
        )
        return {row["sender_id"]: row["unread"] for row in rows}

    async def delete_private_message(self, message_id: str) -> bool:
        """Delete one private message."""
        deleted = await self._delete(Table.PRIVATE_MESSAGES, "id = ?", (message_id,))
        await self._delete_reactions_for(
            Table.PRIVATE_MESSAGE_REACTIONS, [message_id] if deleted else []
        )
        return bool(deleted)

    async def delete_conversation(self, owner_id: str, user_a: str, user_b: str) -> int:
        """Delete every message between two users."""
        deleted = await self._delete(
            Table.PRIVATE_MESSAGES,
            _CONVERSATION,
            (owner_id, user_a, user_b, user_b, user_a),
        )
        await self._delete_reactions_for(
            Table.PRIVATE_MESSAGE_REACTIONS, [row["id"] for row in deleted]
        )
        return len(deleted)

    # Reactions
    def _check_reaction_table(self, table: Table) -> None:
        if table not in _REACTION_TABLES:
            raise ValueError(f"{table.value} is not a reaction table")

    async def list_reactions(self, table: Table, message_id: str) -> list[Reaction]:
        """Reactions on a message, oldest first."""
        self._check_reaction_table(table)
        rows = await self._fetch_all(
            f"""
            SELECT *, rowid AS _seq FROM {table.value}
            WHERE message_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (message_id,),
        )
        return [Reaction.from_row(row) for row in rows]

    async def toggle_reaction(
        self,
        table: Table,
        message_id: str,
        user_id: str,
        user_name: str,
        reaction_type: ReactionType,
        value: str,
    ) -> ReactionToggle:
        """Atomically add the reaction, or remove it if it exists.

        The read and the write happen under the store's write lock, so two
        concurrent toggles of the same (message, user, value) serialize into
        add-then-remove instead of racing into a duplicate.
        """
        self._check_reaction_table(table)
        conn = self._require()

        async with self._lock:
            existing = await self._fetch_one(
                f"""
                SELECT * FROM {table.value}
                WHERE message_id = ? AND user_id = ? AND reaction_value = ?
                """,
                (message_id, user_id, value),
            )
            if existing:
                await conn.execute(
                    f"DELETE FROM {table.value} WHERE id = ?", (existing["id"],)
                )
                await conn.commit()
                outcome = ReactionToggle.REMOVED
                event = self._event(table, ChangeType.DELETE, old_record=existing)
            else:
                reaction = Reaction(
                    id=str(uuid.uuid4()),
                    message_id=message_id,
                    user_id=user_id,
                    user_name=user_name,
                    reaction_type=reaction_type,
                    reaction_value=value,
                    created_at=utcnow(),
                )
                row = reaction.to_row()
                columns = ", ".join(row)
                placeholders = ", ".join("?" * len(row))
                await conn.execute(
                    f"INSERT OR IGNORE INTO {table.value} ({columns}) VALUES ({placeholders})",
                    tuple(row.values()),
                )
                await conn.commit()
                outcome = ReactionToggle.ADDED
                event = self._event(table, ChangeType.INSERT, record=row)

        await self._publish([event])
        return outcome

    # Members
    async def save_member(self, member: TeamMember) -> TeamMember:
        """Insert or replace a team member."""
        if not member.id:
            member.id = str(uuid.uuid4())

        existing = await self._fetch_one(
            "SELECT * FROM team_members WHERE id = ?", (member.id,)
        )
        if existing is None:
            stored = await self._insert(Table.TEAM_MEMBERS, member.to_row())
            return TeamMember.from_row(stored)

        values = member.to_row()
        values.pop("id")
        updated = await self._update(Table.TEAM_MEMBERS, values, "id = ?", (member.id,))
        return TeamMember.from_row(updated[0])

    async def get_member(self, member_id: str) -> TeamMember | None:
        """Get a team member by row id."""
        row = await self._fetch_one("SELECT * FROM team_members WHERE id = ?", (member_id,))
        return TeamMember.from_row(row) if row else None

    async def list_members(self, owner_id: str) -> list[TeamMember]:
        """All members of an owner's team."""
        rows = await self._fetch_all(
            "SELECT * FROM team_members WHERE owner_id = ? ORDER BY rowid ASC",
            (owner_id,),
        )
        return [TeamMember.from_row(row) for row in rows]

    async def find_membership(self, user_id: str, owner_id: str | None = None) -> TeamMember | None:
        """The linked (non-pending) membership of a user, optionally in one team."""
        where, params = "user_id = ? AND status != ?", [user_id, PENDING]
        if owner_id is not None:
            where += " AND owner_id = ?"
            params.append(owner_id)
        row = await self._fetch_one(
            f"SELECT * FROM team_members WHERE {where} ORDER BY rowid ASC LIMIT 1",
            tuple(params),
        )
        return TeamMember.from_row(row) if row else None

    async def find_member_by_email(self, owner_id: str, email: str) -> TeamMember | None:
        """Member of a team with the given email."""
        row = await self._fetch_one(
            "SELECT * FROM team_members WHERE owner_id = ? AND lower(email) = lower(?)",
            (owner_id, email),
        )
        return TeamMember.from_row(row) if row else None

    async def set_member_blocked(self, member_id: str, blocked: bool) -> TeamMember | None:
        """Flip the chat block flag of a member."""
        updated = await self._update(
            Table.TEAM_MEMBERS, {"is_chat_blocked": int(blocked)}, "id = ?", (member_id,)
        )
        return TeamMember.from_row(updated[0]) if updated else None

    async def update_member_status(self, user_id: str, status: str) -> int:
        """Write status and last_seen to every membership of a user."""
        updated = await self._update(
            Table.TEAM_MEMBERS,
            {"status": status, "last_seen": to_iso(utcnow())},
            "user_id = ? AND status != ?",
            (user_id, PENDING),
        )
        return len(updated)

    async def link_members_on_auth(self, user_id: str, email: str) -> list[TeamMember]:
        """Activate pending invites for an email that just authenticated."""
        updated = await self._update(
            Table.TEAM_MEMBERS,
            {"user_id": user_id, "status": ACTIVE, "last_seen": to_iso(utcnow())},
            "lower(email) = lower(?) AND status = ?",
            (email, PENDING),
        )
        return [TeamMember.from_row(row) for row in updated]

    # Profiles
    async def touch_profile(self, user_id: str) -> None:
        """Upsert the profile's last_seen."""
        conn = self._require()
        now = to_iso(utcnow())
        async with self._lock:
            await conn.execute(
                """
                INSERT INTO profiles (id, last_seen, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    last_seen = excluded.last_seen,
                    updated_at = excluded.updated_at
                """,
                (user_id, now, now),
            )
            await conn.commit()

    async def save_profile(self, profile: Profile) -> None:
        """Insert or replace a profile."""
        conn = self._require()
        async with self._lock:
            await conn.execute(
                """
                INSERT OR REPLACE INTO profiles
                (id, name, email, avatar_url, last_seen, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.id,
                    profile.name,
                    profile.email,
                    profile.avatar_url,
                    to_iso(profile.last_seen),
                    to_iso(utcnow()),
                ),
            )
            await conn.commit()

    async def get_profile(self, user_id: str) -> Profile | None:
        """Get a profile by user id."""
        row = await self._fetch_one("SELECT * FROM profiles WHERE id = ?", (user_id,))
        return Profile.from_row(row) if row else None

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require()

        tables = [
            "message_reactions",
            "private_message_reactions",
            "team_messages",
            "private_messages",
            "team_members",
            "profiles",
        ]

        async with self._lock:
            for table in tables:
                await conn.execute(f"DELETE FROM {table}")
            await conn.commit()
