"""One-to-one message channel."""

from dataclasses import dataclass

from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import Attachment, PrivateMessage, Table
from .base import MessageChannel
from .compose import build_private_message

logger = get_logger(__name__)


@dataclass(frozen=True)
class PrivateScope:
    """The thread between the viewer and ``peer_id`` inside an owner's team."""

    owner_id: str
    peer_id: str


class PrivateChannel(MessageChannel[PrivateScope, PrivateMessage]):
    table = Table.PRIVATE_MESSAGES

    @property
    def viewer_id(self) -> str:
        return self._session.user_id

    def _validate_scope(self, scope: PrivateScope) -> None:
        if not scope.owner_id or not scope.peer_id:
            raise ValidationError("Private scope needs an owner id and a peer id")
        if scope.peer_id == self.viewer_id:
            raise ValidationError("Cannot open a private chat with yourself")

    def _filters(self, scope: PrivateScope) -> dict[str, object]:
        # Equality filters cannot express the (a, b) | (b, a) pair; _in_scope narrows
        return {"team_owner_id": scope.owner_id}

    def _in_scope(self, scope: PrivateScope, message: PrivateMessage) -> bool:
        return message.team_owner_id == scope.owner_id and message.involves(
            self.viewer_id, scope.peer_id
        )

    def _from_row(self, row: dict) -> PrivateMessage:
        return PrivateMessage.from_row(row)

    async def _fetch_rows(self, scope: PrivateScope) -> list[PrivateMessage]:
        return await self._storage.list_private_messages(
            scope.owner_id, self.viewer_id, scope.peer_id, limit=self._config.message_limit
        )

    def _build(
        self,
        scope: PrivateScope,
        body: str,
        attachment: Attachment | None,
        reply_to: PrivateMessage | None,
    ) -> PrivateMessage:
        return build_private_message(
            self._session,
            scope.owner_id,
            scope.peer_id,
            body,
            attachment,
            reply_to,
            self._config.reply_preview_chars,
        )

    async def _insert(self, message: PrivateMessage) -> PrivateMessage:
        return await self._storage.insert_private_message(message)

    async def _after_fetch(self, scope: PrivateScope, generation: int) -> None:
        await self.mark_read()

    async def _on_incoming(self, message: PrivateMessage, generation: int) -> None:
        if message.receiver_id != self.viewer_id:
            return
        self._play_sound()
        await self.mark_read()

    async def mark_read(self) -> int:
        """Flag every message from the peer to the viewer as read."""
        if self._scope is None:
            return 0
        try:
            return await self._storage.mark_private_read(
                self._scope.owner_id, self.viewer_id, self._scope.peer_id
            )
        except Exception as e:
            logger.warning("Failed to mark messages read: %s", e)
            return 0

    async def delete_message(self, message_id: str) -> bool:
        return await self._storage.delete_private_message(message_id)

    async def clear_conversation(self) -> int:
        """Delete every message in the current thread."""
        if self._scope is None:
            return 0
        return await self._storage.delete_conversation(
            self._scope.owner_id, self.viewer_id, self._scope.peer_id
        )
