"""Team-wide message channel."""

from dataclasses import dataclass

from ..errors import ValidationError
from ..models import Attachment, Table, TeamMessage
from .base import MessageChannel
from .compose import build_team_message


@dataclass(frozen=True)
class TeamScope:
    """All messages posted to one owner's team."""

    owner_id: str


class TeamChannel(MessageChannel[TeamScope, TeamMessage]):
    table = Table.TEAM_MESSAGES

    def _validate_scope(self, scope: TeamScope) -> None:
        if not scope.owner_id:
            raise ValidationError("Team scope needs an owner id")

    def _filters(self, scope: TeamScope) -> dict[str, object]:
        return {"owner_id": scope.owner_id}

    def _in_scope(self, scope: TeamScope, message: TeamMessage) -> bool:
        return message.owner_id == scope.owner_id

    def _from_row(self, row: dict) -> TeamMessage:
        return TeamMessage.from_row(row)

    async def _fetch_rows(self, scope: TeamScope) -> list[TeamMessage]:
        return await self._storage.list_team_messages(
            scope.owner_id, limit=self._config.message_limit
        )

    def _build(
        self,
        scope: TeamScope,
        body: str,
        attachment: Attachment | None,
        reply_to: TeamMessage | None,
    ) -> TeamMessage:
        return build_team_message(
            self._session,
            scope.owner_id,
            body,
            attachment,
            reply_to,
            self._config.reply_preview_chars,
        )

    async def _insert(self, message: TeamMessage) -> TeamMessage:
        return await self._storage.insert_team_message(message)

    async def _on_incoming(self, message: TeamMessage, generation: int) -> None:
        if message.sender_id != self._session.user_id:
            self._play_sound()

    async def delete_message(self, message_id: str) -> bool:
        return await self._storage.delete_team_message(message_id)
