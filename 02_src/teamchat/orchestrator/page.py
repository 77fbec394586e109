"""Chat page orchestrator: the in-page panel plus pop-out windows."""

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from ..change_feed import IChangeFeed, ResilientSubscription
from ..channel import PrivateChannel, PrivateScope, TeamChannel, TeamScope
from ..config import ChatConfig
from ..errors import AttachmentTooLargeError, ChatBlockedError, PermissionDeniedError, ValidationError
from ..logging_config import get_logger, set_log_context
from ..models import (
    Attachment,
    ChangeEvent,
    ChatMessage,
    ChatSettings,
    ManualStatus,
    PresenceState,
    PrivateMessage,
    ReactionType,
    Table,
    TeamMember,
)
from ..presence import PresenceTracker, effective_presence
from ..reactions import ReactionStore, ReactionView
from ..session import ChatSession
from ..settings import ChatSettingsService, LocalSettingsStore
from ..sounds import SoundEngine
from ..storage import IFileStore, IStorage
from ..team import TeamContext, is_owner_entry, link_member_on_auth, load_roster, resolve_team_context
from .pickers import status_to_manual
from .unread import UnreadCounter
from .windows import PopOutManager, PopOutWindow

logger = get_logger(__name__)

GIF_FILE_NAME = "GIF"
GIF_MIME_TYPE = "image/gif"


class Confirmer(Protocol):
    """Asks the actor to confirm a destructive action."""

    async def confirm(self, title: str, text: str) -> bool:
        ...


class AutoConfirm:
    """Answers every prompt the same way and remembers the titles."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.prompts: list[str] = []

    async def confirm(self, title: str, text: str) -> bool:
        self.prompts.append(title)
        return self.answer


@dataclass
class AdminResult:
    ok: bool
    message: str
    affected: int = 0
    cancelled: bool = False


class ChatPage:
    """Everything one signed-in user sees on the team chat page."""

    def __init__(
        self,
        storage: IStorage,
        feed: IChangeFeed,
        files: IFileStore,
        local_store: LocalSettingsStore,
        session: ChatSession,
        *,
        config: ChatConfig | None = None,
        sound: SoundEngine | None = None,
        confirmer: Confirmer | None = None,
        tracker: PresenceTracker | None = None,
        pop_outs: PopOutManager | None = None,
        on_roster: Callable[[list[TeamMember]], None] | None = None,
    ):
        self._storage = storage
        self._feed = feed
        self._files = files
        self._local_store = local_store
        self._session = session
        self._config = config or ChatConfig()
        self._sound = sound or SoundEngine(local_store)
        self._confirmer = confirmer or AutoConfirm()
        self._tracker = tracker or PresenceTracker(storage, session, self._config)
        self._pop_outs = pop_outs or PopOutManager()
        self._on_roster = on_roster

        self._context: TeamContext | None = None
        self._settings: ChatSettingsService | None = None
        self._roster: list[TeamMember] = []
        self._unread: UnreadCounter | None = None
        self._member_subscription: ResilientSubscription | None = None
        self._views: list[ReactionView] = []

        self._team_channel = TeamChannel(storage, feed, session, self._config, sound=self._sound)
        self._private_channel = PrivateChannel(storage, feed, session, self._config, sound=self._sound)
        self._pop_out_channels: dict[str, PrivateChannel] = {}

        self._team_reactions = ReactionStore(
            storage, feed, session, Table.MESSAGE_REACTIONS, sound=self._sound, config=self._config
        )
        self._private_reactions = ReactionStore(
            storage, feed, session, Table.PRIVATE_MESSAGE_REACTIONS, sound=self._sound, config=self._config
        )

    # Properties
    def _require_open(self) -> TeamContext:
        if self._context is None:
            raise RuntimeError("Chat page not opened")
        return self._context

    @property
    def session(self) -> ChatSession:
        return self._session

    @property
    def context(self) -> TeamContext:
        return self._require_open()

    @property
    def is_owner(self) -> bool:
        return self._require_open().is_owner

    @property
    def is_blocked(self) -> bool:
        return self._require_open().is_blocked

    @property
    def team_channel(self) -> TeamChannel:
        return self._team_channel

    @property
    def private_channel(self) -> PrivateChannel:
        return self._private_channel

    @property
    def roster(self) -> list[TeamMember]:
        return list(self._roster)

    @property
    def unread(self) -> UnreadCounter:
        if self._unread is None:
            raise RuntimeError("Chat page not opened")
        return self._unread

    @property
    def settings(self) -> ChatSettings:
        if self._settings is None:
            raise RuntimeError("Chat page not opened")
        return self._settings.settings

    @property
    def tracker(self) -> PresenceTracker:
        return self._tracker

    @property
    def sound(self) -> SoundEngine:
        return self._sound

    @property
    def pop_outs(self) -> PopOutManager:
        return self._pop_outs

    # Lifecycle
    async def open(self) -> None:
        """Resolve the team, load settings and roster, start live views."""
        await link_member_on_auth(self._storage, self._session)

        self._settings = ChatSettingsService(self._local_store, self._session.user_id)
        self._session.nickname = self._settings.settings.nickname

        self._context = await resolve_team_context(self._storage, self._session)
        owner_id = self._context.owner_id
        self._apply_blocked(self._context.is_blocked)
        set_log_context(user_id=self._session.user_id, owner_id=owner_id)
        logger.info(
            "Opening chat page",
            extra={
                "context": {
                    "user_id": self._session.user_id,
                    "owner_id": owner_id,
                    "is_owner": self._context.is_owner,
                }
            },
        )

        await self._team_channel.open(TeamScope(owner_id))
        await self.reload_roster()

        self._unread = UnreadCounter(
            self._storage, self._feed, owner_id, self._session.user_id, self._config
        )
        await self._unread.start()

        self._member_subscription = ResilientSubscription(
            self._feed,
            Table.TEAM_MEMBERS,
            self._handle_member_change,
            filters={"owner_id": owner_id},
            on_resubscribed=self.reload_roster,
            initial_delay=self._config.resubscribe_initial_delay,
            max_delay=self._config.resubscribe_max_delay,
        )
        self._member_subscription.open()

        await self._tracker.start()
        manual = self._manual_from_settings(self._settings.settings.status)
        if manual is not None:
            await self._tracker.set_manual_status(manual)

    async def close(self) -> None:
        for view in self._views:
            await view.stop()
        self._views = []
        if self._member_subscription:
            await self._member_subscription.close()
            self._member_subscription = None
        if self._unread:
            await self._unread.stop()
        for peer_id in list(self._pop_out_channels):
            await self.close_pop_out(peer_id)
        await self._private_channel.close()
        await self._team_channel.close()
        await self._tracker.stop()
        logger.info("Chat page closed", extra={"context": {"user_id": self._session.user_id}})

    # Roster / membership
    async def reload_roster(self) -> list[TeamMember]:
        context = self._require_open()
        try:
            self._roster = await load_roster(self._storage, context)
        except Exception as e:
            logger.error("Failed to load team members: %s", e, exc_info=True)
            return self.roster
        if self._on_roster:
            self._on_roster(self.roster)
        return self.roster

    def roster_presence(self, now: datetime | None = None) -> list[tuple[TeamMember, PresenceState]]:
        return [
            (member, effective_presence(member, now, self._config.online_window_seconds))
            for member in self._roster
        ]

    def _apply_blocked(self, blocked: bool) -> None:
        if self._context:
            self._context.is_blocked = blocked
        self._team_channel.blocked = blocked
        self._private_channel.blocked = blocked
        for channel in self._pop_out_channels.values():
            channel.blocked = blocked

    async def _handle_member_change(self, event: ChangeEvent) -> None:
        context = self._context
        if context and context.membership_id and event.row.get("id") == context.membership_id:
            blocked = bool(event.record.get("is_chat_blocked")) if event.record else False
            if blocked != context.is_blocked:
                logger.info("Chat block changed to %s", blocked)
                self._apply_blocked(blocked)
        await self.reload_roster()

    def display_name(self, sender_id: str, sender_name: str) -> str:
        """Own nickname override, else member nickname, else the stored name."""
        if sender_id == self._session.user_id and self._session.nickname:
            return self._session.nickname
        for member in self._roster:
            if member.user_id == sender_id and member.chat_nickname:
                return member.chat_nickname
        return sender_name

    # Sending
    def _channel_for(self, peer_id: str | None) -> TeamChannel | PrivateChannel:
        if peer_id is None:
            return self._team_channel
        channel = self._pop_out_channels.get(peer_id)
        if channel is not None:
            return channel
        scope = self._private_channel.scope
        if scope is not None and scope.peer_id == peer_id:
            return self._private_channel
        raise ValidationError(f"No open conversation with {peer_id}")

    async def send_message(
        self,
        body: str,
        reply_to: ChatMessage | None = None,
        peer_id: str | None = None,
    ) -> ChatMessage:
        """Send text to the team, or to ``peer_id`` in an open private chat."""
        return await self._channel_for(peer_id).send(body, reply_to=reply_to)

    async def upload_attachment(self, file_name: str, data: bytes, content_type: str) -> Attachment:
        """Store a file under ``<owner_id>/<millis>.<ext>``."""
        context = self._require_open()
        if len(data) > self._config.max_attachment_bytes:
            raise AttachmentTooLargeError(len(data), self._config.max_attachment_bytes)

        ext = file_name.rsplit(".", 1)[-1] if "." in file_name else "bin"
        path = f"{context.owner_id}/{int(time.time() * 1000)}.{ext}"
        try:
            url = await self._files.upload(path, data)
        except Exception as e:
            logger.error("Error uploading file: %s", e, exc_info=True)
            raise
        return Attachment(url=url, name=file_name, type=content_type)

    async def send_file(
        self,
        file_name: str,
        data: bytes,
        content_type: str,
        body: str = "",
        peer_id: str | None = None,
    ) -> ChatMessage:
        channel = self._channel_for(peer_id)
        if channel.blocked:
            raise ChatBlockedError("You have been blocked from sending messages")
        attachment = await self.upload_attachment(file_name, data, content_type)
        return await channel.send(body, attachment=attachment)

    async def send_gif(self, gif_url: str, peer_id: str | None = None) -> ChatMessage:
        attachment = Attachment(url=gif_url, name=GIF_FILE_NAME, type=GIF_MIME_TYPE)
        return await self._channel_for(peer_id).send("", attachment=attachment)

    async def send_sticker(self, sticker: str, peer_id: str | None = None) -> ChatMessage:
        return await self._channel_for(peer_id).send(sticker)

    # Reactions
    def _reactions_for(self, message: ChatMessage) -> ReactionStore:
        if isinstance(message, PrivateMessage):
            return self._private_reactions
        return self._team_reactions

    async def react(
        self,
        message: ChatMessage,
        value: str,
        reaction_type: ReactionType = ReactionType.EMOJI,
    ) -> None:
        await self._reactions_for(message).toggle(message.id, value, reaction_type)

    async def watch_reactions(self, message: ChatMessage) -> ReactionView:
        view = self._reactions_for(message).watch(message.id, message.sender_id)
        await view.start()
        self._views.append(view)
        return view

    # Private chats
    def _private_scope(self, peer_id: str) -> PrivateScope:
        context = self._require_open()
        if peer_id == self._session.user_id:
            raise ValidationError("Cannot open a private chat with yourself")
        return PrivateScope(owner_id=context.owner_id, peer_id=peer_id)

    async def open_private_chat(self, peer_id: str) -> PrivateChannel:
        """Show the thread with ``peer_id`` in the in-page panel."""
        scope = self._private_scope(peer_id)
        if self._unread:
            self._unread.clear(peer_id)
        await self._private_channel.open(scope)
        return self._private_channel

    async def close_private_chat(self) -> None:
        await self._private_channel.close()

    def pop_out_channel(self, peer_id: str) -> PrivateChannel | None:
        return self._pop_out_channels.get(peer_id)

    async def pop_out(self, peer_id: str) -> PopOutWindow:
        """Open (or bring back) a floating window for the thread with ``peer_id``."""
        scope = self._private_scope(peer_id)
        window = self._pop_outs.open(peer_id)
        if peer_id not in self._pop_out_channels:
            channel = PrivateChannel(
                self._storage, self._feed, self._session, self._config, sound=self._sound
            )
            channel.blocked = self.is_blocked
            self._pop_out_channels[peer_id] = channel
            await channel.open(scope)
        if self._unread:
            self._unread.clear(peer_id)
        return window

    async def close_pop_out(self, peer_id: str) -> None:
        channel = self._pop_out_channels.pop(peer_id, None)
        if channel:
            await channel.close()
        self._pop_outs.close(peer_id)

    async def clear_private_conversation(self, peer_id: str) -> AdminResult:
        channel = self._channel_for(peer_id)
        if not await self._confirmer.confirm(
            "Clear all messages?", "This will delete every message in this conversation."
        ):
            return AdminResult(ok=False, message="Cancelled", cancelled=True)
        try:
            removed = await channel.clear_conversation()
        except Exception as e:
            logger.error("Failed to clear conversation: %s", e, exc_info=True)
            return AdminResult(ok=False, message=f"Could not clear messages: {e}")
        return AdminResult(ok=True, message="All messages have been deleted.", affected=removed)

    async def delete_private_message(self, message: PrivateMessage) -> AdminResult:
        if not await self._confirmer.confirm("Delete message?", "This message will be removed."):
            return AdminResult(ok=False, message="Cancelled", cancelled=True)
        try:
            deleted = await self._storage.delete_private_message(message.id)
        except Exception as e:
            logger.error("Failed to delete message %s: %s", message.id, e, exc_info=True)
            return AdminResult(ok=False, message=f"Could not delete message: {e}")
        return AdminResult(ok=deleted, message="Deleted" if deleted else "Message not found", affected=int(deleted))

    # Admin
    def _require_owner(self) -> TeamContext:
        context = self._require_open()
        if not context.is_owner:
            raise PermissionDeniedError("Only the team owner can do this")
        return context

    async def clear_all_messages(self) -> AdminResult:
        """Hard-delete every team message after confirmation."""
        context = self._require_owner()
        if not await self._confirmer.confirm(
            "Clear All Messages?",
            "This will permanently delete all chat messages. This cannot be undone!",
        ):
            return AdminResult(ok=False, message="Cancelled", cancelled=True)
        try:
            removed = await self._storage.delete_team_messages(context.owner_id)
        except Exception as e:
            logger.error("Failed to clear chat: %s", e, exc_info=True)
            return AdminResult(ok=False, message=f"Could not clear chat: {e}")
        logger.info("Chat cleared", extra={"context": {"owner_id": context.owner_id, "removed": removed}})
        return AdminResult(ok=True, message="Chat cleared", affected=removed)

    async def toggle_block(self, member: TeamMember) -> AdminResult:
        """Flip a member's chat block flag after confirmation."""
        self._require_owner()
        if is_owner_entry(member):
            raise ValidationError("The team owner cannot be blocked")

        blocked = not member.is_chat_blocked
        action = "block" if blocked else "unblock"
        text = (
            "This user will not be able to send messages in the chat."
            if blocked
            else "This user will be able to send messages again."
        )
        if not await self._confirmer.confirm(f"{action.capitalize()} {member.name}?", text):
            return AdminResult(ok=False, message="Cancelled", cancelled=True)

        try:
            updated = await self._storage.set_member_blocked(member.id, blocked)
        except Exception as e:
            logger.error("Failed to %s %s: %s", action, member.id, e, exc_info=True)
            return AdminResult(ok=False, message=f"Could not {action} user: {e}")
        if updated is None:
            return AdminResult(ok=False, message="Member not found")

        member.is_chat_blocked = blocked
        return AdminResult(ok=True, message=f"User {action}ed", affected=1)

    # Settings
    def _require_settings(self) -> ChatSettingsService:
        if self._settings is None:
            raise RuntimeError("Chat page not opened")
        return self._settings

    def set_nickname(self, nickname: str | None) -> ChatSettings:
        settings = self._require_settings().save_nickname(nickname)
        self._session.nickname = settings.nickname
        return settings

    def set_theme(self, theme: str) -> ChatSettings:
        return self._require_settings().save_theme(theme)

    def set_background(self, image: str | None) -> ChatSettings:
        return self._require_settings().save_background(image)

    def select_sound(self, sound_id: str) -> None:
        self._sound.select(sound_id)

    async def update_status(self, status: str) -> ChatSettings:
        """Save a picker status and publish it as the manual override."""
        try:
            manual = status_to_manual(status)
        except KeyError:
            raise ValidationError(f"Unknown status: {status}") from None
        settings = self._require_settings().save_status(status)
        await self._tracker.set_manual_status(manual)
        return settings

    def _manual_from_settings(self, status: str) -> ManualStatus | None:
        try:
            return status_to_manual(status)
        except KeyError:
            logger.warning("Ignoring unknown saved status %r", status)
            return None
