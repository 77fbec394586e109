"""Reaction toggling and live grouped views."""

from typing import Callable

from ..change_feed import IChangeFeed, ResilientSubscription
from ..config import ChatConfig
from ..logging_config import get_logger
from ..models import ChangeEvent, ChangeType, GroupedReaction, Reaction, ReactionType, Table
from ..session import ChatSession
from ..sounds import SoundEngine
from ..storage import IStorage

logger = get_logger(__name__)


def group_reactions(reactions: list[Reaction], viewer_id: str) -> list[GroupedReaction]:
    """Group reaction rows by value, keeping first-seen order."""
    groups: dict[str, GroupedReaction] = {}
    for reaction in reactions:
        group = groups.get(reaction.reaction_value)
        if group is None:
            group = GroupedReaction(value=reaction.reaction_value, type=reaction.reaction_type)
            groups[reaction.reaction_value] = group
        group.count += 1
        group.users.append(reaction.user_name)
        if reaction.user_id == viewer_id:
            group.has_current_user = True
    return list(groups.values())


class ReactionStore:
    """Reactions for one reaction table, acting as one user."""

    def __init__(
        self,
        storage: IStorage,
        feed: IChangeFeed,
        session: ChatSession,
        table: Table = Table.MESSAGE_REACTIONS,
        sound: SoundEngine | None = None,
        config: ChatConfig | None = None,
    ):
        self._storage = storage
        self._feed = feed
        self._session = session
        self._table = table
        self._sound = sound
        self._config = config or ChatConfig()

    @property
    def table(self) -> Table:
        return self._table

    @property
    def feed(self) -> IChangeFeed:
        return self._feed

    @property
    def session(self) -> ChatSession:
        return self._session

    @property
    def sound(self) -> SoundEngine | None:
        return self._sound

    @property
    def config(self) -> ChatConfig:
        return self._config

    async def toggle(
        self,
        message_id: str,
        value: str,
        reaction_type: ReactionType = ReactionType.EMOJI,
    ) -> None:
        """Add or remove the viewer's reaction. Failures are logged only."""
        try:
            outcome = await self._storage.toggle_reaction(
                self._table,
                message_id,
                self._session.user_id,
                self._session.display_name,
                reaction_type,
                value,
            )
            logger.debug("Reaction %s %s on %s", value, outcome.value, message_id)
        except Exception as e:
            logger.error(
                "Failed to toggle reaction on %s: %s",
                message_id,
                e,
                exc_info=True,
                extra={"context": {"table": self._table.value, "value": value}},
            )

    async def grouped(self, message_id: str) -> list[GroupedReaction]:
        try:
            reactions = await self._storage.list_reactions(self._table, message_id)
        except Exception as e:
            logger.error("Failed to fetch reactions for %s: %s", message_id, e)
            return []
        return group_reactions(reactions, self._session.user_id)

    def watch(
        self,
        message_id: str,
        message_owner_id: str,
        on_change: Callable[[list[GroupedReaction]], None] | None = None,
    ) -> "ReactionView":
        """Open a live grouped view for one message. Call ``start()`` on it."""
        return ReactionView(self, message_id, message_owner_id, on_change=on_change)


class ReactionView:
    """Grouped reactions of one message, recomputed on every change event."""

    def __init__(
        self,
        store: ReactionStore,
        message_id: str,
        message_owner_id: str,
        on_change: Callable[[list[GroupedReaction]], None] | None = None,
    ):
        self._store = store
        self._message_id = message_id
        self._message_owner_id = message_owner_id
        self._on_change = on_change
        self._groups: list[GroupedReaction] = []
        self._loaded = False
        self._stopped = False
        self._subscription: ResilientSubscription | None = None

    @property
    def groups(self) -> list[GroupedReaction]:
        return self._groups

    async def start(self) -> None:
        self._stopped = False
        await self.refresh()
        self._loaded = True
        self._subscription = ResilientSubscription(
            self._store.feed,
            self._store.table,
            self._handle_change,
            filters={"message_id": self._message_id},
            on_resubscribed=self.refresh,
            initial_delay=self._store.config.resubscribe_initial_delay,
            max_delay=self._store.config.resubscribe_max_delay,
        )
        self._subscription.open()

    async def stop(self) -> None:
        self._stopped = True
        self._loaded = False
        if self._subscription:
            await self._subscription.close()
            self._subscription = None

    async def refresh(self) -> None:
        groups = await self._store.grouped(self._message_id)
        if self._stopped:
            return
        self._groups = groups
        if self._on_change:
            self._on_change(self._groups)

    async def _handle_change(self, event: ChangeEvent) -> None:
        session = self._store.session
        if (
            self._loaded
            and event.type == ChangeType.INSERT
            and self._message_owner_id == session.user_id
            and event.record.get("user_id") != session.user_id
            and self._store.sound
        ):
            self._store.sound.play()
        await self.refresh()
