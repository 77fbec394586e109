"""Shared machinery for team and private message channels."""

from typing import Callable, Generic, TypeVar

from ..change_feed import IChangeFeed, ResilientSubscription
from ..config import ChatConfig
from ..errors import ChatBlockedError, ValidationError
from ..logging_config import get_logger
from ..models import Attachment, ChangeEvent, ChangeType, ChatMessage, Table
from ..session import ChatSession
from ..sounds import SoundEngine
from ..storage import IStorage

logger = get_logger(__name__)

S = TypeVar("S")
M = TypeVar("M", bound=ChatMessage)

MessagesListener = Callable[[list], None]


class MessageChannel(Generic[S, M]):
    """Ordered, id-deduplicated, live list of messages for one scope.

    Every path that adds a message (fetch, send, change event) goes through
    the same id check, so an inserted row and its change-feed echo collapse
    into one entry in either order. Switching scope bumps a generation
    counter; fetches, sends and events started under an older generation
    never touch the current list.
    """

    table: Table

    def __init__(
        self,
        storage: IStorage,
        feed: IChangeFeed,
        session: ChatSession,
        config: ChatConfig | None = None,
        sound: SoundEngine | None = None,
        on_update: MessagesListener | None = None,
    ):
        self._storage = storage
        self._feed = feed
        self._session = session
        self._config = config or ChatConfig()
        self._sound = sound
        self._on_update = on_update

        self._scope: S | None = None
        self._generation = 0
        self._messages: list[M] = []
        self._ids: set[str] = set()
        self._subscription: ResilientSubscription | None = None
        self.blocked = False

    @property
    def scope(self) -> S | None:
        return self._scope

    @property
    def messages(self) -> list[M]:
        return list(self._messages)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    # Scope lifecycle
    async def open(self, scope: S) -> list[M]:
        """Bind to a scope: drop the old listener, subscribe, then fetch."""
        self._validate_scope(scope)
        await self._close_subscription()

        self._generation += 1
        self._scope = scope
        self._messages = []
        self._ids = set()

        self._subscription = ResilientSubscription(
            self._feed,
            self.table,
            self._make_handler(self._generation),
            filters=self._filters(scope),
            on_resubscribed=self.fetch,
            initial_delay=self._config.resubscribe_initial_delay,
            max_delay=self._config.resubscribe_max_delay,
        )
        self._subscription.open()
        logger.debug("Channel %s opened for %r", self.table.value, scope)
        return await self.fetch()

    async def close(self) -> None:
        await self._close_subscription()
        self._generation += 1
        self._scope = None
        self._messages = []
        self._ids = set()

    async def _close_subscription(self) -> None:
        if self._subscription:
            await self._subscription.close()
            self._subscription = None

    # Operations
    async def fetch(self) -> list[M]:
        """Load the most recent messages of the current scope.

        On failure the prior list is kept and returned.
        """
        if self._scope is None:
            return []
        scope, generation = self._scope, self._generation
        known_ids = set(self._ids)
        try:
            fetched = await self._fetch_rows(scope)
        except Exception as e:
            logger.error(
                "Failed to fetch %s: %s",
                self.table.value,
                e,
                exc_info=True,
                extra={"context": {"scope": repr(scope)}},
            )
            return self.messages

        if generation != self._generation:
            logger.debug("Discarding fetch for stale scope %r", scope)
            return self.messages

        # Only rows appended while the fetch was in flight survive it; the
        # fetched rows replace everything known before, deletions included
        fetched_ids = {m.id for m in fetched}
        late = [m for m in self._messages if m.id not in fetched_ids and m.id not in known_ids]
        self._messages = []
        self._ids = set()
        for message in [*fetched, *late]:
            self._append(message, notify=False)
        self._notify()
        await self._after_fetch(scope, generation)
        return self.messages

    async def send(
        self,
        body: str,
        attachment: Attachment | None = None,
        reply_to: M | None = None,
    ) -> M:
        """Insert a message and append the stored row."""
        if self._scope is None:
            raise ValidationError("Channel has no open conversation")
        if self.blocked:
            raise ChatBlockedError("You have been blocked from sending messages")

        scope, generation = self._scope, self._generation
        draft = self._build(scope, body, attachment, reply_to)
        try:
            stored = await self._insert(draft)
        except Exception as e:
            logger.error("Failed to send message: %s", e, exc_info=True)
            raise

        if generation == self._generation:
            self._append(stored)
        return stored

    # Local list
    def _append(self, message: M, notify: bool = True) -> bool:
        if message.id in self._ids:
            return False
        self._ids.add(message.id)
        self._messages.append(message)
        overflow = len(self._messages) - self._config.message_limit
        if overflow > 0:
            for dropped in self._messages[:overflow]:
                self._ids.discard(dropped.id)
            self._messages = self._messages[overflow:]
        if notify:
            self._notify()
        return True

    def _replace(self, message: M) -> bool:
        for i, existing in enumerate(self._messages):
            if existing.id == message.id:
                self._messages[i] = message
                self._notify()
                return True
        return False

    def _remove(self, message_id: str) -> bool:
        if message_id not in self._ids:
            return False
        self._ids.discard(message_id)
        self._messages = [m for m in self._messages if m.id != message_id]
        self._notify()
        return True

    def _notify(self) -> None:
        if self._on_update:
            self._on_update(self.messages)

    # Change feed
    def _make_handler(self, generation: int):
        async def handle(event: ChangeEvent) -> None:
            if generation != self._generation or self._scope is None:
                return
            message = self._from_row(event.row)
            if not self._in_scope(self._scope, message):
                return

            if event.type == ChangeType.INSERT:
                if self._append(message):
                    await self._on_incoming(message, generation)
            elif event.type == ChangeType.UPDATE:
                self._replace(message)
            elif event.type == ChangeType.DELETE:
                self._remove(message.id)

        return handle

    def _play_sound(self) -> None:
        if self._sound:
            self._sound.play()

    # Variant hooks
    def _validate_scope(self, scope: S) -> None:
        raise NotImplementedError

    def _filters(self, scope: S) -> dict[str, object]:
        raise NotImplementedError

    def _in_scope(self, scope: S, message: M) -> bool:
        raise NotImplementedError

    def _from_row(self, row: dict) -> M:
        raise NotImplementedError

    async def _fetch_rows(self, scope: S) -> list[M]:
        raise NotImplementedError

    def _build(self, scope: S, body: str, attachment: Attachment | None, reply_to: M | None) -> M:
        raise NotImplementedError

    async def _insert(self, message: M) -> M:
        raise NotImplementedError

    async def _after_fetch(self, scope: S, generation: int) -> None:
        pass

    async def _on_incoming(self, message: M, generation: int) -> None:
        pass
