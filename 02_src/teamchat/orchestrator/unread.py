"""Per-sender unread private message counts for the viewer."""

from typing import Callable

from ..change_feed import IChangeFeed, ResilientSubscription
from ..config import ChatConfig
from ..logging_config import get_logger
from ..models import ChangeEvent, Table
from ..storage import IStorage

logger = get_logger(__name__)


class UnreadCounter:
    """Derived view over ``private_messages.is_read``.

    Recomputed from the store on every private message change addressed to
    the viewer; the store stays authoritative.
    """

    def __init__(
        self,
        storage: IStorage,
        feed: IChangeFeed,
        owner_id: str,
        viewer_id: str,
        config: ChatConfig | None = None,
        on_change: Callable[[dict[str, int]], None] | None = None,
    ):
        self._storage = storage
        self._feed = feed
        self._owner_id = owner_id
        self._viewer_id = viewer_id
        self._config = config or ChatConfig()
        self._on_change = on_change
        self._counts: dict[str, int] = {}
        self._subscription: ResilientSubscription | None = None

    @property
    def counts(self) -> dict[str, int]:
        return dict(self._counts)

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def count(self, sender_id: str) -> int:
        return self._counts.get(sender_id, 0)

    async def start(self) -> None:
        await self.refresh()
        self._subscription = ResilientSubscription(
            self._feed,
            Table.PRIVATE_MESSAGES,
            self._handle_change,
            filters={"receiver_id": self._viewer_id},
            on_resubscribed=self.refresh,
            initial_delay=self._config.resubscribe_initial_delay,
            max_delay=self._config.resubscribe_max_delay,
        )
        self._subscription.open()

    async def stop(self) -> None:
        if self._subscription:
            await self._subscription.close()
            self._subscription = None

    async def refresh(self) -> dict[str, int]:
        try:
            self._counts = await self._storage.count_unread_by_sender(
                self._owner_id, self._viewer_id
            )
        except Exception as e:
            logger.warning("Failed to fetch unread counts: %s", e)
            return self.counts
        self._emit()
        return self.counts

    def clear(self, sender_id: str) -> None:
        """Drop a sender's count locally when their thread is opened."""
        if self._counts.pop(sender_id, None) is not None:
            self._emit()

    async def _handle_change(self, event: ChangeEvent) -> None:
        await self.refresh()

    def _emit(self) -> None:
        if self._on_change:
            self._on_change(self.counts)
