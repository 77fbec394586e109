"""ChangeFeed implementation: push-based row change notifications."""

import asyncio
import itertools
from typing import Awaitable, Callable, Iterable, Protocol

from ..errors import FeedUnavailableError
from ..logging_config import get_logger
from ..models import ALL_CHANGES, ChangeEvent, ChangeType, Table

logger = get_logger(__name__)


ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]
DropHandler = Callable[[], None]

_subscription_ids = itertools.count(1)


class Subscription:
    """A live listener on one table, narrowed by column equality filters."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: Table,
        handler: ChangeHandler,
        filters: dict[str, object] | None = None,
        events: Iterable[ChangeType] | None = None,
        on_drop: DropHandler | None = None,
    ):
        self.id = next(_subscription_ids)
        self.table = table
        self.filters = dict(filters or {})
        self.events = frozenset(events) if events else ALL_CHANGES
        self._feed = feed
        self._handler = handler
        self._on_drop = on_drop
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        if not self.active:
            return False
        if event.table != self.table or event.type not in self.events:
            return False
        row = event.row
        return all(row.get(column) == value for column, value in self.filters.items())

    async def deliver(self, event: ChangeEvent) -> None:
        await self._handler(event)

    def drop(self) -> None:
        """Transport went away; notify the owner so it can resubscribe."""
        self.active = False
        if self._on_drop:
            self._on_drop()

    def close(self) -> None:
        """Stop listening. Safe to call more than once."""
        self.active = False
        self._feed.unsubscribe(self)

    def __repr__(self) -> str:
        return f"Subscription(id={self.id}, table={self.table.value}, filters={self.filters})"


class IChangeFeed(Protocol):
    """Push stream of row-level changes, filterable by table and column."""

    def subscribe(
        self,
        table: Table,
        handler: ChangeHandler,
        *,
        filters: dict[str, object] | None = None,
        events: Iterable[ChangeType] | None = None,
        on_drop: DropHandler | None = None,
    ) -> Subscription:
        """Open a listener. Raises FeedUnavailableError while disconnected."""
        ...

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a listener."""
        ...

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching listener."""
        ...


class ChangeFeed:
    """In-memory change feed."""

    def __init__(self):
        self._subscriptions: dict[int, Subscription] = {}
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: Table,
        handler: ChangeHandler,
        *,
        filters: dict[str, object] | None = None,
        events: Iterable[ChangeType] | None = None,
        on_drop: DropHandler | None = None,
    ) -> Subscription:
        """Open a listener. Raises FeedUnavailableError while disconnected."""
        if not self._connected:
            raise FeedUnavailableError("Change feed is disconnected")

        subscription = Subscription(
            self, table, handler, filters=filters, events=events, on_drop=on_drop
        )
        self._subscriptions[subscription.id] = subscription
        logger.debug("Subscribed %r", subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a listener."""
        self._subscriptions.pop(subscription.id, None)

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching listener."""
        if not self._connected:
            logger.debug("Feed disconnected, dropping %s on %s", event.type, event.table)
            return

        targets = [s for s in self._subscriptions.values() if s.matches(event)]
        if not targets:
            return

        # Call all handlers concurrently
        results = await asyncio.gather(
            *[subscription.deliver(event) for subscription in targets],
            return_exceptions=True,
        )

        for subscription, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.error(
                    "Error in change handler %r: %s",
                    subscription,
                    result,
                    exc_info=result,
                )

    def disconnect(self) -> None:
        """Simulate a transport drop: every listener is dropped."""
        self._connected = False
        dropped = list(self._subscriptions.values())
        self._subscriptions.clear()
        logger.warning("Change feed disconnected, dropping %d subscriptions", len(dropped))
        for subscription in dropped:
            subscription.drop()

    def reconnect(self) -> None:
        self._connected = True
        logger.info("Change feed reconnected")
