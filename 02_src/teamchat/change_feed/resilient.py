"""Subscription wrapper that reopens itself after a transport drop."""

import asyncio
from typing import Awaitable, Callable, Iterable

from ..errors import FeedUnavailableError
from ..logging_config import get_logger
from ..models import ChangeType, Table
from .change_feed import ChangeHandler, IChangeFeed, Subscription

logger = get_logger(__name__)


class ResilientSubscription:
    """Keeps one logical listener alive across feed disconnects.

    When the underlying subscription is dropped, a background task retries
    with exponential backoff. Once resubscribed, ``on_resubscribed`` runs so
    the owner can re-fetch whatever it missed while offline.
    """

    def __init__(
        self,
        feed: IChangeFeed,
        table: Table,
        handler: ChangeHandler,
        *,
        filters: dict[str, object] | None = None,
        events: Iterable[ChangeType] | None = None,
        on_resubscribed: Callable[[], Awaitable[None]] | None = None,
        initial_delay: float = 0.5,
        max_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._feed = feed
        self._table = table
        self._handler = handler
        self._filters = filters
        self._events = events
        self._on_resubscribed = on_resubscribed
        self._initial_delay = initial_delay
        self._max_delay = max_delay
        self._sleep = sleep
        self._subscription: Subscription | None = None
        self._retry_task: asyncio.Task | None = None
        self._closed = False

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def reconnecting(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    def open(self) -> None:
        """Subscribe now, or schedule retries if the feed is down."""
        self._closed = False
        try:
            self._subscribe()
        except FeedUnavailableError:
            logger.warning("Feed unavailable for %s, retrying in background", self._table.value)
            self._schedule_retry()

    async def close(self) -> None:
        self._closed = True
        if self._retry_task:
            self._retry_task.cancel()
            try:
                await self._retry_task
            except asyncio.CancelledError:
                pass
            self._retry_task = None
        if self._subscription:
            self._subscription.close()
            self._subscription = None

    def _subscribe(self) -> None:
        self._subscription = self._feed.subscribe(
            self._table,
            self._handler,
            filters=self._filters,
            events=self._events,
            on_drop=self._handle_drop,
        )

    def _handle_drop(self) -> None:
        self._subscription = None
        if self._closed:
            return
        logger.info("Subscription on %s dropped, resubscribing", self._table.value)
        self._schedule_retry()

    def _schedule_retry(self) -> None:
        if self.reconnecting:
            return
        self._retry_task = asyncio.create_task(self._resubscribe())

    async def _resubscribe(self) -> None:
        delay = self._initial_delay
        while not self._closed:
            await self._sleep(delay)
            try:
                self._subscribe()
            except FeedUnavailableError:
                delay = min(delay * 2, self._max_delay)
                logger.debug("Resubscribe to %s failed, next try in %.1fs", self._table.value, delay)
                continue

            logger.info("Resubscribed to %s", self._table.value)
            if self._on_resubscribed:
                try:
                    await self._on_resubscribed()
                except Exception as e:
                    logger.error("Reconcile after resubscribe failed: %s", e, exc_info=True)
            # Dropped again while reconciling
            if self.active:
                return
