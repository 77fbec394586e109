"""Heartbeat and idle detection for the signed-in user."""

import asyncio
import time
from typing import Awaitable, Callable, Protocol

from ..config import ChatConfig
from ..logging_config import get_logger
from ..models import Derived, DerivedPresence, Manual, ManualStatus, PresenceState, stored_status
from ..session import ChatSession
from ..storage import IStorage

logger = get_logger(__name__)

ACTIVITY_EVENTS = frozenset({"mousedown", "mousemove", "keydown", "scroll", "touchstart", "click"})
VISIBILITY_EVENT = "visibilitychange"

ONLINE = Derived(DerivedPresence.ONLINE)
AWAY = Derived(DerivedPresence.AWAY)
OFFLINE = Derived(DerivedPresence.OFFLINE)


class IPresenceTracker(Protocol):
    async def start(self) -> None:
        """Publish Online and begin the heartbeat."""
        ...

    async def stop(self) -> None:
        """Stop the heartbeat and publish Offline."""
        ...

    async def handle_event(self, event_type: str, visible: bool = True) -> bool:
        """Feed a UI input event; returns True if it counted as activity."""
        ...


class PresenceTracker:
    """Online/Away/Offline state machine for one user.

    ``clock`` returns monotonic seconds and ``sleep`` is awaited between
    heartbeats; both are injectable so tests can drive simulated time.
    """

    def __init__(
        self,
        storage: IStorage,
        session: ChatSession,
        config: ChatConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._storage = storage
        self._session = session
        self._config = config or ChatConfig()
        self._clock = clock
        self._sleep = sleep

        self._presence: Derived = OFFLINE
        self._manual: ManualStatus | None = None
        self._last_activity = clock()
        self._last_recorded: float | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def presence(self) -> Derived:
        return self._presence

    @property
    def manual_status(self) -> ManualStatus | None:
        return self._manual

    @property
    def state(self) -> PresenceState:
        """What is published: the manual status if set, else derived presence."""
        if self._manual is not None:
            return Manual(self._manual)
        return self._presence

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Publish Online and begin the heartbeat."""
        if self._running:
            return
        self._running = True
        self._last_activity = self._clock()
        self._presence = ONLINE
        await self.publish(ONLINE)
        self._task = asyncio.create_task(self._heartbeat_loop())
        logger.info("Presence tracking started", extra={"context": {"user_id": self._session.user_id}})

    async def stop(self) -> None:
        """Stop the heartbeat and publish Offline."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._presence = OFFLINE
        await self.publish(OFFLINE, force=True)
        logger.info("Presence tracking stopped", extra={"context": {"user_id": self._session.user_id}})

    async def handle_event(self, event_type: str, visible: bool = True) -> bool:
        """Feed a UI input event; returns True if it counted as activity."""
        if event_type == VISIBILITY_EVENT:
            if not visible:
                return False
        elif event_type not in ACTIVITY_EVENTS:
            return False

        now = self._clock()
        if (
            self._last_recorded is not None
            and now - self._last_recorded < self._config.activity_throttle_seconds
        ):
            return False
        self._last_recorded = now
        await self.record_activity()
        return True

    async def record_activity(self) -> None:
        self._last_activity = self._clock()
        if self._running and self._presence == AWAY:
            self._presence = ONLINE
            logger.debug("Activity after idle, back online")
            await self.publish(ONLINE)

    async def check_idle(self) -> Derived:
        """Move Online to Away once the idle timeout has passed."""
        idle_for = self._clock() - self._last_activity
        if self._presence == ONLINE and idle_for >= self._config.away_timeout_seconds:
            self._presence = AWAY
            logger.debug("Idle for %.0fs, marking away", idle_for)
            await self.publish(AWAY)
        return self._presence

    async def heartbeat(self) -> None:
        await self.check_idle()
        if self._presence == ONLINE:
            await self.publish(ONLINE)

    async def _heartbeat_loop(self) -> None:
        while self._running:
            await self._sleep(self._config.heartbeat_seconds)
            try:
                await self.heartbeat()
            except Exception as e:
                logger.error("Presence heartbeat failed: %s", e, exc_info=True)

    async def set_manual_status(self, status: ManualStatus | None) -> None:
        """Pin a manual status, or clear it with ``None``."""
        self._manual = status
        await self.publish(self._presence)

    async def publish(self, state: PresenceState, force: bool = False) -> None:
        """Write last_seen and a status string for the user.

        A manual status replaces derived states unless ``force`` is set.
        Never raises.
        """
        if self._manual is not None and isinstance(state, Derived) and not force:
            state = Manual(self._manual)
        status = stored_status(state)

        try:
            await self._storage.touch_profile(self._session.user_id)
        except Exception as e:
            logger.warning("Failed to update profile last_seen: %s", e)

        try:
            await self._storage.update_member_status(self._session.user_id, status)
        except Exception as e:
            # The user may have no membership rows yet
            logger.debug("Membership presence update skipped: %s", e)
