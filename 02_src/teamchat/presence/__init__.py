"""Presence tracking."""

from .status import effective_presence, is_online
from .tracker import ACTIVITY_EVENTS, VISIBILITY_EVENT, IPresenceTracker, PresenceTracker

__all__ = [
    "ACTIVITY_EVENTS",
    "IPresenceTracker",
    "PresenceTracker",
    "VISIBILITY_EVENT",
    "effective_presence",
    "is_online",
]
