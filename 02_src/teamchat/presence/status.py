"""Presence classification for roster entries."""

from datetime import datetime, timedelta

from ..models import Derived, DerivedPresence, Manual, PresenceState, TeamMember, parse_manual_status
from ..models.rows import utcnow


def effective_presence(
    member: TeamMember,
    now: datetime | None = None,
    online_window_seconds: float = 120.0,
) -> PresenceState:
    """What a roster should show for a member.

    A manual status always wins. Otherwise the member is Offline once
    ``last_seen`` is older than the online window, and the stored status
    decides between Online and Away while it is fresh.
    """
    manual = parse_manual_status(member.status)
    if manual is not None:
        return Manual(manual)

    now = now or utcnow()
    if member.last_seen is None:
        return Derived(DerivedPresence.OFFLINE)
    if now - member.last_seen >= timedelta(seconds=online_window_seconds):
        return Derived(DerivedPresence.OFFLINE)

    if member.status == DerivedPresence.AWAY.value:
        return Derived(DerivedPresence.AWAY)
    if member.status == DerivedPresence.OFFLINE.value:
        return Derived(DerivedPresence.OFFLINE)
    return Derived(DerivedPresence.ONLINE)


def is_online(
    member: TeamMember,
    now: datetime | None = None,
    online_window_seconds: float = 120.0,
) -> bool:
    state = effective_presence(member, now, online_window_seconds)
    return isinstance(state, Derived) and state.presence == DerivedPresence.ONLINE
