"""Presence data models.

Presence is a tagged union: either derived from activity (``Derived``) or a
status the user picked by hand (``Manual``). Both end up in the same
``team_members.status`` text column, so the mapping to and from stored
strings lives here.
"""

from dataclasses import dataclass
from enum import Enum


class DerivedPresence(str, Enum):
    ONLINE = "Online"
    AWAY = "Away"
    OFFLINE = "Offline"


class ManualStatus(str, Enum):
    BUSY = "Busy"
    DO_NOT_DISTURB = "Do not disturb"
    BE_RIGHT_BACK = "Be right back"
    APPEAR_OFFLINE = "Appear offline"


# Online is stored as the membership lifecycle value
_DERIVED_TO_STORED = {
    DerivedPresence.ONLINE: "Active",
    DerivedPresence.AWAY: "Away",
    DerivedPresence.OFFLINE: "Offline",
}


@dataclass(frozen=True)
class Derived:
    presence: DerivedPresence

    @property
    def label(self) -> str:
        return self.presence.value


@dataclass(frozen=True)
class Manual:
    status: ManualStatus

    @property
    def label(self) -> str:
        return self.status.value


PresenceState = Derived | Manual


def stored_status(state: PresenceState) -> str:
    """String written to ``team_members.status`` for a presence state."""
    if isinstance(state, Manual):
        return state.status.value
    return _DERIVED_TO_STORED[state.presence]


def parse_manual_status(text: str | None) -> ManualStatus | None:
    """Return the manual status named by ``text``, if any."""
    if not text:
        return None
    try:
        return ManualStatus(text)
    except ValueError:
        return None
