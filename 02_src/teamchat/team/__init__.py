"""Team membership."""

from .membership import (
    TeamContext,
    invite_member,
    is_owner_entry,
    link_member_on_auth,
    load_roster,
    resolve_team_context,
)

__all__ = [
    "TeamContext",
    "invite_member",
    "is_owner_entry",
    "link_member_on_auth",
    "load_roster",
    "resolve_team_context",
]
