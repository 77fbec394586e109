"""Message channels."""

from .base import MessageChannel
from .compose import build_private_message, build_team_message, file_body, prepare_body
from .private import PrivateChannel, PrivateScope
from .team import TeamChannel, TeamScope

__all__ = [
    "MessageChannel",
    "PrivateChannel",
    "PrivateScope",
    "TeamChannel",
    "TeamScope",
    "build_private_message",
    "build_team_message",
    "file_body",
    "prepare_body",
]
