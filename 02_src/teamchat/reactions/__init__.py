"""Reaction store adapter."""

from .store import ReactionStore, ReactionView, group_reactions

__all__ = ["ReactionStore", "ReactionView", "group_reactions"]
