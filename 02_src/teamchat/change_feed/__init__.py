"""ChangeFeed module."""

from .change_feed import ChangeFeed, ChangeHandler, IChangeFeed, Subscription
from .resilient import ResilientSubscription

__all__ = [
    "ChangeFeed",
    "ChangeHandler",
    "IChangeFeed",
    "ResilientSubscription",
    "Subscription",
]
