"""Persistence backends."""

from sportsclub.storage.base import (
    AccountStore,
    EventStore,
    LikeDirection,
    LikeResult,
    PostStore,
    Stores,
)

__all__ = [
    "AccountStore",
    "EventStore",
    "LikeDirection",
    "LikeResult",
    "PostStore",
    "Stores",
]
