"""Store interfaces consumed by the service layer.

Two backends implement them: ``sportsclub.storage.sql`` (SQLAlchemy, one
session per request) and ``sportsclub.storage.memory`` (process-local, used in
development and tests).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

from sportsclub.db.models import Account, Event, Post


class LikeDirection(enum.Enum):
    LIKE = "like"
    UNLIKE = "unlike"


@dataclass(frozen=True)
class LikeResult:
    """Counter state after a like/unlike was applied."""

    like_count: int
    liked: bool


class AccountStore(Protocol):
    async def find_by_email(self, email: str) -> Account | None: ...

    async def find_by_id(self, account_id: int) -> Account | None: ...

    async def find_many(self, account_ids: set[int]) -> dict[int, Account]: ...

    async def save(self, account: Account) -> Account:
        """Insert or update every field of the account atomically.

        Raises ``AlreadyExists`` when the email collides with another account.
        """
        ...


class PostStore(Protocol):
    async def create(self, post: Post) -> Post: ...

    async def find_by_id(self, post_id: int) -> Post | None: ...

    async def list_posts(
        self,
        owner_id: int | None = None,
        media_prefix: str | None = None,
    ) -> list[Post]:
        """Newest first, optionally filtered by owner and media type prefix."""
        ...

    async def liked_by(self, post_ids: list[int]) -> dict[int, set[int]]: ...

    async def toggle_like(
        self,
        post_id: int,
        account_id: int,
        direction: LikeDirection,
    ) -> LikeResult | None:
        """Atomically add or remove a like and adjust the counter.

        Returns None when the post is already in the requested state
        (liked for LIKE, not liked for UNLIKE); nothing is changed then.
        """
        ...

    async def owner_stats(self, owner_id: int) -> tuple[int, int]:
        """Return (post count, likes received) for an owner."""
        ...


class EventStore(Protocol):
    async def create(self, event: Event) -> Event: ...

    async def find_by_id(self, event_id: int) -> Event | None: ...

    async def list_events(self, owner_id: int | None = None) -> list[Event]: ...

    async def record_view(self, event_id: int, account_id: int) -> int:
        """Count a first view by this account; return the resulting view count."""
        ...

    async def count_by_owner(self, owner_id: int) -> int: ...


@dataclass
class Stores:
    """Bundle of the stores a request works with."""

    accounts: AccountStore
    posts: PostStore
    events: EventStore
