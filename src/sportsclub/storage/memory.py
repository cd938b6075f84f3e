"""In-memory stores for development and tests.

State lives in process-wide dictionaries guarded by a lock. Each mutating
method does its check and its write while holding the lock and never awaits in
between, so like/unlike and view tracking are atomic per item.
"""

from __future__ import annotations

import itertools
import threading
from datetime import datetime, timezone

from sportsclub.db.models import Account, Event, Post
from sportsclub.errors import AlreadyExists
from sportsclub.storage.base import LikeDirection, LikeResult, Stores


def _newest_first(item: Post | Event) -> tuple[datetime, int]:
    created = item.created_at or datetime.min.replace(tzinfo=timezone.utc)
    return created, item.id


class MemoryAccountStore:
    def __init__(self) -> None:
        self._accounts: dict[int, Account] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def find_by_email(self, email: str) -> Account | None:
        wanted = email.strip().lower()
        with self._lock:
            return next((a for a in self._accounts.values() if a.email.lower() == wanted), None)

    async def find_by_id(self, account_id: int) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    async def find_many(self, account_ids: set[int]) -> dict[int, Account]:
        with self._lock:
            return {i: self._accounts[i] for i in account_ids if i in self._accounts}

    async def save(self, account: Account) -> Account:
        with self._lock:
            email = account.email.lower()
            for other in self._accounts.values():
                if other.email.lower() == email and other.id != account.id:
                    raise AlreadyExists
            if account.id is None:
                account.id = next(self._ids)
            self._accounts[account.id] = account
            return account


class MemoryPostStore:
    def __init__(self) -> None:
        self._posts: dict[int, Post] = {}
        self._likers: dict[int, set[int]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def create(self, post: Post) -> Post:
        with self._lock:
            post.id = next(self._ids)
            post.like_count = 0
            self._posts[post.id] = post
            self._likers[post.id] = set()
            return post

    async def find_by_id(self, post_id: int) -> Post | None:
        with self._lock:
            return self._posts.get(post_id)

    async def list_posts(
        self,
        owner_id: int | None = None,
        media_prefix: str | None = None,
    ) -> list[Post]:
        with self._lock:
            posts = [
                p
                for p in self._posts.values()
                if (owner_id is None or p.user_id == owner_id)
                and (media_prefix is None or p.media_type.startswith(media_prefix))
            ]
        return sorted(posts, key=_newest_first, reverse=True)

    async def liked_by(self, post_ids: list[int]) -> dict[int, set[int]]:
        with self._lock:
            return {pid: set(self._likers.get(pid, ())) for pid in post_ids}

    async def toggle_like(
        self,
        post_id: int,
        account_id: int,
        direction: LikeDirection,
    ) -> LikeResult | None:
        with self._lock:
            post = self._posts[post_id]
            likers = self._likers[post_id]
            if direction is LikeDirection.LIKE:
                if account_id in likers:
                    return None
                likers.add(account_id)
                post.like_count += 1
            else:
                if account_id not in likers:
                    return None
                likers.discard(account_id)
                post.like_count -= 1
            return LikeResult(like_count=post.like_count, liked=direction is LikeDirection.LIKE)

    async def owner_stats(self, owner_id: int) -> tuple[int, int]:
        with self._lock:
            owned = [p for p in self._posts.values() if p.user_id == owner_id]
            return len(owned), sum(p.like_count for p in owned)


class MemoryEventStore:
    def __init__(self) -> None:
        self._events: dict[int, Event] = {}
        self._viewers: dict[int, set[int]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    async def create(self, event: Event) -> Event:
        with self._lock:
            event.id = next(self._ids)
            event.view_count = 0
            self._events[event.id] = event
            self._viewers[event.id] = set()
            return event

    async def find_by_id(self, event_id: int) -> Event | None:
        with self._lock:
            return self._events.get(event_id)

    async def list_events(self, owner_id: int | None = None) -> list[Event]:
        with self._lock:
            events = [e for e in self._events.values() if owner_id is None or e.uploaded_by == owner_id]
        return sorted(events, key=_newest_first, reverse=True)

    async def record_view(self, event_id: int, account_id: int) -> int:
        with self._lock:
            event = self._events[event_id]
            viewers = self._viewers[event_id]
            if account_id not in viewers:
                viewers.add(account_id)
                event.view_count += 1
            return event.view_count

    async def count_by_owner(self, owner_id: int) -> int:
        with self._lock:
            return sum(1 for e in self._events.values() if e.uploaded_by == owner_id)


# Module-level singleton
_memory_stores: Stores | None = None


def get_memory_stores() -> Stores:
    """Get or create the process-wide in-memory stores."""
    global _memory_stores  # noqa: PLW0603
    if _memory_stores is None:
        _memory_stores = Stores(
            accounts=MemoryAccountStore(),
            posts=MemoryPostStore(),
            events=MemoryEventStore(),
        )
    return _memory_stores


def reset_memory_stores() -> None:
    """Drop all in-memory state (for testing)."""
    global _memory_stores  # noqa: PLW0603
    _memory_stores = None
