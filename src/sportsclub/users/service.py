"""Profile business logic."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from sportsclub.auth.otp import utcnow

if TYPE_CHECKING:
    from sportsclub.db.models import Account
    from sportsclub.storage import Stores

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProfileStats:
    posts: int
    likes: int
    events: int


async def profile_stats(stores: Stores, account_id: int) -> ProfileStats:
    """Post count, likes received across all posts, and events uploaded."""
    posts, likes = await stores.posts.owner_stats(account_id)
    events = await stores.events.count_by_owner(account_id)
    return ProfileStats(posts=posts, likes=likes, events=events)


async def update_profile(
    stores: Stores,
    account: Account,
    name: str | None = None,
    bio: str | None = None,
    profile_picture_url: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> Account:
    """Update profile fields. None and empty values leave a field unchanged."""
    changed = []
    if name and name.strip():
        account.name = name.strip()
        changed.append("name")
    if bio:
        account.bio = bio
        changed.append("bio")
    if profile_picture_url:
        account.profile_picture_url = profile_picture_url
        changed.append("profile_picture_url")

    if changed:
        account.updated_at = clock()
        await stores.accounts.save(account)
        logger.info("profile_updated", account_id=account.id, fields=changed)
    return account
