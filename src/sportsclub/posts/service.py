"""Post creation and feed assembly."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from sportsclub.auth.otp import utcnow
from sportsclub.db.models import Account, Post

if TYPE_CHECKING:
    from sportsclub.media.storage import StoredMedia
    from sportsclub.storage import Stores

logger = structlog.get_logger()

VIDEO_PREFIX = "video/"


@dataclass
class PostView:
    """A post with its owner and the ids of the accounts that liked it."""

    post: Post
    owner: Account | None
    liked_by: list[int] = field(default_factory=list)


async def create_post(
    stores: Stores,
    owner: Account,
    media: StoredMedia,
    title: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> PostView:
    post = Post(
        user_id=owner.id,
        media_url=media.url,
        title=title or "",
        media_type=media.media_type,
        like_count=0,
        created_at=clock(),
    )
    await stores.posts.create(post)
    logger.info("post_created", post_id=post.id, account_id=owner.id, media_type=post.media_type)
    return PostView(post=post, owner=owner)


async def post_feed(
    stores: Stores,
    *,
    owner_id: int | None = None,
    videos_only: bool = False,
) -> list[PostView]:
    """
    Newest-first feed.

    Args:
        owner_id: Only posts uploaded by this account.
        videos_only: Only video posts (the reel feed).
    """
    posts = await stores.posts.list_posts(
        owner_id=owner_id,
        media_prefix=VIDEO_PREFIX if videos_only else None,
    )
    if not posts:
        return []
    likers = await stores.posts.liked_by([p.id for p in posts])
    owners = await stores.accounts.find_many({p.user_id for p in posts})
    return [
        PostView(post=p, owner=owners.get(p.user_id), liked_by=sorted(likers.get(p.id, ())))
        for p in posts
    ]
