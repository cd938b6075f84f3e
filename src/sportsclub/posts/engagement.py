"""
Like/unlike counters.

Each post keeps a like count and the set of accounts that liked it. The
store applies every change as one atomic step per post, so the count always
equals the number of likers and an account is never counted twice, however
many requests race on the same post.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from sportsclub.errors import AlreadyLiked, NotFound, NotLiked
from sportsclub.storage import LikeDirection, LikeResult

if TYPE_CHECKING:
    from sportsclub.storage import PostStore

logger = structlog.get_logger()


class EngagementCounter:
    def __init__(self, posts: PostStore) -> None:
        self._posts = posts

    async def like(self, post_id: int, account_id: int) -> LikeResult:
        """Raises NotFound or AlreadyLiked."""
        return await self._apply(post_id, account_id, LikeDirection.LIKE)

    async def unlike(self, post_id: int, account_id: int) -> LikeResult:
        """Raises NotFound or NotLiked."""
        return await self._apply(post_id, account_id, LikeDirection.UNLIKE)

    async def _apply(self, post_id: int, account_id: int, direction: LikeDirection) -> LikeResult:
        if await self._posts.find_by_id(post_id) is None:
            raise NotFound("Post not found")

        result = await self._posts.toggle_like(post_id, account_id, direction)
        if result is None:
            raise AlreadyLiked if direction is LikeDirection.LIKE else NotLiked

        logger.info(
            "post_like_changed",
            post_id=post_id,
            account_id=account_id,
            direction=direction.value,
            likes=result.like_count,
        )
        return result
