"""SQLAlchemy-backed stores.

Each store wraps the request's ``AsyncSession`` and commits its own writes.
Like/unlike and view tracking rely on the composite primary keys of
``post_likes``/``event_views``: the INSERT (or DELETE) on the join table and
the counter UPDATE run in one transaction, so the counter always equals the
number of join rows.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from sportsclub.db.models import Account, Event, EventView, Post, PostLike
from sportsclub.errors import AlreadyExists, StoreError
from sportsclub.storage.base import LikeDirection, LikeResult, Stores

logger = structlog.get_logger()


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("store_operation_failed", operation=operation)
        raise StoreError(f"{operation} failed") from e


class SqlAccountStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> Account | None:
        """Fetch an account by email (case-insensitive)."""
        with _store_errors("find_account_by_email"):
            result = await self._session.execute(
                select(Account).where(func.lower(Account.email) == email.strip().lower())
            )
            return result.scalar_one_or_none()

    async def find_by_id(self, account_id: int) -> Account | None:
        with _store_errors("find_account_by_id"):
            return await self._session.get(Account, account_id)

    async def find_many(self, account_ids: set[int]) -> dict[int, Account]:
        if not account_ids:
            return {}
        with _store_errors("find_accounts"):
            result = await self._session.execute(select(Account).where(Account.id.in_(account_ids)))
            return {a.id: a for a in result.scalars().all()}

    async def save(self, account: Account) -> Account:
        with _store_errors("save_account"):
            self._session.add(account)
            try:
                await self._session.commit()
            except IntegrityError as e:
                await self._session.rollback()
                raise AlreadyExists from e
            return account


class SqlPostStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, post: Post) -> Post:
        with _store_errors("create_post"):
            self._session.add(post)
            await self._session.commit()
            return post

    async def find_by_id(self, post_id: int) -> Post | None:
        with _store_errors("find_post"):
            return await self._session.get(Post, post_id)

    async def list_posts(
        self,
        owner_id: int | None = None,
        media_prefix: str | None = None,
    ) -> list[Post]:
        stmt = select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        if owner_id is not None:
            stmt = stmt.where(Post.user_id == owner_id)
        if media_prefix is not None:
            stmt = stmt.where(Post.media_type.startswith(media_prefix))
        with _store_errors("list_posts"):
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

    async def liked_by(self, post_ids: list[int]) -> dict[int, set[int]]:
        likers: dict[int, set[int]] = {pid: set() for pid in post_ids}
        if not post_ids:
            return likers
        with _store_errors("list_post_likes"):
            result = await self._session.execute(
                select(PostLike.post_id, PostLike.user_id).where(PostLike.post_id.in_(post_ids))
            )
            for post_id, user_id in result.all():
                likers[post_id].add(user_id)
        return likers

    async def toggle_like(
        self,
        post_id: int,
        account_id: int,
        direction: LikeDirection,
    ) -> LikeResult | None:
        with _store_errors("toggle_like"):
            try:
                if direction is LikeDirection.LIKE:
                    await self._session.execute(
                        insert(PostLike).values(
                            post_id=post_id,
                            user_id=account_id,
                            created_at=datetime.now(timezone.utc),
                        )
                    )
                    delta = 1
                else:
                    removed = await self._session.execute(
                        delete(PostLike)
                        .where(PostLike.post_id == post_id)
                        .where(PostLike.user_id == account_id)
                    )
                    if removed.rowcount == 0:
                        await self._session.rollback()
                        return None
                    delta = -1
            except IntegrityError:
                # Primary key (post_id, user_id) already present
                await self._session.rollback()
                return None

            result = await self._session.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(like_count=Post.like_count + delta)
                .returning(Post.like_count)
                .execution_options(synchronize_session=False)
            )
            like_count = result.scalar_one()
            await self._session.commit()
        return LikeResult(like_count=like_count, liked=direction is LikeDirection.LIKE)

    async def owner_stats(self, owner_id: int) -> tuple[int, int]:
        with _store_errors("post_owner_stats"):
            result = await self._session.execute(
                select(func.count(Post.id), func.coalesce(func.sum(Post.like_count), 0)).where(
                    Post.user_id == owner_id
                )
            )
            count, likes = result.one()
        return int(count), int(likes)


class SqlEventStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, event: Event) -> Event:
        with _store_errors("create_event"):
            self._session.add(event)
            await self._session.commit()
            return event

    async def find_by_id(self, event_id: int) -> Event | None:
        with _store_errors("find_event"):
            return await self._session.get(Event, event_id)

    async def list_events(self, owner_id: int | None = None) -> list[Event]:
        stmt = select(Event).order_by(Event.created_at.desc(), Event.id.desc())
        if owner_id is not None:
            stmt = stmt.where(Event.uploaded_by == owner_id)
        with _store_errors("list_events"):
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

    async def record_view(self, event_id: int, account_id: int) -> int:
        with _store_errors("record_event_view"):
            try:
                await self._session.execute(
                    insert(EventView).values(
                        event_id=event_id,
                        user_id=account_id,
                        viewed_at=datetime.now(timezone.utc),
                    )
                )
            except IntegrityError:
                await self._session.rollback()
                result = await self._session.execute(select(Event.view_count).where(Event.id == event_id))
                return int(result.scalar_one())

            result = await self._session.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(view_count=Event.view_count + 1)
                .returning(Event.view_count)
                .execution_options(synchronize_session=False)
            )
            view_count = result.scalar_one()
            await self._session.commit()
        return int(view_count)

    async def count_by_owner(self, owner_id: int) -> int:
        with _store_errors("count_events"):
            result = await self._session.execute(
                select(func.count(Event.id)).where(Event.uploaded_by == owner_id)
            )
            return int(result.scalar_one())


def sql_stores(session: AsyncSession) -> Stores:
    """Build the SQL stores bound to one session."""
    return Stores(
        accounts=SqlAccountStore(session),
        posts=SqlPostStore(session),
        events=SqlEventStore(session),
    )
