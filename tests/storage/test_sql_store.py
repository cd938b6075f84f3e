"""Tests for the SQLAlchemy stores, run against SQLite (aiosqlite)."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from sportsclub.auth.otp import OtpManager
from sportsclub.auth.session import SessionIssuer
from sportsclub.database import close_db, get_session_factory, init_db
from sportsclub.db.models import Account, Event, Post
from sportsclub.errors import AlreadyExists, Expired
from sportsclub.storage import LikeDirection, Stores
from sportsclub.storage.sql import sql_stores
from tests.conftest import T0, FakeClock, RecordingDelivery


@pytest_asyncio.fixture
async def sql(tmp_path) -> AsyncGenerator[Stores, None]:
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'sportsclub.db'}", create_all=True)
    async with get_session_factory()() as session:
        yield sql_stores(session)
    await close_db()


async def _fresh_stores() -> tuple[AsyncSession, Stores]:
    session = get_session_factory()()
    return session, sql_stores(session)


def _account(email: str = "alice@example.com") -> Account:
    return Account(
        name="Alice",
        email=email,
        password_hash="x",
        email_verified=False,
        bio="",
        profile_picture_url="",
        created_at=T0,
        updated_at=T0,
    )


async def _post(stores: Stores, owner: Account, minutes: int = 0, media_type: str = "image/png") -> Post:
    post = Post(
        user_id=owner.id,
        media_url="/uploads/media-1.png",
        title="",
        media_type=media_type,
        like_count=0,
        created_at=T0 + timedelta(minutes=minutes),
    )
    return await stores.posts.create(post)


class TestSqlAccountStore:
    async def test_save_and_find(self, sql):
        account = await sql.accounts.save(_account())

        assert account.id is not None
        assert (await sql.accounts.find_by_email("ALICE@example.com")).id == account.id
        assert (await sql.accounts.find_by_id(account.id)).email == "alice@example.com"
        assert await sql.accounts.find_by_email("nobody@example.com") is None

    async def test_find_many(self, sql):
        a = await sql.accounts.save(_account("a@example.com"))
        b = await sql.accounts.save(_account("b@example.com"))

        found = await sql.accounts.find_many({a.id, b.id, 999})

        assert set(found) == {a.id, b.id}

    async def test_duplicate_email(self, sql):
        await sql.accounts.save(_account())
        session, other = await _fresh_stores()
        async with session:
            with pytest.raises(AlreadyExists):
                await other.accounts.save(_account())


class TestSqlPostStore:
    async def test_toggle_like(self, sql):
        owner = await sql.accounts.save(_account())
        post = await _post(sql, owner)

        liked = await sql.posts.toggle_like(post.id, 7, LikeDirection.LIKE)
        assert (liked.like_count, liked.liked) == (1, True)
        assert await sql.posts.toggle_like(post.id, 7, LikeDirection.LIKE) is None

        await sql.posts.toggle_like(post.id, 8, LikeDirection.LIKE)
        assert (await sql.posts.liked_by([post.id]))[post.id] == {7, 8}

        unliked = await sql.posts.toggle_like(post.id, 7, LikeDirection.UNLIKE)
        assert (unliked.like_count, unliked.liked) == (1, False)
        assert await sql.posts.toggle_like(post.id, 7, LikeDirection.UNLIKE) is None
        assert (await sql.posts.liked_by([post.id]))[post.id] == {8}

    async def test_likes_from_separate_sessions(self, sql):
        owner = await sql.accounts.save(_account())
        post = await _post(sql, owner)

        for account_id in range(1, 6):
            session, stores = await _fresh_stores()
            async with session:
                await stores.posts.toggle_like(post.id, account_id, LikeDirection.LIKE)

        session, stores = await _fresh_stores()
        async with session:
            assert (await stores.posts.find_by_id(post.id)).like_count == 5
            assert await stores.posts.owner_stats(owner.id) == (1, 5)

    async def test_concurrent_likes_across_sessions(self, sql):
        owner = await sql.accounts.save(_account())
        post = await _post(sql, owner)

        async def like(account_id: int):
            session, stores = await _fresh_stores()
            async with session:
                return await stores.posts.toggle_like(post.id, account_id, LikeDirection.LIKE)

        distinct = await asyncio.gather(*(like(account_id) for account_id in range(1, 6)))
        assert all(r is not None and r.liked for r in distinct)
        assert sorted(r.like_count for r in distinct) == [1, 2, 3, 4, 5]

        repeated = await asyncio.gather(*(like(42) for _ in range(4)))
        assert sum(r is not None for r in repeated) == 1

        session, stores = await _fresh_stores()
        async with session:
            assert (await stores.posts.find_by_id(post.id)).like_count == 6
            assert (await stores.posts.liked_by([post.id]))[post.id] == {1, 2, 3, 4, 5, 42}

    async def test_list_posts(self, sql):
        owner = await sql.accounts.save(_account())
        other = await sql.accounts.save(_account("b@example.com"))
        old = await _post(sql, owner, minutes=0)
        new = await _post(sql, other, minutes=5, media_type="video/mp4")

        assert [p.id for p in await sql.posts.list_posts()] == [new.id, old.id]
        assert [p.id for p in await sql.posts.list_posts(owner_id=owner.id)] == [old.id]
        assert [p.id for p in await sql.posts.list_posts(media_prefix="video/")] == [new.id]


class TestSqlEventStore:
    async def test_record_view_once_per_account(self, sql):
        owner = await sql.accounts.save(_account())
        event = await sql.events.create(
            Event(
                uploaded_by=owner.id,
                title="Derby",
                sport_name="Football",
                date=T0,
                place="Stadium",
                rules="",
                prizes={"1st": "Cup"},
                view_count=0,
                created_at=T0,
            )
        )

        assert await sql.events.record_view(event.id, 7) == 1
        assert await sql.events.record_view(event.id, 7) == 1
        assert await sql.events.record_view(event.id, 8) == 2
        assert await sql.events.count_by_owner(owner.id) == 1
        assert (await sql.events.list_events(owner_id=owner.id))[0].prizes == {"1st": "Cup"}


class TestOtpOverSql:
    async def test_verify_in_a_later_session(self, sql):
        clock = FakeClock()
        delivery = RecordingDelivery()
        manager = OtpManager(sql.accounts, delivery, SessionIssuer(sql.accounts), clock=clock)
        issued = await manager.issue(_account())

        clock.advance(minutes=9)
        session, stores = await _fresh_stores()
        async with session:
            later = OtpManager(stores.accounts, delivery, SessionIssuer(stores.accounts), clock=clock)
            await later.verify("alice@example.com", issued.code)

        session, stores = await _fresh_stores()
        async with session:
            account = await stores.accounts.find_by_email("alice@example.com")
            assert account.email_verified is True
            assert account.pending_code is None

    async def test_expiry_survives_round_trip(self, sql):
        clock = FakeClock()
        manager = OtpManager(sql.accounts, RecordingDelivery(), SessionIssuer(sql.accounts), clock=clock)
        issued = await manager.issue(_account())

        clock.advance(minutes=10, seconds=1)
        session, stores = await _fresh_stores()
        async with session:
            later = OtpManager(stores.accounts, RecordingDelivery(), SessionIssuer(stores.accounts), clock=clock)
            with pytest.raises(Expired):
                await later.verify("alice@example.com", issued.code)
