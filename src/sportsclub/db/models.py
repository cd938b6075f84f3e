"""ORM models.

The same mapped classes back both storage backends: the SQL stores persist
them through a session, the in-memory stores keep transient instances in
dictionaries. Column defaults only fire on INSERT, so constructors in service
code always pass counters and flags explicitly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from sportsclub.db.base import Base

# SQLite only auto-increments INTEGER PRIMARY KEY columns.
_Id = BigInteger().with_variant(Integer(), "sqlite")

DEFAULT_BIO = "Welcome to my profile!"
DEFAULT_AVATAR_URL = (
    "https://images.unsplash.com/photo-1522075469751-3a6694fb2f61"
    "?q=80&w=1780&auto=format&fit=crop"
)
DEFAULT_EVENT_TITLE = "Untitled Event"
DEFAULT_EVENT_RULES = "No rules specified"
PRIZE_PLACES = ("1st", "2nd", "3rd", "4th", "5th")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class Account(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)

    # --- Email verification ---
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    pending_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    code_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Profile ---
    bio: Mapped[str] = mapped_column(String(500), default=DEFAULT_BIO)
    profile_picture_url: Mapped[str] = mapped_column(Text, default=DEFAULT_AVATAR_URL)

    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class Post(Base):
    """Uploaded media item that accounts can like."""

    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(_Id, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(200), default="", server_default="")
    media_type: Mapped[str] = mapped_column(String(100), nullable=False)
    like_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PostLike(Base):
    """One row per (post, account) like. The primary key enforces uniqueness."""

    __tablename__ = "post_likes"

    post_id: Mapped[int] = mapped_column(_Id, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[int] = mapped_column(_Id, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Event(Base):
    """Sports competition announcement with a prize table and optional poster."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(_Id, primary_key=True, autoincrement=True)
    uploaded_by: Mapped[int] = mapped_column(_Id, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    sport_name: Mapped[str] = mapped_column(String(100), default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    place: Mapped[str] = mapped_column(String(200), default="")
    rules: Mapped[str] = mapped_column(Text, default=DEFAULT_EVENT_RULES)
    poster: Mapped[str | None] = mapped_column(Text, nullable=True)
    prizes: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    view_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class EventView(Base):
    """One row per (event, account) view."""

    __tablename__ = "event_views"

    event_id: Mapped[int] = mapped_column(_Id, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True)
    user_id: Mapped[int] = mapped_column(_Id, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
