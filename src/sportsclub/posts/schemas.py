"""Response schemas for post endpoints."""

from __future__ import annotations

from datetime import datetime

from sportsclub.schemas import CamelModel


class OwnerSummary(CamelModel):
    id: int
    name: str
    email: str
    profile_picture_url: str


class PostResponse(CamelModel):
    id: int
    user_id: int
    owner: OwnerSummary | None = None
    media_url: str
    title: str
    media_type: str
    likes: int
    liked_by: list[int]
    created_at: datetime | None = None


class LikeResponse(CamelModel):
    likes: int
    liked: bool
