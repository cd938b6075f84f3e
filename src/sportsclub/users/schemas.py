"""Request/response schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from sportsclub.schemas import CamelModel


class ProfileUpdateRequest(CamelModel):
    """Partial profile update; omitted or empty fields are left unchanged."""

    name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=500)
    profile_picture_url: str | None = Field(None, max_length=2048)


class ProfileStatsResponse(CamelModel):
    posts: int
    likes: int
    events: int


class ProfileResponse(CamelModel):
    id: int
    name: str
    email: str
    is_email_verified: bool
    bio: str
    profile_picture_url: str
    created_at: datetime | None = None
    stats: ProfileStatsResponse | None = None
