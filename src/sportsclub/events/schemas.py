"""Response schemas for event endpoints."""

from __future__ import annotations

from datetime import datetime

from sportsclub.schemas import CamelModel


class UploaderSummary(CamelModel):
    id: int
    name: str


class EventResponse(CamelModel):
    id: int
    title: str
    sport_name: str
    date: datetime
    place: str
    rules: str
    poster: str | None = None
    prizes: dict[str, str]
    view_count: int
    uploaded_by: UploaderSummary | None = None
    created_at: datetime | None = None


class ViewCountResponse(CamelModel):
    view_count: int
