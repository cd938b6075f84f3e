"""
Event catalogue.

Events are sports competitions with a date, a place, free-text rules, an
optional poster and a prize table of five places. Missing form fields fall
back to defaults rather than failing the upload.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog

from sportsclub.auth.otp import utcnow
from sportsclub.db.models import (
    DEFAULT_EVENT_RULES,
    DEFAULT_EVENT_TITLE,
    PRIZE_PLACES,
    Account,
    Event,
)
from sportsclub.errors import NotFound

if TYPE_CHECKING:
    from sportsclub.storage import Stores

logger = structlog.get_logger()


@dataclass
class EventView:
    event: Event
    uploader: Account | None


def prize_table(prizes: Sequence[str | None]) -> dict[str, str]:
    """Map positional prizes onto the five places; missing places get ""."""
    padded = list(prizes[: len(PRIZE_PLACES)])
    padded += [None] * (len(PRIZE_PLACES) - len(padded))
    return {place: prize or "" for place, prize in zip(PRIZE_PLACES, padded)}


def parse_event_date(value: str | None, default: datetime | None = None) -> datetime | None:
    """
    Parse an ISO 8601 date or datetime. Blank means ``default``.

    Naive values are taken as UTC.

    Raises:
        ValueError: Not an ISO 8601 date.
    """
    if value is None or not value.strip():
        return default
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        msg = f"Invalid event date: {value!r}"
        raise ValueError(msg) from None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)


async def create_event(
    stores: Stores,
    uploader: Account,
    *,
    title: str | None = None,
    sport_name: str | None = None,
    date: datetime | None = None,
    place: str | None = None,
    rules: str | None = None,
    prizes: Sequence[str | None] = (),
    poster_url: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> EventView:
    """Store a new event. A missing ``date`` means the time of creation."""
    now = clock()
    event = Event(
        uploaded_by=uploader.id,
        title=title or DEFAULT_EVENT_TITLE,
        sport_name=sport_name or "",
        date=date or now,
        place=place or "",
        rules=rules or DEFAULT_EVENT_RULES,
        poster=poster_url,
        prizes=prize_table(prizes),
        view_count=0,
        created_at=now,
    )
    await stores.events.create(event)
    logger.info("event_created", event_id=event.id, account_id=uploader.id, has_poster=poster_url is not None)
    return EventView(event=event, uploader=uploader)


async def list_events(stores: Stores, owner_id: int | None = None) -> list[EventView]:
    events = await stores.events.list_events(owner_id=owner_id)
    uploaders = await stores.accounts.find_many({e.uploaded_by for e in events})
    return [EventView(event=e, uploader=uploaders.get(e.uploaded_by)) for e in events]


async def track_view(stores: Stores, event_id: int, account_id: int) -> int:
    """Count the account's first view of an event; return the view count."""
    if await stores.events.find_by_id(event_id) is None:
        raise NotFound("Event not found")
    return await stores.events.record_view(event_id, account_id)
