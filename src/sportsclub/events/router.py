"""Events router: /api/events/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from sportsclub.auth.dependencies import get_current_account
from sportsclub.db.models import Account
from sportsclub.dependencies import get_stores
from sportsclub.events.schemas import EventResponse, UploaderSummary, ViewCountResponse
from sportsclub.events.service import EventView, create_event, list_events, parse_event_date, track_view
from sportsclub.media.storage import LocalMediaStorage, get_media_storage
from sportsclub.storage import Stores

router = APIRouter(prefix="/api/events", tags=["Events"])


def _event_response(view: EventView) -> EventResponse:
    event, uploader = view.event, view.uploader
    return EventResponse(
        id=event.id,
        title=event.title,
        sport_name=event.sport_name,
        date=event.date,
        place=event.place,
        rules=event.rules,
        poster=event.poster,
        prizes=event.prizes,
        view_count=event.view_count,
        uploaded_by=UploaderSummary(id=uploader.id, name=uploader.name) if uploader is not None else None,
        created_at=event.created_at,
    )


@router.post("", response_model=EventResponse)
async def upload_event(
    title: str | None = Form(None),
    sport_name: str | None = Form(None, alias="sportName"),
    date: str | None = Form(None),
    place: str | None = Form(None),
    rules: str | None = Form(None),
    prize1: str | None = Form(None),
    prize2: str | None = Form(None),
    prize3: str | None = Form(None),
    prize4: str | None = Form(None),
    prize5: str | None = Form(None),
    event_image: UploadFile | None = File(None, alias="eventImage"),
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
    storage: LocalMediaStorage = Depends(get_media_storage),
) -> EventResponse:
    """Create an event; the poster image is optional."""
    try:
        event_date = parse_event_date(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    poster_url = None
    if event_image is not None and event_image.filename:
        poster_url = (await storage.save(event_image, field="eventImage")).url
    view = await create_event(
        stores,
        account,
        title=title,
        sport_name=sport_name,
        date=event_date,
        place=place,
        rules=rules,
        prizes=(prize1, prize2, prize3, prize4, prize5),
        poster_url=poster_url,
    )
    return _event_response(view)


@router.get("", response_model=list[EventResponse])
async def get_events(stores: Stores = Depends(get_stores)) -> list[EventResponse]:
    """All events, newest first."""
    return [_event_response(v) for v in await list_events(stores)]


@router.get("/user/{user_id}", response_model=list[EventResponse])
async def get_user_events(user_id: int, stores: Stores = Depends(get_stores)) -> list[EventResponse]:
    return [_event_response(v) for v in await list_events(stores, owner_id=user_id)]


@router.post("/view/{event_id}", response_model=ViewCountResponse)
async def view_event(
    event_id: int,
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
) -> ViewCountResponse:
    """Record that the caller viewed the event. Repeat views are not counted."""
    return ViewCountResponse(view_count=await track_view(stores, event_id, account.id))
