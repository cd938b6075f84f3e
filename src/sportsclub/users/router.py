"""Profile router: all /api/profile/* endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile

from sportsclub.auth.dependencies import get_current_account
from sportsclub.db.models import Account
from sportsclub.dependencies import get_stores
from sportsclub.errors import InvalidUpload
from sportsclub.media.storage import LocalMediaStorage, get_media_storage
from sportsclub.storage import Stores
from sportsclub.users.schemas import ProfileResponse, ProfileStatsResponse, ProfileUpdateRequest
from sportsclub.users.service import ProfileStats, profile_stats, update_profile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/profile", tags=["Profile"])


def _profile_response(account: Account, stats: ProfileStats | None = None) -> ProfileResponse:
    return ProfileResponse(
        id=account.id,
        name=account.name,
        email=account.email,
        is_email_verified=account.email_verified,
        bio=account.bio,
        profile_picture_url=account.profile_picture_url,
        created_at=account.created_at,
        stats=(
            ProfileStatsResponse(posts=stats.posts, likes=stats.likes, events=stats.events)
            if stats is not None
            else None
        ),
    )


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
) -> ProfileResponse:
    """Get the caller's profile with post, like and event counts."""
    stats = await profile_stats(stores, account.id)
    return _profile_response(account, stats)


@router.put("", response_model=ProfileResponse)
async def update_me(
    body: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
) -> ProfileResponse:
    """Update name, bio or avatar URL."""
    account = await update_profile(
        stores,
        account,
        name=body.name,
        bio=body.bio,
        profile_picture_url=body.profile_picture_url,
    )
    return _profile_response(account)


@router.post("/picture", response_model=ProfileResponse)
async def upload_picture(
    request: Request,
    profile_picture: UploadFile | None = File(None, alias="profilePicture"),
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
    storage: LocalMediaStorage = Depends(get_media_storage),
) -> ProfileResponse:
    """Upload an avatar image; the profile stores its absolute URL."""
    if profile_picture is None:
        raise InvalidUpload("Please upload a file")
    stored = await storage.save(profile_picture, field="profilePicture")
    url = f"{str(request.base_url).rstrip('/')}{stored.url}"
    account = await update_profile(stores, account, profile_picture_url=url)
    return _profile_response(account)
