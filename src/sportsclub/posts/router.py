"""Posts router: media upload, feeds and likes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, UploadFile

from sportsclub.auth.dependencies import get_current_account
from sportsclub.db.models import Account
from sportsclub.dependencies import get_stores
from sportsclub.errors import InvalidUpload
from sportsclub.media.storage import LocalMediaStorage, get_media_storage
from sportsclub.posts.engagement import EngagementCounter
from sportsclub.posts.schemas import LikeResponse, OwnerSummary, PostResponse
from sportsclub.posts.service import PostView, create_post, post_feed
from sportsclub.storage import Stores

router = APIRouter(prefix="/api/posts", tags=["Posts"])


def _post_response(view: PostView) -> PostResponse:
    post, owner = view.post, view.owner
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        owner=(
            OwnerSummary(
                id=owner.id,
                name=owner.name,
                email=owner.email,
                profile_picture_url=owner.profile_picture_url,
            )
            if owner is not None
            else None
        ),
        media_url=post.media_url,
        title=post.title,
        media_type=post.media_type,
        likes=post.like_count,
        liked_by=view.liked_by,
        created_at=post.created_at,
    )


@router.post("", response_model=PostResponse)
async def upload_post(
    media: UploadFile | None = File(None),
    title: str | None = Form(None),
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
    storage: LocalMediaStorage = Depends(get_media_storage),
) -> PostResponse:
    """Upload an image or video as a new post."""
    if media is None:
        raise InvalidUpload("Please upload a file")
    stored = await storage.save(media, field="media")
    view = await create_post(stores, account, stored, title)
    return _post_response(view)


@router.get("", response_model=list[PostResponse])
async def list_posts(stores: Stores = Depends(get_stores)) -> list[PostResponse]:
    """All posts, newest first."""
    return [_post_response(v) for v in await post_feed(stores)]


@router.get("/reels", response_model=list[PostResponse])
async def list_reels(stores: Stores = Depends(get_stores)) -> list[PostResponse]:
    """Video posts only, newest first."""
    return [_post_response(v) for v in await post_feed(stores, videos_only=True)]


@router.get("/user/{user_id}", response_model=list[PostResponse])
async def list_user_posts(user_id: int, stores: Stores = Depends(get_stores)) -> list[PostResponse]:
    """Posts uploaded by one account, newest first."""
    return [_post_response(v) for v in await post_feed(stores, owner_id=user_id)]


@router.put("/{post_id}/like", response_model=LikeResponse)
async def like_post(
    post_id: int,
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
) -> LikeResponse:
    result = await EngagementCounter(stores.posts).like(post_id, account.id)
    return LikeResponse(likes=result.like_count, liked=result.liked)


@router.put("/{post_id}/unlike", response_model=LikeResponse)
async def unlike_post(
    post_id: int,
    account: Account = Depends(get_current_account),
    stores: Stores = Depends(get_stores),
) -> LikeResponse:
    result = await EngagementCounter(stores.posts).unlike(post_id, account.id)
    return LikeResponse(likes=result.like_count, liked=result.liked)
