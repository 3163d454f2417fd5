"""Post and feed endpoints for the Snapgram API."""

from fastapi import APIRouter, File, Form, Query, UploadFile

from snapgram.api.v1.dependencies import IdentityDep, StorageDep, StoreDep, ViewerDep
from snapgram.core.settings import settings
from snapgram.schemas.common import SuccessResponse
from snapgram.schemas.post import CreatePostResponse, FeedResponse
from snapgram.services import post_service
from snapgram.services.feed_aggregator import FeedAggregator

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=FeedResponse)
async def list_posts(
    store: StoreDep,
    viewer: ViewerDep,
    limit: int = Query(
        settings.feed_page_size,
        ge=1,
        le=settings.feed_max_page_size,
        description="Maximum number of posts to return",
    ),
    offset: int = Query(0, ge=0, description="Number of posts to skip"),
    author_id: int | None = Query(None, alias="authorId", description="Only this author's posts"),
) -> FeedResponse:
    """Return one page of the feed, newest first.

    Anonymous callers get the same page with every viewer flag set to false.
    """
    page = FeedAggregator(store).get_feed(
        viewer.id if viewer else None,
        author_id=author_id,
        limit=limit,
        offset=offset,
    )
    return FeedResponse(data=page.items, count=page.total_count, has_more=page.has_more)


@router.post("", response_model=CreatePostResponse)
async def create_post(
    store: StoreDep,
    storage: StorageDep,
    identity: IdentityDep,
    image: UploadFile | None = File(None, description="JPEG, PNG, WebP or GIF image"),
    caption: str | None = Form(None, description="Optional caption"),
) -> CreatePostResponse:
    """Upload an image and create a post for the caller."""
    # Read at most one byte past the size limit.
    data = await image.read(settings.image_max_bytes + 1) if image is not None else None
    post = post_service.create_post(
        store,
        storage,
        actor=identity,
        image=data,
        content_type=image.content_type if image is not None else None,
        caption=caption,
    )
    return CreatePostResponse(post=post)


@router.delete("/{post_id}", response_model=SuccessResponse)
async def delete_post(
    post_id: int,
    store: StoreDep,
    storage: StorageDep,
    identity: IdentityDep,
) -> SuccessResponse:
    """Delete one of the caller's posts with its comments, likes and bookmarks."""
    post_service.delete_post(store, storage, actor=identity, post_id=post_id)
    return SuccessResponse()
