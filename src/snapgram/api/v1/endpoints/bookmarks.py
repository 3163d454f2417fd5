"""Bookmark endpoints for the Snapgram API."""

from fastapi import APIRouter, Query

from snapgram.api.v1.dependencies import IdentityDep, StoreDep
from snapgram.core.settings import settings
from snapgram.repositories import RelationKind
from snapgram.schemas.post import BookmarkedFeedResponse
from snapgram.schemas.relations import BookmarkRequest, BookmarkResponse
from snapgram.services.feed_aggregator import FeedAggregator
from snapgram.services.interactions import InteractionToggler
from snapgram.services.user_service import resolve_viewer

router = APIRouter(prefix="/bookmarks", tags=["bookmarks"])


@router.get("", response_model=BookmarkedFeedResponse)
async def list_bookmarks(
    store: StoreDep,
    identity: IdentityDep,
    limit: int = Query(settings.bookmarks_page_size, ge=1, le=settings.feed_max_page_size),
    offset: int = Query(0, ge=0),
) -> BookmarkedFeedResponse:
    """Return the caller's bookmarked posts, most recently saved first."""
    viewer = resolve_viewer(store, identity)
    if viewer is None:
        return BookmarkedFeedResponse()
    page = FeedAggregator(store).get_bookmarked_feed(viewer.id, limit=limit, offset=offset)
    return BookmarkedFeedResponse(data=page.items, count=page.total_count, has_more=page.has_more)


@router.post("", response_model=BookmarkResponse)
async def bookmark_post(
    payload: BookmarkRequest, store: StoreDep, identity: IdentityDep
) -> BookmarkResponse:
    """Save a post to the caller's bookmarks."""
    result = InteractionToggler(store).add(RelationKind.BOOKMARK, identity, payload.post_id)
    return BookmarkResponse(is_bookmarked=result.new_state, changed=result.changed)


@router.delete("", response_model=BookmarkResponse)
async def unbookmark_post(
    payload: BookmarkRequest, store: StoreDep, identity: IdentityDep
) -> BookmarkResponse:
    """Remove a post from the caller's bookmarks."""
    result = InteractionToggler(store).remove(RelationKind.BOOKMARK, identity, payload.post_id)
    return BookmarkResponse(is_bookmarked=result.new_state, changed=result.changed)
