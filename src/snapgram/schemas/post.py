"""Post and feed Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from snapgram.repositories.records import PostCounts, PostRecord
from snapgram.schemas.comment import CommentOut
from snapgram.schemas.user import UserOut


class PostOut(BaseModel):
    """Post fields plus derived like and comment counts."""

    post_id: int
    user_id: int
    image_url: str
    caption: str | None = None
    created_at: datetime
    likes_count: int = 0
    comments_count: int = 0

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def fields_from(cls, record: PostRecord, counts: PostCounts | None = None) -> dict[str, object]:
        """Return the post fields of ``record`` as keyword arguments."""
        counts = counts or PostCounts()
        return {
            "post_id": record.id,
            "user_id": record.author_id,
            "image_url": record.image_url,
            "caption": record.caption,
            "created_at": record.created_at,
            "likes_count": counts.likes_count,
            "comments_count": counts.comments_count,
        }


class FeedItem(PostOut):
    """One post enriched with author, comment previews and viewer flags."""

    user: UserOut | None = None
    comments: list[CommentOut] = Field(default_factory=list)
    is_liked: bool = Field(False, alias="isLiked")
    is_bookmarked: bool = Field(False, alias="isBookmarked")


class FeedResponse(BaseModel):
    """Response schema for ``GET /posts``."""

    data: list[FeedItem] = Field(default_factory=list)
    count: int = 0
    has_more: bool = Field(False, alias="hasMore")

    model_config = ConfigDict(populate_by_name=True)


class BookmarkedFeedResponse(FeedResponse):
    """Response schema for ``GET /bookmarks``."""

    success: bool = True


class CreatePostResponse(BaseModel):
    """Response returned after a post is created."""

    success: bool = True
    post: PostOut
