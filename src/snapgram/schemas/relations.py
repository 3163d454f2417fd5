"""Request and response schemas for the like, follow and bookmark toggles."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LikeRequest(BaseModel):
    """Body of ``POST``/``DELETE /likes``."""

    post_id: int


class LikeResponse(BaseModel):
    """Outcome of a like toggle."""

    success: bool = True
    liked: bool
    changed: bool = Field(
        True,
        description="False when the like already had the requested state",
    )


class FollowRequest(BaseModel):
    """Body of ``POST``/``DELETE /follows``."""

    following_id: int


class FollowResponse(BaseModel):
    """Outcome of a follow toggle."""

    success: bool = True
    is_following: bool = Field(..., alias="isFollowing")
    changed: bool = True

    model_config = ConfigDict(populate_by_name=True)


class BookmarkRequest(BaseModel):
    """Body of ``POST``/``DELETE /bookmarks``."""

    post_id: int


class BookmarkResponse(BaseModel):
    """Outcome of a bookmark toggle."""

    success: bool = True
    is_bookmarked: bool = Field(..., alias="isBookmarked")
    changed: bool = True

    model_config = ConfigDict(populate_by_name=True)
