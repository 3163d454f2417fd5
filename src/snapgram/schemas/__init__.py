# src/snapgram/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import (
    CommentCreate,
    CommentDelete,
    CommentOut,
    CommentThreadResponse,
    CreateCommentResponse,
    RootCommentOut,
)
from .common import ErrorResponse, SuccessResponse
from .post import BookmarkedFeedResponse, CreatePostResponse, FeedItem, FeedResponse, PostOut
from .relations import (
    BookmarkRequest,
    BookmarkResponse,
    FollowRequest,
    FollowResponse,
    LikeRequest,
    LikeResponse,
)
from .search import SearchPostOut, SearchResponse, SearchType
from .user import ProfileResponse, UserOut, UserStatsOut

__all__ = [
    "BookmarkRequest", "BookmarkResponse", "BookmarkedFeedResponse",
    "CommentCreate", "CommentDelete", "CommentOut", "CommentThreadResponse",
    "CreateCommentResponse", "CreatePostResponse",
    "ErrorResponse",
    "FeedItem", "FeedResponse",
    "FollowRequest", "FollowResponse",
    "LikeRequest", "LikeResponse",
    "PostOut",
    "ProfileResponse",
    "RootCommentOut",
    "SearchPostOut", "SearchResponse", "SearchType",
    "SuccessResponse",
    "UserOut", "UserStatsOut",
]
