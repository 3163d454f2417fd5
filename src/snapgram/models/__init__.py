# src/snapgram/models/__init__.py
"""SQLAlchemy models for the Snapgram application."""

from .comment import Comment
from .post import Post
from .relations import Bookmark, Follow, Like
from .user import User

__all__ = [
    "Bookmark",
    "Comment",
    "Follow",
    "Like",
    "Post",
    "User",
]
