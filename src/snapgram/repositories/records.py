"""Typed query results returned by relation stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class UserRecord:
    """User row as seen by the service layer."""

    id: int
    external_identity_id: str
    display_name: str
    created_at: datetime


@dataclass(frozen=True)
class PostRecord:
    """Post row without aggregates."""

    id: int
    author_id: int
    image_url: str
    caption: str | None
    created_at: datetime


@dataclass(frozen=True)
class CommentRecord:
    """Comment row; ``parent_id`` is ``None`` for root comments."""

    id: int
    post_id: int
    author_id: int
    parent_id: int | None
    content: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PostPage:
    """One page of posts plus the total for the same filter."""

    posts: list[PostRecord] = field(default_factory=list)
    total_count: int = 0


@dataclass(frozen=True)
class BookmarkPage:
    """Bookmarked post ids, most recently bookmarked first."""

    post_ids: list[int] = field(default_factory=list)
    total_count: int = 0


@dataclass(frozen=True)
class PostCounts:
    """Derived per-post aggregates."""

    likes_count: int = 0
    comments_count: int = 0


@dataclass(frozen=True)
class UserStats:
    """A user together with derived follow and post counts."""

    user: UserRecord
    posts_count: int = 0
    followers_count: int = 0
    following_count: int = 0


@dataclass(frozen=True)
class UserSearchPage:
    """One page of matching users plus the total match count."""

    users: list[UserStats] = field(default_factory=list)
    total_count: int = 0
