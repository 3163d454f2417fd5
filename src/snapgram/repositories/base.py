"""Persistence interface used by the feed and interaction services.

``RelationStore`` is pure data access: it knows about tables, keys and
uniqueness, never about who may do what. Every method returns the typed
records from :mod:`snapgram.repositories.records` so services can be tested
against the in-memory implementation.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from snapgram.repositories.records import (
    BookmarkPage,
    CommentRecord,
    PostCounts,
    PostPage,
    PostRecord,
    UserRecord,
    UserSearchPage,
    UserStats,
)

__all__ = [
    "DuplicateRelationError",
    "RelationKind",
    "RelationStore",
    "StoreError",
]


class StoreError(RuntimeError):
    """Raised when the backing store fails.

    The message names the operation only; the driver error is chained as the
    cause and must not be forwarded to clients.
    """


class DuplicateRelationError(StoreError):
    """Raised when a relation insert hits its uniqueness constraint."""


class RelationKind(str, Enum):
    """Toggleable relations, each keyed by ``(actor_id, target_id)``.

    like: (user_id, post_id); follow: (follower_id, following_id);
    bookmark: (user_id, post_id).
    """

    LIKE = "like"
    FOLLOW = "follow"
    BOOKMARK = "bookmark"


class RelationStore(ABC):
    """Data access over users, posts, comments and the relation tables."""

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> UserRecord | None:
        """Return a user by internal id."""

    @abstractmethod
    def get_user_by_identity(self, external_id: str) -> UserRecord | None:
        """Return the user bound to an external identity id."""

    @abstractmethod
    def create_user(self, external_id: str, display_name: str) -> UserRecord:
        """Insert a user; returns the existing row if the identity is already bound."""

    @abstractmethod
    def users_by_ids(self, user_ids: Iterable[int]) -> list[UserRecord]:
        """Return all users whose id is in ``user_ids`` in a single lookup."""

    @abstractmethod
    def user_stats(self, user_id: int) -> UserStats | None:
        """Return a user with post and follow counts."""

    @abstractmethod
    def search_users(self, query: str, limit: int, offset: int) -> UserSearchPage:
        """Case-insensitive substring search on display name, most posts first."""

    # Posts

    @abstractmethod
    def page_of_posts(self, author_id: int | None, limit: int, offset: int) -> PostPage:
        """Return posts newest first, optionally filtered by author, with a total."""

    @abstractmethod
    def posts_by_ids(self, post_ids: Iterable[int]) -> list[PostRecord]:
        """Return all posts whose id is in ``post_ids`` in a single lookup."""

    @abstractmethod
    def get_post(self, post_id: int) -> PostRecord | None:
        """Return a post by id."""

    @abstractmethod
    def create_post(
        self,
        author_id: int,
        image_url: str,
        caption: str | None,
        created_at: datetime | None = None,
    ) -> PostRecord:
        """Insert a post."""

    @abstractmethod
    def delete_post(self, post_id: int) -> bool:
        """Delete a post after its likes, bookmarks and comments."""

    @abstractmethod
    def post_counts(self, post_ids: Iterable[int]) -> dict[int, PostCounts]:
        """Return like and comment counts for every post in ``post_ids``."""

    @abstractmethod
    def search_posts(self, query: str, limit: int, offset: int) -> PostPage:
        """Case-insensitive substring search on caption, newest first."""

    # Comments

    @abstractmethod
    def root_comments_for_posts(self, post_ids: Iterable[int]) -> list[CommentRecord]:
        """Return root comments of all ``post_ids``, newest first."""

    @abstractmethod
    def comments_for_post(self, post_id: int) -> list[CommentRecord]:
        """Return every comment (roots and replies) of one post."""

    @abstractmethod
    def get_comment(self, comment_id: int) -> CommentRecord | None:
        """Return a comment by id."""

    @abstractmethod
    def create_comment(
        self,
        post_id: int,
        author_id: int,
        content: str,
        parent_id: int | None = None,
        created_at: datetime | None = None,
    ) -> CommentRecord:
        """Insert a comment."""

    @abstractmethod
    def delete_comment(self, comment_id: int) -> int:
        """Delete a comment and its replies; returns the number of rows removed."""

    # Relations

    @abstractmethod
    def insert_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> None:
        """Insert a relation row.

        Raises:
            DuplicateRelationError: If the relation already exists.
        """

    @abstractmethod
    def delete_relation(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        """Delete a relation row; returns ``False`` when none existed."""

    @abstractmethod
    def relation_exists(self, kind: RelationKind, actor_id: int, target_id: int) -> bool:
        """Return whether the relation row exists."""

    @abstractmethod
    def related_target_ids(
        self,
        kind: RelationKind,
        actor_id: int,
        target_ids: Iterable[int],
    ) -> set[int]:
        """Return the subset of ``target_ids`` the actor holds ``kind`` on."""

    @abstractmethod
    def page_of_bookmarks(self, user_id: int, limit: int, offset: int) -> BookmarkPage:
        """Return a user's bookmarked post ids, most recently bookmarked first."""

    def liked_post_ids(self, user_id: int, post_ids: Iterable[int]) -> set[int]:
        """Return which of ``post_ids`` the user has liked."""
        return self.related_target_ids(RelationKind.LIKE, user_id, post_ids)

    def bookmarked_post_ids(self, user_id: int, post_ids: Iterable[int]) -> set[int]:
        """Return which of ``post_ids`` the user has bookmarked."""
        return self.related_target_ids(RelationKind.BOOKMARK, user_id, post_ids)
