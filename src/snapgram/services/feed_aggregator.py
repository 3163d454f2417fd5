"""Batched assembly of feed pages.

A page is built from a fixed number of store calls regardless of its size:
the page query, one author lookup, one root-comment lookup, one lookup for
the comment authors, one aggregate-count query and, for a signed-in viewer,
two set-membership queries. Only the page query is allowed to fail the
request; every other join degrades to an empty value so a single missing row
never breaks pagination.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from snapgram.core.errors import UpstreamFailureError, ValidationFailedError
from snapgram.core.settings import settings
from snapgram.repositories.base import RelationStore, StoreError
from snapgram.repositories.records import CommentRecord, PostRecord, UserRecord
from snapgram.schemas.comment import CommentOut
from snapgram.schemas.post import FeedItem, PostOut
from snapgram.schemas.user import UserOut

__all__ = ["FeedAggregator", "FeedPage", "compute_has_more"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FeedPage:
    """One assembled page of feed items."""

    items: list[FeedItem] = field(default_factory=list)
    total_count: int = 0
    has_more: bool = False


def compute_has_more(offset: int, limit: int, total_count: int) -> bool:
    """Return whether rows remain after the page ``[offset, offset + limit)``."""
    return offset + limit < total_count


def _validate_page(limit: int, offset: int) -> None:
    if limit < 1:
        raise ValidationFailedError("limit must be at least 1.")
    if offset < 0:
        raise ValidationFailedError("offset must not be negative.")


class FeedAggregator:
    """Assemble feed items from a :class:`RelationStore` with batched joins."""

    def __init__(self, store: RelationStore, preview_count: int | None = None) -> None:
        self.store = store
        self.preview_count = (
            settings.comment_preview_count if preview_count is None else preview_count
        )

    def get_feed(
        self,
        viewer_id: int | None,
        author_id: int | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> FeedPage:
        """Return one page of posts, newest first.

        Args:
            viewer_id: Internal id of the viewing user, or ``None`` when anonymous.
            author_id: Restrict the feed to one author's posts.
            limit: Page size.
            offset: Number of posts to skip.

        Raises:
            ValidationFailedError: For a non-positive limit or negative offset.
            UpstreamFailureError: If the page itself cannot be read.
        """
        _validate_page(limit, offset)
        try:
            page = self.store.page_of_posts(author_id, limit, offset)
        except StoreError as exc:
            logger.error(
                "Failed to fetch posts page: author=%s limit=%s offset=%s",
                author_id, limit, offset, exc_info=True,
            )
            raise UpstreamFailureError("Failed to fetch posts.") from exc

        items = self._assemble(page.posts, viewer_id)
        return FeedPage(
            items=items,
            total_count=page.total_count,
            has_more=compute_has_more(offset, limit, page.total_count),
        )

    def get_bookmarked_feed(self, viewer_id: int, limit: int = 12, offset: int = 0) -> FeedPage:
        """Return the viewer's bookmarked posts, most recently bookmarked first."""
        _validate_page(limit, offset)
        try:
            bookmarks = self.store.page_of_bookmarks(viewer_id, limit, offset)
            posts = self.store.posts_by_ids(bookmarks.post_ids)
        except StoreError as exc:
            logger.error(
                "Failed to fetch bookmarks page: viewer=%s limit=%s offset=%s",
                viewer_id, limit, offset, exc_info=True,
            )
            raise UpstreamFailureError("Failed to fetch bookmarks.") from exc

        by_id = {post.id: post for post in posts}
        ordered = [by_id[post_id] for post_id in bookmarks.post_ids if post_id in by_id]
        items = self._assemble(ordered, viewer_id, assume_bookmarked=True)
        return FeedPage(
            items=items,
            total_count=bookmarks.total_count,
            has_more=compute_has_more(offset, limit, bookmarks.total_count),
        )

    def _degrade(self, operation: str, fetch: Callable[[], T], default: T) -> T:
        try:
            return fetch()
        except StoreError:
            logger.warning("Feed join %s failed; using empty result", operation, exc_info=True)
            return default

    def _users_by_id(self, operation: str, user_ids: set[int]) -> dict[int, UserRecord]:
        return self._degrade(
            operation,
            lambda: {user.id: user for user in self.store.users_by_ids(user_ids)},
            {},
        )

    def _comment_previews(self, post_ids: list[int]) -> dict[int, list[CommentOut]]:
        comments: list[CommentRecord] = self._degrade(
            "root_comments",
            lambda: self.store.root_comments_for_posts(post_ids),
            [],
        )

        grouped: dict[int, list[CommentRecord]] = defaultdict(list)
        for comment in sorted(comments, key=lambda c: (c.created_at, c.id), reverse=True):
            bucket = grouped[comment.post_id]
            if len(bucket) < self.preview_count:
                bucket.append(comment)

        kept_authors = {c.author_id for bucket in grouped.values() for c in bucket}
        authors = self._users_by_id("comment_authors", kept_authors) if kept_authors else {}
        return {
            post_id: [CommentOut.from_record(c, authors.get(c.author_id)) for c in bucket]
            for post_id, bucket in grouped.items()
        }

    def _assemble(
        self,
        posts: Sequence[PostRecord],
        viewer_id: int | None,
        assume_bookmarked: bool = False,
    ) -> list[FeedItem]:
        if not posts:
            return []

        post_ids = [post.id for post in posts]
        authors = self._users_by_id("authors", {post.author_id for post in posts})
        previews = self._comment_previews(post_ids)
        counts = self._degrade("post_counts", lambda: self.store.post_counts(post_ids), {})

        liked: set[int] = set()
        bookmarked: set[int] = set(post_ids) if assume_bookmarked else set()
        if viewer_id is not None:
            liked = self._degrade(
                "liked_post_ids", lambda: self.store.liked_post_ids(viewer_id, post_ids), set()
            )
            if not assume_bookmarked:
                bookmarked = self._degrade(
                    "bookmarked_post_ids",
                    lambda: self.store.bookmarked_post_ids(viewer_id, post_ids),
                    set(),
                )

        return [
            FeedItem(
                **PostOut.fields_from(post, counts.get(post.id)),
                user=UserOut.from_record(authors.get(post.author_id)),
                comments=previews.get(post.id, []),
                is_liked=post.id in liked,
                is_bookmarked=post.id in bookmarked,
            )
            for post in posts
        ]
