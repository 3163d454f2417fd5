"""Substring search over users and post captions."""
from __future__ import annotations

import logging

from snapgram.core.errors import UpstreamFailureError, ValidationFailedError
from snapgram.core.settings import settings
from snapgram.repositories.base import RelationStore, StoreError
from snapgram.schemas.post import PostOut
from snapgram.schemas.search import SearchPostOut, SearchResponse, SearchType
from snapgram.schemas.user import UserOut, UserStatsOut

__all__ = ["search"]

logger = logging.getLogger(__name__)


def search(
    store: RelationStore,
    query: str | None,
    kind: SearchType = "all",
    limit: int = 10,
    offset: int = 0,
) -> SearchResponse:
    """Search users by display name and posts by caption.

    Matching is a case-insensitive substring match. Users are ordered by
    post count, most active first; posts newest first. A blank query returns
    an empty result without touching the store. ``limit`` is capped at
    ``settings.search_max_limit``.

    Raises:
        ValidationFailedError: For a non-positive limit or negative offset.
        UpstreamFailureError: If the store fails.
    """
    needle = (query or "").strip()
    if not needle:
        return SearchResponse()
    if limit < 1 or offset < 0:
        raise ValidationFailedError("Invalid pagination parameters.")
    limit = min(limit, settings.search_max_limit)

    response = SearchResponse()
    try:
        if kind in ("users", "all"):
            users = store.search_users(needle, limit, offset)
            response.users = [UserStatsOut.from_stats(stats) for stats in users.users]
            response.users_count = users.total_count

        if kind in ("posts", "all"):
            posts = store.search_posts(needle, limit, offset)
            post_ids = [post.id for post in posts.posts]
            authors = {
                user.id: user
                for user in store.users_by_ids({post.author_id for post in posts.posts})
            }
            counts = store.post_counts(post_ids)
            response.posts = [
                SearchPostOut(
                    **PostOut.fields_from(post, counts.get(post.id)),
                    user=UserOut.from_record(authors.get(post.author_id)),
                )
                for post in posts.posts
            ]
            response.posts_count = posts.total_count
    except StoreError as exc:
        logger.error("Search failed: query=%r kind=%s", needle, kind, exc_info=True)
        raise UpstreamFailureError("Search failed.") from exc

    return response
