"""Service-level helpers for creating, deleting and listing comments."""
from __future__ import annotations

import logging

from snapgram.core.errors import (
    ForbiddenError,
    NotFoundError,
    UpstreamFailureError,
    ValidationFailedError,
)
from snapgram.core.security import Identity
from snapgram.core.settings import settings
from snapgram.repositories.base import RelationStore, StoreError
from snapgram.schemas.comment import CommentOut, CommentThreadResponse
from snapgram.services.thread_builder import build_thread
from snapgram.services.user_service import ensure_user

__all__ = ["create_comment", "delete_comment", "list_thread"]

logger = logging.getLogger(__name__)


def _clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationFailedError("Comment content is required.")
    limit = settings.comment_max_length
    if limit is not None and len(text) > limit:
        raise ValidationFailedError(f"Comment must be at most {limit} characters.")
    return text


def create_comment(
    store: RelationStore,
    *,
    actor: Identity,
    post_id: int,
    content: str | None,
    parent_id: int | None = None,
) -> CommentOut:
    """Store a root comment or a reply to a root comment.

    Args:
        store: Relation store to write to.
        actor: Authenticated author.
        post_id: Post being commented on.
        content: Raw comment text; surrounding whitespace is removed.
        parent_id: Root comment being replied to, if any.

    Returns:
        The stored comment joined with its author.

    Raises:
        ValidationFailedError: For empty content, content over a configured
            ``COMMENT_MAX_LENGTH``, or a parent that belongs to another post
            or is itself a reply.
        NotFoundError: If the post or the parent comment does not exist.
        UpstreamFailureError: If the store fails.
    """
    text = _clean_content(content)
    author = ensure_user(store, actor)

    try:
        if store.get_post(post_id) is None:
            raise NotFoundError("Post not found.")
        if parent_id is not None:
            parent = store.get_comment(parent_id)
            if parent is None:
                raise NotFoundError("Parent comment not found.")
            if parent.post_id != post_id:
                raise ValidationFailedError("Parent comment belongs to a different post.")
            if parent.parent_id is not None:
                raise ValidationFailedError("Replies can only be added to root comments.")
        record = store.create_comment(post_id, author.id, text, parent_id=parent_id)
    except StoreError as exc:
        logger.error(
            "Failed to create comment: post=%s author=%s parent=%s",
            post_id, author.id, parent_id, exc_info=True,
        )
        raise UpstreamFailureError("Failed to create comment.") from exc

    logger.debug("Created comment %s on post %s", record.id, post_id)
    return CommentOut.from_record(record, author)


def delete_comment(store: RelationStore, *, actor: Identity, comment_id: int) -> int:
    """Delete a comment owned by ``actor`` together with its replies.

    Returns:
        Number of comments removed.

    Raises:
        NotFoundError: If the comment does not exist.
        ForbiddenError: If ``actor`` is not the comment's author.
        UpstreamFailureError: If the store fails.
    """
    try:
        comment = store.get_comment(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found.")
        user = store.get_user_by_identity(actor.external_id)
        if user is None or user.id != comment.author_id:
            raise ForbiddenError("You can only delete your own comments.")
        removed = store.delete_comment(comment_id)
    except StoreError as exc:
        logger.error("Failed to delete comment %s", comment_id, exc_info=True)
        raise UpstreamFailureError("Failed to delete comment.") from exc

    logger.debug("Deleted comment %s (%d rows)", comment_id, removed)
    return removed


def list_thread(store: RelationStore, post_id: int) -> CommentThreadResponse:
    """Return the threaded comments of ``post_id``.

    ``total_count`` counts every comment, ``root_count`` only root comments.
    """
    try:
        records = store.comments_for_post(post_id)
        authors = {
            user.id: user
            for user in store.users_by_ids({record.author_id for record in records})
        }
    except StoreError as exc:
        logger.error("Failed to fetch comments for post %s", post_id, exc_info=True)
        raise UpstreamFailureError("Failed to fetch comments.") from exc

    comments = [CommentOut.from_record(record, authors.get(record.author_id)) for record in records]
    roots = build_thread(comments)
    return CommentThreadResponse(
        data=roots,
        total_count=len(comments),
        root_count=len(roots),
    )
