"""Two-level comment threading.

Comments of a post arrive as a flat list; the reply-to-reply limit is enforced
when comments are written, so every reply's parent is a root comment. Roots
are shown newest conversation first, replies in reading order.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from snapgram.schemas.comment import CommentOut, RootCommentOut

__all__ = ["build_thread", "flatten_thread"]

_THREAD_FIELDS = {"replies", "replies_count"}


def _chronological_key(comment: CommentOut) -> tuple[object, int]:
    # id breaks timestamp ties so output never depends on input order.
    return (comment.created_at, comment.id)


def _plain(comment: CommentOut) -> CommentOut:
    return CommentOut(**comment.model_dump(exclude=_THREAD_FIELDS))


def build_thread(comments: Iterable[CommentOut]) -> list[RootCommentOut]:
    """Arrange a post's comments into root comments with nested replies.

    Roots are ordered by ``created_at`` descending and each root's replies by
    ``created_at`` ascending. Replies whose parent is not among the roots are
    dropped. The input is not modified.

    Args:
        comments: Flat, unordered comments of a single post.

    Returns:
        Root comments with ``replies`` and ``replies_count`` populated.
    """
    roots: list[CommentOut] = []
    replies_by_parent: dict[int, list[CommentOut]] = defaultdict(list)

    for comment in comments:
        if comment.parent_id is None:
            roots.append(comment)
        else:
            replies_by_parent[comment.parent_id].append(comment)

    roots.sort(key=_chronological_key, reverse=True)

    threaded: list[RootCommentOut] = []
    for root in roots:
        replies = sorted(replies_by_parent.get(root.id, []), key=_chronological_key)
        threaded.append(
            RootCommentOut(
                **root.model_dump(exclude=_THREAD_FIELDS),
                replies=[_plain(reply) for reply in replies],
                replies_count=len(replies),
            )
        )
    return threaded


def flatten_thread(roots: Iterable[RootCommentOut]) -> list[CommentOut]:
    """Return the comments of a thread as a flat list, each root before its replies."""
    flat: list[CommentOut] = []
    for root in roots:
        flat.append(_plain(root))
        flat.extend(_plain(reply) for reply in root.replies)
    return flat
