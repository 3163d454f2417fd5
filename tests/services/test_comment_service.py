"""Tests for comment creation, deletion and thread listing."""
from __future__ import annotations

import pytest

from snapgram.core.errors import ForbiddenError, NotFoundError, ValidationFailedError
from snapgram.core.security import Identity
from snapgram.core.settings import settings
from snapgram.services import comment_service


@pytest.fixture()
def post(memory_store, at):
    author = memory_store.create_user("user_author", "Author")
    return memory_store.create_post(author.id, "/media/p.png", "caption", created_at=at(0))


def test_create_root_comment_trims_content(memory_store, post, alice_identity: Identity) -> None:
    comment = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="  hello  "
    )

    assert comment.content == "hello"
    assert comment.parent_id is None
    assert comment.user is not None and comment.user.display_name == "Alice"


@pytest.mark.parametrize("content", ["", "   ", None])
def test_blank_content_is_rejected(memory_store, post, alice_identity, content) -> None:
    with pytest.raises(ValidationFailedError):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=post.id, content=content
        )


def test_long_content_is_accepted_by_default(memory_store, post, alice_identity) -> None:
    comment = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="x" * 1500
    )

    assert len(comment.content) == 1500


def test_configured_max_length_is_enforced(
    memory_store, post, alice_identity, monkeypatch
) -> None:
    monkeypatch.setattr(settings, "comment_max_length", 10)

    with pytest.raises(ValidationFailedError, match="at most 10 characters"):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=post.id, content="x" * 11
        )


def test_comment_on_missing_post(memory_store, alice_identity) -> None:
    with pytest.raises(NotFoundError):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=404, content="hi"
        )


def test_reply_to_root(memory_store, post, alice_identity, bob_identity) -> None:
    root = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="root"
    )
    reply = comment_service.create_comment(
        memory_store, actor=bob_identity, post_id=post.id, content="reply", parent_id=root.id
    )

    assert reply.parent_id == root.id


def test_reply_to_reply_is_rejected(memory_store, post, alice_identity, bob_identity) -> None:
    root = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="root"
    )
    reply = comment_service.create_comment(
        memory_store, actor=bob_identity, post_id=post.id, content="reply", parent_id=root.id
    )

    with pytest.raises(ValidationFailedError):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=post.id, content="deep", parent_id=reply.id
        )
    assert len(memory_store.comments_for_post(post.id)) == 2


def test_cross_post_parent_is_rejected(memory_store, post, alice_identity, at) -> None:
    other = memory_store.create_post(post.author_id, "/media/o.png", None, created_at=at(1))
    root = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=other.id, content="elsewhere"
    )

    with pytest.raises(ValidationFailedError):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=post.id, content="x", parent_id=root.id
        )


def test_missing_parent(memory_store, post, alice_identity) -> None:
    with pytest.raises(NotFoundError):
        comment_service.create_comment(
            memory_store, actor=alice_identity, post_id=post.id, content="x", parent_id=12345
        )


def test_delete_cascades_to_replies(memory_store, post, alice_identity, bob_identity) -> None:
    root = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="root"
    )
    comment_service.create_comment(
        memory_store, actor=bob_identity, post_id=post.id, content="reply", parent_id=root.id
    )

    removed = comment_service.delete_comment(memory_store, actor=alice_identity, comment_id=root.id)

    assert removed == 2
    assert memory_store.comments_for_post(post.id) == []


def test_delete_requires_ownership(memory_store, post, alice_identity, bob_identity) -> None:
    root = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="root"
    )

    with pytest.raises(ForbiddenError):
        comment_service.delete_comment(memory_store, actor=bob_identity, comment_id=root.id)
    with pytest.raises(NotFoundError):
        comment_service.delete_comment(memory_store, actor=alice_identity, comment_id=999)


def test_list_thread_counts(memory_store, post, alice_identity, bob_identity) -> None:
    first = comment_service.create_comment(
        memory_store, actor=alice_identity, post_id=post.id, content="first"
    )
    comment_service.create_comment(
        memory_store, actor=bob_identity, post_id=post.id, content="second"
    )
    comment_service.create_comment(
        memory_store, actor=bob_identity, post_id=post.id, content="reply", parent_id=first.id
    )

    thread = comment_service.list_thread(memory_store, post.id)

    assert thread.total_count == 3
    assert thread.root_count == 2
    by_id = {root.id: root for root in thread.data}
    assert by_id[first.id].replies_count == 1
    assert by_id[first.id].replies[0].user.display_name == "Bob"
