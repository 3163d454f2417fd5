"""Tests for idempotent like, follow and bookmark toggles."""
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from snapgram.core.errors import NotFoundError, UpstreamFailureError, ValidationFailedError
from snapgram.core.security import Identity
from snapgram.models import Like
from snapgram.repositories import RelationKind, StoreError
from snapgram.services.interactions import InteractionToggler, ToggleResult


@pytest.fixture(params=["store", "memory_store"])
def any_store(request):
    """Run a test against both the SQL and the in-memory store."""
    return request.getfixturevalue(request.param)


@pytest.fixture()
def post(any_store, at):
    author = any_store.create_user("user_author", "Author")
    return any_store.create_post(author.id, "/media/p.png", "caption", created_at=at(0))


def test_like_twice_is_idempotent(any_store, post, alice_identity: Identity) -> None:
    toggler = InteractionToggler(any_store)

    first = toggler.add(RelationKind.LIKE, alice_identity, post.id)
    second = toggler.add(RelationKind.LIKE, alice_identity, post.id)

    assert first == ToggleResult(success=True, new_state=True, changed=True)
    assert second == ToggleResult(success=True, new_state=True, changed=False)
    assert any_store.post_counts([post.id])[post.id].likes_count == 1


def test_exactly_one_like_row(store, db_session, at, alice_identity: Identity) -> None:
    author = store.create_user("user_author", "Author")
    post = store.create_post(author.id, "/media/p.png", None, created_at=at(0))
    toggler = InteractionToggler(store)

    toggler.add(RelationKind.LIKE, alice_identity, post.id)
    toggler.add(RelationKind.LIKE, alice_identity, post.id)

    assert db_session.scalar(select(func.count(Like.id))) == 1


def test_add_creates_the_actor_on_first_use(any_store, post, alice_identity: Identity) -> None:
    assert any_store.get_user_by_identity(alice_identity.external_id) is None

    InteractionToggler(any_store).add(RelationKind.BOOKMARK, alice_identity, post.id)

    user = any_store.get_user_by_identity(alice_identity.external_id)
    assert user is not None
    assert user.display_name == "Alice"
    assert any_store.bookmarked_post_ids(user.id, [post.id]) == {post.id}


def test_remove_missing_relation_succeeds(any_store, post, alice_identity: Identity) -> None:
    toggler = InteractionToggler(any_store)

    result = toggler.remove(RelationKind.LIKE, alice_identity, post.id)
    assert result == ToggleResult(success=True, new_state=False, changed=False)

    toggler.add(RelationKind.LIKE, alice_identity, post.id)
    removed = toggler.remove(RelationKind.LIKE, alice_identity, post.id)
    assert removed == ToggleResult(success=True, new_state=False, changed=True)
    again = toggler.remove(RelationKind.LIKE, alice_identity, post.id)
    assert again.changed is False


def test_self_follow_is_rejected_without_a_row(any_store, alice_identity: Identity) -> None:
    alice = any_store.create_user(alice_identity.external_id, "Alice")

    with pytest.raises(ValidationFailedError) as excinfo:
        InteractionToggler(any_store).add(RelationKind.FOLLOW, alice_identity, alice.id)

    assert excinfo.value.status_code == 400
    assert any_store.relation_exists(RelationKind.FOLLOW, alice.id, alice.id) is False


def test_follow_and_unfollow(any_store, alice_identity: Identity) -> None:
    bob = any_store.create_user("user_bob", "Bob")
    toggler = InteractionToggler(any_store)

    assert toggler.add(RelationKind.FOLLOW, alice_identity, bob.id).changed is True
    alice = any_store.get_user_by_identity(alice_identity.external_id)
    assert any_store.relation_exists(RelationKind.FOLLOW, alice.id, bob.id)

    assert toggler.remove(RelationKind.FOLLOW, alice_identity, bob.id).changed is True
    assert not any_store.relation_exists(RelationKind.FOLLOW, alice.id, bob.id)


@pytest.mark.parametrize(
    ("kind", "message"),
    [
        (RelationKind.LIKE, "Post not found."),
        (RelationKind.BOOKMARK, "Post not found."),
        (RelationKind.FOLLOW, "User not found."),
    ],
)
def test_missing_target(any_store, alice_identity: Identity, kind, message) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        InteractionToggler(any_store).add(kind, alice_identity, 9999)
    assert excinfo.value.message == message


def test_store_failure_is_wrapped(memory_store, alice_identity: Identity, mocker) -> None:
    author = memory_store.create_user("user_author", "Author")
    post = memory_store.create_post(author.id, "/media/p.png", None)
    mocker.patch.object(
        memory_store, "insert_relation", side_effect=StoreError("constraint xyz violated")
    )

    with pytest.raises(UpstreamFailureError) as excinfo:
        InteractionToggler(memory_store).add(RelationKind.LIKE, alice_identity, post.id)

    assert excinfo.value.status_code == 500
    assert "xyz" not in excinfo.value.message


def test_remove_store_failure_is_wrapped(memory_store, alice_identity: Identity, mocker) -> None:
    memory_store.create_user(alice_identity.external_id, "Alice")
    mocker.patch.object(memory_store, "delete_relation", side_effect=StoreError("boom"))

    with pytest.raises(UpstreamFailureError):
        InteractionToggler(memory_store).remove(RelationKind.BOOKMARK, alice_identity, 1)
