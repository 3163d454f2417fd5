"""Tests for post creation and deletion."""
from __future__ import annotations

from pathlib import Path

import pytest

from snapgram.core.errors import (
    ForbiddenError,
    NotFoundError,
    UpstreamFailureError,
    ValidationFailedError,
)
from snapgram.repositories import RelationKind, StoreError
from snapgram.services import post_service
from snapgram.services.storage import StorageError


def _stored_path(storage, url: str) -> Path:
    return storage.root / url.removeprefix(f"{storage.base_url}/")


def test_create_post_stores_image(memory_store, media_storage, alice_identity, png_bytes) -> None:
    post = post_service.create_post(
        memory_store,
        media_storage,
        actor=alice_identity,
        image=png_bytes,
        content_type="image/png",
        caption="  sunset  ",
    )

    assert post.caption == "sunset"
    assert post.image_url.startswith("/media/")
    assert post.image_url.endswith(".png")
    assert _stored_path(media_storage, post.image_url).read_bytes() == png_bytes
    assert post.likes_count == 0


@pytest.mark.parametrize(
    ("image", "content_type", "caption"),
    [
        (None, "image/png", None),
        (b"data", "application/pdf", None),
        (b"x" * (5 * 1024 * 1024 + 1), "image/png", None),
        (b"data", "image/png", "c" * 2201),
    ],
)
def test_invalid_uploads_are_rejected(
    memory_store, media_storage, alice_identity, image, content_type, caption
) -> None:
    with pytest.raises(ValidationFailedError):
        post_service.create_post(
            memory_store,
            media_storage,
            actor=alice_identity,
            image=image,
            content_type=content_type,
            caption=caption,
        )
    assert memory_store.posts == {}


def test_store_failure_removes_uploaded_image(
    memory_store, media_storage, alice_identity, png_bytes, mocker
) -> None:
    mocker.patch.object(memory_store, "create_post", side_effect=StoreError("boom"))
    delete_spy = mocker.spy(media_storage, "delete")

    with pytest.raises(UpstreamFailureError):
        post_service.create_post(
            memory_store,
            media_storage,
            actor=alice_identity,
            image=png_bytes,
            content_type="image/png",
        )

    assert delete_spy.call_count == 1
    assert not any(path.is_file() for path in media_storage.root.rglob("*"))


def test_delete_post_cascades(
    memory_store, media_storage, alice_identity, bob_identity, png_bytes
) -> None:
    post = post_service.create_post(
        memory_store, media_storage, actor=alice_identity, image=png_bytes, content_type="image/png"
    )
    bob = memory_store.create_user(bob_identity.external_id, "Bob")
    memory_store.insert_relation(RelationKind.LIKE, bob.id, post.post_id)
    memory_store.insert_relation(RelationKind.BOOKMARK, bob.id, post.post_id)
    root = memory_store.create_comment(post.post_id, bob.id, "nice")
    memory_store.create_comment(post.post_id, bob.id, "reply", parent_id=root.id)

    post_service.delete_post(memory_store, media_storage, actor=alice_identity, post_id=post.post_id)

    assert memory_store.get_post(post.post_id) is None
    assert memory_store.comments_for_post(post.post_id) == []
    assert not memory_store.relation_exists(RelationKind.LIKE, bob.id, post.post_id)
    assert not memory_store.relation_exists(RelationKind.BOOKMARK, bob.id, post.post_id)
    assert not _stored_path(media_storage, post.image_url).exists()


def test_delete_post_requires_author(
    memory_store, media_storage, alice_identity, bob_identity, png_bytes
) -> None:
    post = post_service.create_post(
        memory_store, media_storage, actor=alice_identity, image=png_bytes, content_type="image/png"
    )

    with pytest.raises(ForbiddenError):
        post_service.delete_post(
            memory_store, media_storage, actor=bob_identity, post_id=post.post_id
        )
    with pytest.raises(NotFoundError):
        post_service.delete_post(memory_store, media_storage, actor=alice_identity, post_id=999)
    assert memory_store.get_post(post.post_id) is not None


def test_storage_failure_on_delete_is_not_fatal(
    memory_store, media_storage, alice_identity, png_bytes, mocker
) -> None:
    post = post_service.create_post(
        memory_store, media_storage, actor=alice_identity, image=png_bytes, content_type="image/png"
    )
    mocker.patch.object(media_storage, "delete", side_effect=StorageError("disk gone"))

    post_service.delete_post(memory_store, media_storage, actor=alice_identity, post_id=post.post_id)

    assert memory_store.get_post(post.post_id) is None
