"""Service-level helpers for creating and deleting posts."""
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
from snapgram.schemas.post import PostOut
from snapgram.services.storage import ObjectStorage, StorageError
from snapgram.services.user_service import ensure_user

__all__ = ["create_post", "delete_post", "validate_upload"]

logger = logging.getLogger(__name__)


def validate_upload(image: bytes | None, content_type: str | None, caption: str | None) -> str | None:
    """Check an upload against the content limits and return the cleaned caption.

    Raises:
        ValidationFailedError: For a missing, oversized or mistyped image, or
            an oversized caption.
    """
    if not image:
        raise ValidationFailedError("Image file is required.")
    if content_type not in settings.image_allowed_types:
        raise ValidationFailedError("Invalid file type. Only JPEG, PNG, WebP and GIF are allowed.")
    if len(image) > settings.image_max_bytes:
        max_mb = settings.image_max_bytes // (1024 * 1024)
        raise ValidationFailedError(f"File size must be less than {max_mb}MB.")

    cleaned = (caption or "").strip() or None
    if cleaned is not None and len(cleaned) > settings.caption_max_length:
        raise ValidationFailedError(
            f"Caption must be at most {settings.caption_max_length} characters."
        )
    return cleaned


def create_post(
    store: RelationStore,
    storage: ObjectStorage,
    *,
    actor: Identity,
    image: bytes | None,
    content_type: str | None,
    caption: str | None = None,
) -> PostOut:
    """Validate and store an image post for ``actor``.

    The image is written first; if the post row cannot be stored the image is
    removed again.

    Raises:
        ValidationFailedError: If the upload breaks a content limit.
        UpstreamFailureError: If storage or the store fails.
    """
    cleaned_caption = validate_upload(image, content_type, caption)
    author = ensure_user(store, actor)

    try:
        image_url = storage.put(author.id, image, content_type)
    except StorageError as exc:
        logger.error("Failed to upload image for user %s", author.id, exc_info=True)
        raise UpstreamFailureError("Failed to upload image.") from exc

    try:
        record = store.create_post(author.id, image_url, cleaned_caption)
    except StoreError as exc:
        logger.error("Failed to create post for user %s", author.id, exc_info=True)
        try:
            storage.delete(image_url)
        except StorageError:
            logger.warning("Failed to remove orphaned image %s", image_url, exc_info=True)
        raise UpstreamFailureError("Failed to create post.") from exc

    logger.info("Created post %s for user %s", record.id, author.id)
    return PostOut(**PostOut.fields_from(record))


def delete_post(
    store: RelationStore,
    storage: ObjectStorage,
    *,
    actor: Identity,
    post_id: int,
) -> None:
    """Delete a post owned by ``actor`` with its comments, likes and bookmarks.

    A failure to remove the stored image is logged and does not fail the call.

    Raises:
        NotFoundError: If the post does not exist.
        ForbiddenError: If ``actor`` is not the post's author.
        UpstreamFailureError: If the store fails.
    """
    try:
        post = store.get_post(post_id)
        if post is None:
            raise NotFoundError("Post not found.")
        user = store.get_user_by_identity(actor.external_id)
        if user is None or user.id != post.author_id:
            raise ForbiddenError("You can only delete your own posts.")
        store.delete_post(post_id)
    except StoreError as exc:
        logger.error("Failed to delete post %s", post_id, exc_info=True)
        raise UpstreamFailureError("Failed to delete post.") from exc

    try:
        storage.delete(post.image_url)
    except StorageError:
        logger.warning("Failed to delete image for post %s", post_id, exc_info=True)
    logger.info("Deleted post %s", post_id)
