"""Profile lookup with follow counts and viewer relationship."""
from __future__ import annotations

import logging

from snapgram.core.errors import NotFoundError, UpstreamFailureError
from snapgram.repositories.base import RelationKind, RelationStore, StoreError
from snapgram.repositories.records import UserRecord
from snapgram.schemas.user import ProfileResponse, UserStatsOut

__all__ = ["get_profile", "lookup_user"]

logger = logging.getLogger(__name__)


def lookup_user(store: RelationStore, user_ref: str) -> UserRecord | None:
    """Resolve ``user_ref`` as an internal id first, then as an external identity id."""
    if user_ref.isdecimal():
        user = store.get_user(int(user_ref))
        if user is not None:
            return user
    return store.get_user_by_identity(user_ref)


def get_profile(store: RelationStore, user_ref: str, viewer: UserRecord | None) -> ProfileResponse:
    """Return profile stats for ``user_ref`` as seen by ``viewer``.

    Raises:
        NotFoundError: If no user matches ``user_ref``.
        UpstreamFailureError: If the store fails.
    """
    try:
        user = lookup_user(store, user_ref)
        if user is None:
            raise NotFoundError("User not found.")
        stats = store.user_stats(user.id)
        if stats is None:
            raise NotFoundError("User not found.")
        is_following = False
        if viewer is not None and viewer.id != user.id:
            is_following = store.relation_exists(RelationKind.FOLLOW, viewer.id, user.id)
    except StoreError as exc:
        logger.error("Failed to load profile %s", user_ref, exc_info=True)
        raise UpstreamFailureError("Failed to fetch user profile.") from exc

    return ProfileResponse(
        user=UserStatsOut.from_stats(stats),
        is_following=is_following,
        is_own_profile=viewer is not None and viewer.id == user.id,
    )
