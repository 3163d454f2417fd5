"""Resolution of authenticated identities to local users."""
from __future__ import annotations

import logging

from snapgram.core.errors import UpstreamFailureError
from snapgram.core.security import Identity
from snapgram.repositories.base import RelationStore, StoreError
from snapgram.repositories.records import UserRecord

__all__ = ["ensure_user", "resolve_viewer"]

logger = logging.getLogger(__name__)


def _default_display_name(identity: Identity) -> str:
    return identity.display_name or identity.external_id


def ensure_user(store: RelationStore, identity: Identity) -> UserRecord:
    """Return the user bound to ``identity``, creating it on first use.

    Raises:
        UpstreamFailureError: If the store cannot be read or written.
    """
    try:
        user = store.get_user_by_identity(identity.external_id)
        if user is None:
            user = store.create_user(identity.external_id, _default_display_name(identity))
            logger.info("Created user %s for identity %s", user.id, identity.external_id)
        return user
    except StoreError as exc:
        logger.error("Failed to resolve user for identity %s", identity.external_id, exc_info=True)
        raise UpstreamFailureError() from exc


def resolve_viewer(store: RelationStore, identity: Identity | None) -> UserRecord | None:
    """Return the viewing user for read paths without creating one.

    A lookup failure degrades to an anonymous viewer.
    """
    if identity is None:
        return None
    try:
        return store.get_user_by_identity(identity.external_id)
    except StoreError:
        logger.warning("Viewer lookup failed for identity %s", identity.external_id, exc_info=True)
        return None
