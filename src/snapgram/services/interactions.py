"""Idempotent add/remove for the like, follow and bookmark relations.

All three relations share one code path keyed by :class:`RelationKind`; the
only per-relation differences are what the target is and whether pointing
the relation at yourself is allowed. Those differences live in
``RELATION_SPECS``.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from snapgram.core.errors import NotFoundError, UpstreamFailureError, ValidationFailedError
from snapgram.core.security import Identity
from snapgram.repositories.base import (
    DuplicateRelationError,
    RelationKind,
    RelationStore,
    StoreError,
)
from snapgram.services.user_service import ensure_user

__all__ = ["InteractionToggler", "RelationSpec", "RELATION_SPECS", "ToggleResult"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationSpec:
    """Static description of one toggleable relation."""

    kind: RelationKind
    target_label: str
    target_lookup: Callable[[RelationStore, int], object | None]
    allow_self: bool = True


RELATION_SPECS: dict[RelationKind, RelationSpec] = {
    RelationKind.LIKE: RelationSpec(
        kind=RelationKind.LIKE,
        target_label="Post",
        target_lookup=lambda store, target_id: store.get_post(target_id),
    ),
    RelationKind.FOLLOW: RelationSpec(
        kind=RelationKind.FOLLOW,
        target_label="User",
        target_lookup=lambda store, target_id: store.get_user(target_id),
        allow_self=False,
    ),
    RelationKind.BOOKMARK: RelationSpec(
        kind=RelationKind.BOOKMARK,
        target_label="Post",
        target_lookup=lambda store, target_id: store.get_post(target_id),
    ),
}


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of an add or remove.

    Attributes:
        success: Always true for returned results; failures raise.
        new_state: Whether the relation exists after the call.
        changed: False when the relation was already in ``new_state``.
    """

    success: bool
    new_state: bool
    changed: bool


class InteractionToggler:
    """Apply relation mutations against a :class:`RelationStore`."""

    def __init__(self, store: RelationStore) -> None:
        self.store = store

    def add(self, kind: RelationKind, actor: Identity, target_id: int) -> ToggleResult:
        """Create the relation from ``actor`` to ``target_id``.

        An already existing relation is reported as success.

        Raises:
            ValidationFailedError: For a self-follow.
            NotFoundError: If the target does not exist.
            UpstreamFailureError: If the store fails.
        """
        spec = RELATION_SPECS[kind]
        user = ensure_user(self.store, actor)

        if not spec.allow_self and user.id == target_id:
            raise ValidationFailedError(f"You cannot {kind.value} yourself.")

        try:
            if spec.target_lookup(self.store, target_id) is None:
                raise NotFoundError(f"{spec.target_label} not found.")
            self.store.insert_relation(kind, user.id, target_id)
        except DuplicateRelationError:
            return ToggleResult(success=True, new_state=True, changed=False)
        except StoreError as exc:
            logger.error(
                "Failed to add %s: actor=%s target=%s", kind.value, user.id, target_id,
                exc_info=True,
            )
            raise UpstreamFailureError(f"Failed to add {kind.value}.") from exc

        logger.debug("Added %s: actor=%s target=%s", kind.value, user.id, target_id)
        return ToggleResult(success=True, new_state=True, changed=True)

    def remove(self, kind: RelationKind, actor: Identity, target_id: int) -> ToggleResult:
        """Delete the relation from ``actor`` to ``target_id``.

        Removing a relation that does not exist is reported as success.

        Raises:
            UpstreamFailureError: If the store fails.
        """
        try:
            user = self.store.get_user_by_identity(actor.external_id)
            if user is None:
                return ToggleResult(success=True, new_state=False, changed=False)
            removed = self.store.delete_relation(kind, user.id, target_id)
        except StoreError as exc:
            logger.error(
                "Failed to remove %s: actor=%s target=%s", kind.value, actor.external_id, target_id,
                exc_info=True,
            )
            raise UpstreamFailureError(f"Failed to remove {kind.value}.") from exc

        return ToggleResult(success=True, new_state=False, changed=removed)
