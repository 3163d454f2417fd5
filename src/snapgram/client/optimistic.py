"""Optimistic state for like, follow and bookmark widgets.

Each widget owns one :class:`OptimisticToggle`. A toggle moves from
``Idle(value)`` to ``Pending(predicted, previous)``, shows the predicted value
while the mutation is in flight, and settles on the confirmed value or, on any
failure, on exactly the previous value.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from snapgram.client.api import ApiError, SnapgramClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Mutation = Callable[[T, T], Awaitable[T]]
ErrorCallback = Callable[[str], None]


@dataclass(frozen=True)
class Idle(Generic[T]):
    """No mutation in flight; ``value`` is what the widget shows."""

    value: T


@dataclass(frozen=True)
class Pending(Generic[T]):
    """A mutation is in flight; ``predicted`` is shown, ``previous`` is kept for rollback."""

    predicted: T
    previous: T


class OptimisticToggle(Generic[T]):
    """Single-flight optimistic toggle.

    Args:
        initial: Value shown before the first action.
        predict: Returns the value to show immediately for a given current value.
        mutate: Coroutine called with ``(previous, predicted)`` that performs the
            server call and returns the confirmed value.
        on_error: Called with a user-facing message after a rollback.
    """

    def __init__(
        self,
        initial: T,
        predict: Callable[[T], T],
        mutate: Mutation[T],
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._state: Idle[T] | Pending[T] = Idle(initial)
        self._predict = predict
        self._mutate = mutate
        self._on_error = on_error

    @property
    def state(self) -> Idle[T] | Pending[T]:
        return self._state

    @property
    def value(self) -> T:
        """The value to display."""
        if isinstance(self._state, Pending):
            return self._state.predicted
        return self._state.value

    @property
    def is_pending(self) -> bool:
        return isinstance(self._state, Pending)

    def sync(self, value: T) -> None:
        """Adopt a server-provided value, e.g. after a feed refresh; ignored while pending."""
        if not self.is_pending:
            self._state = Idle(value)

    async def toggle(self) -> bool:
        """Apply one user action.

        Returns:
            True if the mutation was confirmed, False if it was ignored because
            another one is pending or if it failed and was rolled back.

        Raises:
            asyncio.CancelledError: After rolling back, if the call was cancelled.
        """
        if isinstance(self._state, Pending):
            return False

        previous = self._state.value
        predicted = self._predict(previous)
        self._state = Pending(predicted, previous)

        try:
            confirmed = await self._mutate(previous, predicted)
        except ApiError as exc:
            self._state = Idle(previous)
            logger.debug("Optimistic update rolled back: %s", exc.message)
            if self._on_error is not None:
                self._on_error(exc.message)
            return False
        except BaseException:
            # Cancellation and programming errors still restore the prior value.
            self._state = Idle(previous)
            raise

        self._state = Idle(confirmed)
        return True


@dataclass(frozen=True)
class LikeState:
    """Like flag and like count shown by a like button."""

    liked: bool
    count: int


def _flip_like(state: LikeState) -> LikeState:
    if state.liked:
        return LikeState(liked=False, count=max(0, state.count - 1))
    return LikeState(liked=True, count=state.count + 1)


def _flag(body: dict[str, Any], key: str, expected: bool) -> bool:
    value = body.get(key)
    return expected if value is None else bool(value)


def like_toggle(
    client: SnapgramClient,
    post_id: int,
    initial: LikeState,
    on_error: ErrorCallback | None = None,
) -> OptimisticToggle[LikeState]:
    """Build the toggle behind a post's like button."""

    async def mutate(previous: LikeState, predicted: LikeState) -> LikeState:
        if predicted.liked:
            body = await client.like(post_id)
        else:
            body = await client.unlike(post_id)
        liked = _flag(body, "liked", predicted.liked)
        # An unchanged relation means the shown count already included it.
        count = predicted.count if body.get("changed", True) else previous.count
        return LikeState(liked=liked, count=count)

    return OptimisticToggle(initial, _flip_like, mutate, on_error)


def follow_toggle(
    client: SnapgramClient,
    user_id: int,
    initial: bool,
    on_error: ErrorCallback | None = None,
) -> OptimisticToggle[bool]:
    """Build the toggle behind a profile's follow button."""

    async def mutate(previous: bool, predicted: bool) -> bool:
        body = await (client.follow(user_id) if predicted else client.unfollow(user_id))
        return _flag(body, "isFollowing", predicted)

    return OptimisticToggle(initial, lambda value: not value, mutate, on_error)


def bookmark_toggle(
    client: SnapgramClient,
    post_id: int,
    initial: bool,
    on_error: ErrorCallback | None = None,
) -> OptimisticToggle[bool]:
    """Build the toggle behind a post's bookmark button."""

    async def mutate(previous: bool, predicted: bool) -> bool:
        body = await (client.bookmark(post_id) if predicted else client.unbookmark(post_id))
        return _flag(body, "isBookmarked", predicted)

    return OptimisticToggle(initial, lambda value: not value, mutate, on_error)
