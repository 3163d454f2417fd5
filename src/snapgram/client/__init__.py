"""Client-side collaborators for the Snapgram API."""

from .api import ApiError, ApiErrorType, SnapgramClient, retry_delay
from .feed_loader import FeedPager
from .optimistic import (
    Idle,
    LikeState,
    OptimisticToggle,
    Pending,
    bookmark_toggle,
    follow_toggle,
    like_toggle,
)

__all__ = [
    "ApiError",
    "ApiErrorType",
    "SnapgramClient",
    "retry_delay",
    "FeedPager",
    "Idle",
    "LikeState",
    "OptimisticToggle",
    "Pending",
    "bookmark_toggle",
    "follow_toggle",
    "like_toggle",
]
