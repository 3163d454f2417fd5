"""Business logic services for the Snapgram application."""

from .feed_aggregator import FeedAggregator, FeedPage
from .interactions import InteractionToggler, ToggleResult
from .storage import LocalObjectStorage, ObjectStorage
from .thread_builder import build_thread, flatten_thread

__all__ = [
    "FeedAggregator",
    "FeedPage",
    "InteractionToggler",
    "ToggleResult",
    "LocalObjectStorage",
    "ObjectStorage",
    "build_thread",
    "flatten_thread",
]
