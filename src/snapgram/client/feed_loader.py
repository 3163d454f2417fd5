"""Infinite-scroll pager over ``GET /posts``.

Only one page request runs at a time. Changing the author filter, resetting
or closing the pager starts a new generation; a response that belongs to an
older generation is dropped instead of being appended out of order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from snapgram.client.api import ApiError, SnapgramClient
from snapgram.client.optimistic import ErrorCallback
from snapgram.core.settings import settings

logger = logging.getLogger(__name__)


class FeedPager:
    """Accumulate feed items page by page.

    Attributes:
        items: Feed items loaded so far, in feed order, without duplicates.
        has_more: Whether the server reported further pages.
        error: Message of the last terminal failure, cleared on success.
    """

    def __init__(
        self,
        client: SnapgramClient,
        page_size: int | None = None,
        author_id: int | None = None,
        timeout_seconds: float | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.client = client
        self.page_size = page_size or settings.feed_page_size
        self.author_id = author_id
        self.timeout_seconds = (
            settings.client_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.on_error = on_error

        self.items: list[dict[str, Any]] = []
        self.has_more = True
        self.error: str | None = None
        self._offset = 0
        self._seen: set[int] = set()
        self._loading = False
        self._generation = 0
        self._closed = False

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def closed(self) -> bool:
        return self._closed

    def _restart(self) -> None:
        self._generation += 1
        self.items = []
        self.has_more = True
        self.error = None
        self._offset = 0
        self._seen = set()
        self._loading = False

    def reset(self) -> None:
        """Drop loaded items and any in-flight result, keeping the filter."""
        self._restart()

    def set_author_filter(self, author_id: int | None) -> None:
        """Switch to another author's posts (or all posts) from the first page."""
        self.author_id = author_id
        self._restart()

    def close(self) -> None:
        """Stop accepting results; the pager cannot load again."""
        self._closed = True
        self._generation += 1
        self._loading = False

    async def load_more(self) -> bool:
        """Fetch and append the next page.

        Returns:
            True if a page was appended. False if the call was skipped (closed,
            already loading, or no more pages), was superseded, timed out, or
            failed. Timeouts leave ``error`` unset so the caller may simply
            try again.
        """
        if self._closed or self._loading or not self.has_more:
            return False

        generation = self._generation
        self._loading = True
        try:
            body = await asyncio.wait_for(
                self.client.get_posts(
                    limit=self.page_size, offset=self._offset, author_id=self.author_id
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.debug("Feed page at offset %s timed out", self._offset)
            return False
        except ApiError as exc:
            if generation == self._generation:
                self.error = exc.message
                if self.on_error is not None:
                    self.on_error(exc.message)
            return False
        finally:
            if generation == self._generation:
                self._loading = False

        if generation != self._generation:
            logger.debug("Discarding superseded feed page (generation %s)", generation)
            return False

        page = body.get("data") or []
        for item in page:
            post_id = item.get("post_id")
            if post_id in self._seen:
                continue
            self._seen.add(post_id)
            self.items.append(item)
        self._offset += len(page)
        self.has_more = bool(body.get("hasMore"))
        self.error = None
        return True
