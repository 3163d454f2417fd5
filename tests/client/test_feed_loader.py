"""Tests for the feed pager's in-flight guard, generations and timeouts."""
from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from snapgram.client.api import ApiError, ApiErrorType
from snapgram.client.feed_loader import FeedPager


def _page(post_ids: list[int], has_more: bool) -> dict[str, Any]:
    return {"data": [{"post_id": pid} for pid in post_ids], "count": 99, "hasMore": has_more}


def _client(*pages: dict[str, Any]) -> MagicMock:
    client = MagicMock()
    client.get_posts = AsyncMock(side_effect=list(pages))
    return client


@pytest.mark.asyncio
async def test_pages_accumulate_until_exhausted() -> None:
    client = _client(_page([3, 2], True), _page([1], False))
    pager = FeedPager(client, page_size=2)

    assert await pager.load_more() is True
    assert await pager.load_more() is True
    assert await pager.load_more() is False

    assert [item["post_id"] for item in pager.items] == [3, 2, 1]
    assert pager.has_more is False
    assert client.get_posts.await_count == 2
    second_call = client.get_posts.await_args_list[1]
    assert second_call.kwargs == {"limit": 2, "offset": 2, "author_id": None}


@pytest.mark.asyncio
async def test_duplicate_items_are_skipped() -> None:
    client = _client(_page([3, 2], True), _page([2, 1], False))
    pager = FeedPager(client, page_size=2)

    await pager.load_more()
    await pager.load_more()

    assert [item["post_id"] for item in pager.items] == [3, 2, 1]


@pytest.mark.asyncio
async def test_concurrent_load_is_ignored() -> None:
    gate = asyncio.Event()

    async def slow_page(**kwargs: Any) -> dict[str, Any]:
        await gate.wait()
        return _page([1], False)

    client = MagicMock()
    client.get_posts = AsyncMock(side_effect=slow_page)
    pager = FeedPager(client)

    first = asyncio.create_task(pager.load_more())
    await asyncio.sleep(0)
    assert pager.loading is True
    assert await pager.load_more() is False

    gate.set()
    assert await first is True
    assert client.get_posts.await_count == 1
    assert pager.loading is False


@pytest.mark.asyncio
async def test_filter_change_discards_stale_page() -> None:
    gate = asyncio.Event()
    pages = iter([_page([10, 11], True), _page([20], False)])

    async def get_posts(**kwargs: Any) -> dict[str, Any]:
        page = next(pages)
        if kwargs["author_id"] is None:
            await gate.wait()
        return page

    client = MagicMock()
    client.get_posts = AsyncMock(side_effect=get_posts)
    pager = FeedPager(client)

    stale = asyncio.create_task(pager.load_more())
    await asyncio.sleep(0)
    pager.set_author_filter(7)
    assert await pager.load_more() is True

    gate.set()
    assert await stale is False
    assert [item["post_id"] for item in pager.items] == [20]
    assert pager.author_id == 7
    assert pager.has_more is False


@pytest.mark.asyncio
async def test_timeout_is_not_terminal() -> None:
    attempts = 0

    async def get_posts(**kwargs: Any) -> dict[str, Any]:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            await asyncio.sleep(10)
        return _page([1], False)

    client = MagicMock()
    client.get_posts = AsyncMock(side_effect=get_posts)
    errors: list[str] = []
    pager = FeedPager(client, timeout_seconds=0.01, on_error=errors.append)

    assert await pager.load_more() is False
    assert pager.error is None
    assert errors == []
    assert pager.loading is False

    assert await pager.load_more() is True
    assert [item["post_id"] for item in pager.items] == [1]


@pytest.mark.asyncio
async def test_api_error_is_reported_and_retryable() -> None:
    client = _client(_page([1], True))
    client.get_posts.side_effect = [
        ApiError("A server error occurred.", ApiErrorType.SERVER, 500),
        _page([1], False),
    ]
    errors: list[str] = []
    pager = FeedPager(client, on_error=errors.append)

    assert await pager.load_more() is False
    assert pager.error == "A server error occurred."
    assert errors == ["A server error occurred."]

    assert await pager.load_more() is True
    assert pager.error is None


@pytest.mark.asyncio
async def test_closed_pager_drops_results_and_stops() -> None:
    gate = asyncio.Event()

    async def slow_page(**kwargs: Any) -> dict[str, Any]:
        await gate.wait()
        return _page([1], True)

    client = MagicMock()
    client.get_posts = AsyncMock(side_effect=slow_page)
    pager = FeedPager(client)

    pending = asyncio.create_task(pager.load_more())
    await asyncio.sleep(0)
    pager.close()
    gate.set()

    assert await pending is False
    assert pager.items == []
    assert await pager.load_more() is False
    assert client.get_posts.await_count == 1
