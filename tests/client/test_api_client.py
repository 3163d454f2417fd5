"""Tests for the async API client and its error classification."""
from __future__ import annotations

import json

import httpx
import pytest

from snapgram.client.api import (
    ApiError,
    ApiErrorType,
    SnapgramClient,
    classify_status,
    retry_delay,
)


def _client(handler, token: str | None = "tok") -> SnapgramClient:
    return SnapgramClient(
        base_url="http://test/api/v1",
        token=token,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.parametrize(
    ("status_code", "expected"),
    [(500, ApiErrorType.SERVER), (503, ApiErrorType.SERVER), (404, ApiErrorType.CLIENT),
     (400, ApiErrorType.CLIENT), (302, ApiErrorType.UNKNOWN)],
)
def test_classify_status(status_code: int, expected: ApiErrorType) -> None:
    assert classify_status(status_code) is expected


def test_retry_delay_is_exponential_and_capped() -> None:
    assert [retry_delay(n) for n in range(6)] == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]
    assert retry_delay(1, base_delay=0.5) == 1.0


def test_retryable_errors() -> None:
    assert ApiError("x", ApiErrorType.NETWORK).is_retryable
    assert ApiError("x", ApiErrorType.SERVER, 502).is_retryable
    assert not ApiError("x", ApiErrorType.CLIENT, 404).is_retryable
    assert not ApiError("x", ApiErrorType.UNKNOWN).is_retryable


@pytest.mark.asyncio
async def test_like_sends_json_body_and_bearer_token() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "liked": True, "changed": True})

    async with _client(handler) as client:
        body = await client.like(7)

    assert body["liked"] is True
    assert seen == {
        "method": "POST",
        "path": "/api/v1/likes",
        "auth": "Bearer tok",
        "body": {"post_id": 7},
    }


@pytest.mark.asyncio
async def test_delete_requests_carry_a_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert json.loads(request.content) == {"following_id": 3}
        return httpx.Response(200, json={"success": True, "isFollowing": False})

    async with _client(handler) as client:
        body = await client.unfollow(3)

    assert body["isFollowing"] is False


@pytest.mark.asyncio
async def test_error_body_message_is_used() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"success": False, "error": "You cannot follow yourself."})

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.follow(1)

    assert excinfo.value.type is ApiErrorType.CLIENT
    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "You cannot follow yourself."


@pytest.mark.asyncio
async def test_error_without_body_gets_default_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="nope")

    async with _client(handler, token=None) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.like(1)

    assert excinfo.value.message == "Login required."


@pytest.mark.asyncio
async def test_success_false_body_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Failed to add like."})

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.like(1)

    assert excinfo.value.message == "Failed to add like."


@pytest.mark.asyncio
async def test_transport_failure_is_a_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ApiError) as excinfo:
            await client.bookmark(1)

    assert excinfo.value.type is ApiErrorType.NETWORK
    assert excinfo.value.is_retryable


@pytest.mark.asyncio
async def test_get_posts_retries_server_errors(mocker) -> None:
    delay = mocker.patch("snapgram.client.api.retry_delay", return_value=0.0)
    responses = iter([
        httpx.Response(503, json={"success": False, "error": "down"}),
        httpx.Response(200, json={"data": [], "count": 0, "hasMore": False}),
    ])
    seen_params: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_params.append(dict(request.url.params))
        return next(responses)

    async with _client(handler) as client:
        body = await client.get_posts(limit=5, offset=10, author_id=2, retries=2)

    assert body["hasMore"] is False
    assert seen_params[0] == {"limit": "5", "offset": "10", "authorId": "2"}
    delay.assert_called_once_with(0)


@pytest.mark.asyncio
async def test_client_errors_are_not_retried(mocker) -> None:
    delay = mocker.patch("snapgram.client.api.retry_delay", return_value=0.0)
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(404, json={"success": False, "error": "Post not found."})

    async with _client(handler) as client:
        with pytest.raises(ApiError):
            await client.get_posts(retries=3)

    assert calls == 1
    delay.assert_not_called()


@pytest.mark.asyncio
async def test_create_post_is_multipart() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="caption"' in request.content
        assert b'name="image"' in request.content
        return httpx.Response(200, json={"success": True, "post": {"post_id": 1}})

    async with _client(handler) as client:
        body = await client.create_post(b"\x89PNG", "image/png", caption="hi")

    assert body["post"]["post_id"] == 1
