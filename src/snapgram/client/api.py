"""Async HTTP client for the Snapgram REST API.

Failures are normalised into :class:`ApiError` so callers (the optimistic
toggles and the feed pager) can decide whether to roll back, retry, or show a
message without looking at transport details.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

import httpx

from snapgram.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400
HTTP_INTERNAL_SERVER_ERROR = 500

MAX_RETRY_DELAY_SECONDS = 10.0

_CLIENT_ERROR_MESSAGES = {
    400: "Bad request.",
    401: "Login required.",
    403: "Permission denied.",
    404: "The requested resource was not found.",
    409: "The request was already processed.",
    413: "The file is too large.",
    422: "The submitted data is invalid.",
    429: "Too many requests. Please try again shortly.",
}


class ApiErrorType(str, Enum):
    """Coarse failure categories used for retry and messaging decisions."""

    NETWORK = "NETWORK"
    SERVER = "SERVER"
    CLIENT = "CLIENT"
    UNKNOWN = "UNKNOWN"


class ApiError(RuntimeError):
    """Raised for any failed API call."""

    def __init__(
        self,
        message: str,
        error_type: ApiErrorType = ApiErrorType.UNKNOWN,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = error_type
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        """Network failures and 5xx responses are worth retrying."""
        if self.type is ApiErrorType.NETWORK:
            return True
        return (
            self.type is ApiErrorType.SERVER
            and self.status_code is not None
            and self.status_code >= HTTP_INTERNAL_SERVER_ERROR
        )


def classify_status(status_code: int) -> ApiErrorType:
    """Map an HTTP status to an :class:`ApiErrorType`."""
    if status_code >= HTTP_INTERNAL_SERVER_ERROR:
        return ApiErrorType.SERVER
    if status_code >= HTTP_BAD_REQUEST:
        return ApiErrorType.CLIENT
    return ApiErrorType.UNKNOWN


def default_message(error_type: ApiErrorType, status_code: int | None = None) -> str:
    """Return a user-facing message for an error without a server-provided one."""
    if error_type is ApiErrorType.NETWORK:
        return "Network connection failed."
    if error_type is ApiErrorType.SERVER:
        return "A server error occurred."
    if error_type is ApiErrorType.CLIENT and status_code is not None:
        return _CLIENT_ERROR_MESSAGES.get(status_code, "The request could not be processed.")
    return "An unknown error occurred."


def retry_delay(attempt: int, base_delay: float = 1.0) -> float:
    """Exponential backoff delay in seconds for ``attempt`` (0-based), capped at 10 s."""
    return min(base_delay * (2 ** attempt), MAX_RETRY_DELAY_SECONDS)


def _error_from_response(response: httpx.Response) -> ApiError:
    error_type = classify_status(response.status_code)
    message = None
    if "application/json" in response.headers.get("content-type", ""):
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, Mapping):
            message = body.get("error") or body.get("message")
    return ApiError(
        message or default_message(error_type, response.status_code),
        error_type,
        response.status_code,
    )


class SnapgramClient:
    """HTTP client wrapper for the Snapgram API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.client_base_url
        self.token = token
        self.timeout_seconds = (
            settings.client_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> SnapgramClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        retries: int = 0,
    ) -> dict[str, Any]:
        attempt = 0
        while True:
            try:
                return await self._send(
                    method, path, json_data=json_data, params=params, data=data, files=files
                )
            except ApiError as exc:
                if attempt >= retries or not exc.is_retryable:
                    raise
                delay = retry_delay(attempt)
                logger.debug("Retrying %s %s in %.1fs: %s", method, path, delay, exc.message)
                attempt += 1
                await asyncio.sleep(delay)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None,
        params: Mapping[str, Any] | None,
        data: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        client = await self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                json=json_data,
                params=params,
                data=data,
                files=files,
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            logger.debug("%s %s timed out", method, path)
            raise ApiError("The request timed out.", ApiErrorType.NETWORK) from exc
        except httpx.TransportError as exc:
            logger.debug("%s %s failed: %s", method, path, exc)
            raise ApiError(default_message(ApiErrorType.NETWORK), ApiErrorType.NETWORK) from exc

        if response.status_code >= HTTP_BAD_REQUEST:
            error = _error_from_response(response)
            logger.debug("%s %s returned %s: %s", method, path, error.status_code, error.message)
            raise error

        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError("Malformed response body.", ApiErrorType.UNKNOWN) from exc
        if isinstance(body, Mapping) and body.get("success") is False:
            raise ApiError(
                body.get("error") or default_message(ApiErrorType.UNKNOWN),
                ApiErrorType.UNKNOWN,
                response.status_code,
            )
        return body

    # Feed and posts

    async def get_posts(
        self,
        limit: int = 10,
        offset: int = 0,
        author_id: int | None = None,
        retries: int = 0,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if author_id is not None:
            params["authorId"] = author_id
        return await self._request("GET", "/posts", params=params, retries=retries)

    async def create_post(
        self,
        image: bytes,
        content_type: str,
        caption: str | None = None,
        filename: str = "upload",
    ) -> dict[str, Any]:
        data = {"caption": caption} if caption else None
        files = {"image": (filename, image, content_type)}
        return await self._request("POST", "/posts", data=data, files=files)

    async def delete_post(self, post_id: int) -> dict[str, Any]:
        return await self._request("DELETE", f"/posts/{post_id}")

    # Relations

    async def like(self, post_id: int) -> dict[str, Any]:
        return await self._request("POST", "/likes", json_data={"post_id": post_id})

    async def unlike(self, post_id: int) -> dict[str, Any]:
        return await self._request("DELETE", "/likes", json_data={"post_id": post_id})

    async def follow(self, user_id: int) -> dict[str, Any]:
        return await self._request("POST", "/follows", json_data={"following_id": user_id})

    async def unfollow(self, user_id: int) -> dict[str, Any]:
        return await self._request("DELETE", "/follows", json_data={"following_id": user_id})

    async def bookmark(self, post_id: int) -> dict[str, Any]:
        return await self._request("POST", "/bookmarks", json_data={"post_id": post_id})

    async def unbookmark(self, post_id: int) -> dict[str, Any]:
        return await self._request("DELETE", "/bookmarks", json_data={"post_id": post_id})

    async def get_bookmarks(self, limit: int = 12, offset: int = 0) -> dict[str, Any]:
        return await self._request("GET", "/bookmarks", params={"limit": limit, "offset": offset})

    # Comments

    async def get_comments(self, post_id: int) -> dict[str, Any]:
        return await self._request("GET", "/comments", params={"post_id": post_id})

    async def create_comment(
        self, post_id: int, content: str, parent_id: int | None = None
    ) -> dict[str, Any]:
        payload = {"post_id": post_id, "content": content, "parent_id": parent_id}
        return await self._request("POST", "/comments", json_data=payload)

    async def delete_comment(self, comment_id: int) -> dict[str, Any]:
        return await self._request("DELETE", "/comments", json_data={"comment_id": comment_id})

    # Users and search

    async def get_user(self, user_ref: int | str) -> dict[str, Any]:
        return await self._request("GET", f"/users/{user_ref}")

    async def search(
        self, query: str, kind: str = "all", limit: int = 10, offset: int = 0
    ) -> dict[str, Any]:
        params = {"q": query, "type": kind, "limit": limit, "offset": offset}
        return await self._request("GET", "/search", params=params)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None
