"""Notification service client over HTTP."""

import asyncio
import json
from typing import Any, Optional, Sequence

import httpx

from notifsync.client.base import ApiResult, NotificationApi
from notifsync.core.models import coerce_notifications
from notifsync.utils.constants import (
    DEFAULT_MAX_RETRIES,
    HTTP_CLIENT_TIMEOUT,
    RETRY_BASE_DELAY,
)
from notifsync.utils.debug import debug_api
from notifsync.utils.exceptions import ApiError


def _error_from_body(body: Any) -> Optional[str]:
    """Pull an error message out of a decoded response body."""
    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error)
        return str(error)
    return None


def _decode(response: httpx.Response) -> Any:
    """Decode a JSON body; error responses may carry plain text."""
    if not response.content:
        return None
    try:
        return response.json()
    except json.JSONDecodeError:
        if response.status_code >= 400:
            return None
        raise


class HttpNotificationApi(NotificationApi):
    """REST client for the notification service.

    Endpoints:
        GET  {base}/notifications/{username}
        GET  {base}/notifications/{username}?types=..&before=..|after=..
        POST {base}/notifications/{read|unread|shown}  {"ids": [...]}
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = HTTP_CLIENT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _api_request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> ApiResult:
        """Make an API request with retry/backoff.

        Retries on transport errors and 5xx responses with exponential
        backoff. Does not retry on 4xx or undecodable bodies.
        """
        last_error: Optional[str] = None

        for attempt in range(self.max_retries):
            try:
                client = await self._get_client()
                response = await client.request(
                    method, path, params=params, json=json_body
                )
                body = _decode(response)

                if response.status_code >= 400 or _error_from_body(body):
                    raise ApiError(
                        _error_from_body(body) or f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                # Empty 2xx bodies (204) count as an empty batch
                notifications = coerce_notifications([] if body is None else body)
                if notifications is None:
                    debug_api("Unexpected response shape", path=path)
                    return ApiResult.failure("unexpected response shape")
                return ApiResult.success(notifications)

            except ApiError as e:
                last_error = str(e)
                if e.status_code is not None and 500 <= e.status_code < 600:
                    if attempt < self.max_retries - 1:
                        delay = RETRY_BASE_DELAY * (2**attempt)
                        debug_api(
                            "Retrying after server error",
                            path=path,
                            status=e.status_code,
                            attempt=attempt + 1,
                            delay=delay,
                        )
                        await asyncio.sleep(delay)
                        continue
                debug_api(
                    "API error", path=path, status=e.status_code, error=last_error[:100]
                )
                return ApiResult.failure(last_error)

            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__
                if attempt < self.max_retries - 1:
                    delay = RETRY_BASE_DELAY * (2**attempt)
                    debug_api(
                        "Retrying after HTTP error",
                        path=path,
                        error=last_error[:50],
                        attempt=attempt + 1,
                        delay=delay,
                    )
                    await asyncio.sleep(delay)
                    continue
                debug_api("HTTP error (final)", path=path, error=last_error[:100])
                return ApiResult.failure(last_error)

            except json.JSONDecodeError as e:
                debug_api("JSON decode error", path=path, error=str(e)[:100])
                return ApiResult.failure(f"invalid JSON: {e}")

        return ApiResult.failure(last_error or "max retries exceeded")

    async def fetch_all(self, username: str) -> ApiResult:
        return await self._api_request("GET", f"/notifications/{username}")

    async def fetch_some(
        self,
        username: str,
        types: Optional[Sequence[str]] = None,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> ApiResult:
        params: dict[str, Any] = {}
        if types:
            params["types"] = ",".join(types)
        if before is not None:
            params["before"] = before
        if after is not None:
            params["after"] = after
        return await self._api_request(
            "GET", f"/notifications/{username}", params=params or None
        )

    async def mark_as_read(self, ids: Sequence[str]) -> ApiResult:
        return await self._api_request(
            "POST", "/notifications/read", json_body={"ids": list(ids)}
        )

    async def mark_as_unread(self, ids: Sequence[str]) -> ApiResult:
        return await self._api_request(
            "POST", "/notifications/unread", json_body={"ids": list(ids)}
        )

    async def mark_as_shown(self, ids: Sequence[str]) -> ApiResult:
        return await self._api_request(
            "POST", "/notifications/shown", json_body={"ids": list(ids)}
        )
