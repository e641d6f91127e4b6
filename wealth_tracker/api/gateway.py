"""Authenticated request gateway shared by the Roblox API clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from wealth_tracker.config import (
    AUTH_COOKIE_NAME,
    CSRF_HEADER,
    HTTP_TIMEOUT,
    RATE_LIMIT_BASE_BACKOFF,
    RATE_LIMIT_MAX_RETRIES,
    ROBLOX_SECURITY_COOKIE,
)
from wealth_tracker.errors import TransportError
from wealth_tracker.models import ApiResult

logger = logging.getLogger(__name__)


class RequestGateway:
    """Attach credentials to outbound calls and turn every failure into an ApiResult.

    The anti-forgery token is cached on the instance and shared by all
    concurrent callers. A 403 that carries a fresh ``x-csrf-token`` header
    replaces the cached token and the request is retried exactly once.
    429 responses are retried a bounded number of times with exponential
    backoff.
    """

    def __init__(
        self,
        *,
        security_cookie: str | None = None,
        csrf_token: str | None = None,
        client: httpx.AsyncClient | None = None,
        max_rate_limit_retries: int = RATE_LIMIT_MAX_RETRIES,
        rate_limit_backoff: float = RATE_LIMIT_BASE_BACKOFF,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT)
        self._security_cookie = (
            ROBLOX_SECURITY_COOKIE if security_cookie is None else security_cookie
        )
        self._csrf_token = csrf_token
        self._max_rate_limit_retries = max_rate_limit_retries
        self._rate_limit_backoff = rate_limit_backoff

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def csrf_token(self) -> str | None:
        return self._csrf_token

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def get(self, url: str, *, params: dict[str, Any] | None = None) -> ApiResult:
        return await self.request("GET", url, params=params)

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResult:
        """Send one logical request. Never raises."""
        try:
            resp = await self._send(method, url, params=params, json=json)
        except Exception as exc:
            logger.warning("gateway_request_error", extra={"url": url}, exc_info=True)
            return ApiResult(success=False, error=str(exc) or type(exc).__name__)

        if not resp.is_success:
            logger.warning(
                "gateway_http_error",
                extra={"url": url, "status": resp.status_code},
            )
            return ApiResult(
                success=False,
                error=f"HTTP {resp.status_code}: {resp.reason_phrase}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError:
            logger.warning(
                "gateway_decode_error",
                extra={"url": url, "status": resp.status_code},
            )
            return ApiResult(
                success=False,
                error="Invalid JSON in response body",
                status_code=resp.status_code,
            )
        return ApiResult(success=True, data=data, status_code=resp.status_code)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            CSRF_HEADER: self._csrf_token or "",
        }
        if self._security_cookie:
            headers["Cookie"] = f"{AUTH_COOKIE_NAME}={self._security_cookie}"
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json: Any,
    ) -> httpx.Response:
        token_refreshed = False
        rate_limit_retries = 0
        backoff = self._rate_limit_backoff

        while True:
            try:
                resp = await self._client.request(
                    method, url, params=params, json=json, headers=self._headers(),
                )
            except httpx.HTTPError as exc:
                raise TransportError(f"{method} {url} failed: {exc}") from exc

            if resp.status_code == 403 and not token_refreshed:
                new_token = resp.headers.get("x-csrf-token")
                if new_token:
                    self._csrf_token = new_token
                    token_refreshed = True
                    logger.info("csrf_token_refreshed", extra={"url": url})
                    continue

            if resp.status_code == 429 and rate_limit_retries < self._max_rate_limit_retries:
                rate_limit_retries += 1
                delay = _retry_after_seconds(resp)
                if delay is None:
                    delay = backoff
                    backoff *= 2
                logger.warning(
                    "rate_limited",
                    extra={"url": url, "attempt": rate_limit_retries, "delay": delay},
                )
                await asyncio.sleep(delay)
                continue

            return resp


def _retry_after_seconds(resp: httpx.Response) -> float | None:
    raw = resp.headers.get("retry-after")
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        return None
