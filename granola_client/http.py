"""Async HTTP transport with retries, timeouts and desktop client headers."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from .config import DEFAULT_BASE_URL, HttpOptions

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]
Sleep = Callable[[float], Awaitable[None]]

BASE_BACKOFF_MS = 250


class GranolaError(RuntimeError):
    """Base class for errors raised by the client."""


class APIStatusError(GranolaError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        super().__init__(f"HTTP {status_code} {reason}: {body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


class RequestTimeoutError(GranolaError):
    """Raised when every attempt of a request timed out."""


class AuthenticationRequiredError(GranolaError):
    """Raised when an authenticated call is made without a usable token."""


def backoff_delay(attempt: int, retry_after: Optional[str] = None) -> int:
    """Return the delay in milliseconds before retrying ``attempt``."""
    if retry_after:
        try:
            return int(retry_after.strip()) * 1000
        except ValueError:
            pass
    return BASE_BACKOFF_MS * 2**attempt


def _is_retriable(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


class Http:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        options: Optional[HttpOptions] = None,
        *,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self._token = token
        self.base_url = base_url.rstrip("/")
        self.options = options or HttpOptions()
        self._token_provider = token_provider
        self._token_lock: Optional[asyncio.Lock] = None
        self._token_lock_loop: Optional[asyncio.AbstractEventLoop] = None
        self._transport = transport
        self._sleep = sleep or asyncio.sleep

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def set_token(self, token: str) -> None:
        self._token = token

    def set_token_provider(self, provider: TokenProvider) -> None:
        self._token_provider = provider

    def _lock(self) -> asyncio.Lock:
        # asyncio locks are bound to the loop that first waits on them
        loop = asyncio.get_running_loop()
        if self._token_lock is None or self._token_lock_loop is not loop:
            self._token_lock = asyncio.Lock()
            self._token_lock_loop = loop
        return self._token_lock

    async def _ensure_token(self) -> str:
        if self._token:
            return self._token
        if self._token_provider is None:
            raise AuthenticationRequiredError(
                "Authentication required: no token set and no token provider configured"
            )
        async with self._lock():
            # another caller may have fetched it while we waited
            if self._token:
                return self._token
            try:
                token = await self._token_provider()
            except Exception as exc:
                raise AuthenticationRequiredError(
                    f"Failed to retrieve authentication token: {exc}"
                ) from exc
            if not token:
                raise AuthenticationRequiredError("Token provider returned an empty token")
            self._token = token
            return token

    def _url(self, path: str) -> str:
        return str(httpx.URL(self.base_url).join(path))

    def _headers(self, token: Optional[str], json_body: bool = True) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
            headers["Accept"] = "application/json"
        if token:
            headers["Authorization"] = f"Bearer {token}"
        headers.update(self.options.identity.headers())
        headers.update(self.options.client_headers)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.options.timeout_ms / 1000,
        )

    async def _pause(self, attempt: int, retry_after: Optional[str] = None) -> None:
        delay_ms = backoff_delay(attempt, retry_after)
        logger.debug("Retrying in %d ms (attempt %d)", delay_ms, attempt + 1)
        await self._sleep(delay_ms / 1000)

    async def _send(
        self,
        method: str,
        path: str,
        token: Optional[str],
        content: Optional[str] = None,
        json_body: bool = True,
    ) -> httpx.Response:
        """Run the retry loop and return the first successful response."""
        url = self._url(path)
        retries = self.options.retries

        for attempt in range(retries + 1):
            headers = self._headers(token, json_body)
            logger.debug("%s %s (attempt %d/%d)", method, path, attempt + 1, retries + 1)
            try:
                async with self._client() as client:
                    response = await client.request(method, url, headers=headers, content=content)
            except httpx.TimeoutException as exc:
                if attempt < retries:
                    logger.warning("%s %s timed out, retrying", method, path)
                    await self._pause(attempt)
                    continue
                raise RequestTimeoutError(
                    f"Request timed out after {self.options.timeout_ms} ms"
                ) from exc
            except httpx.TransportError as exc:
                if attempt < retries:
                    logger.warning("%s %s failed (%s), retrying", method, path, exc)
                    await self._pause(attempt)
                    continue
                raise

            if response.is_success:
                return response

            if _is_retriable(response.status_code) and attempt < retries:
                logger.warning("%s %s returned %d, retrying", method, path, response.status_code)
                await self._pause(attempt, response.headers.get("Retry-After"))
                continue

            raise APIStatusError(response.status_code, response.reason_phrase, response.text)

        raise AssertionError("unreachable")  # pragma: no cover

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        token = await self._ensure_token()
        content = json.dumps(body) if body is not None else None
        response = await self._send(method, path, token, content)
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            return response.json()
        return None

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body)

    async def get_text(self, path: str, authenticated: bool = False) -> str:
        """GET returning the raw body, for non-JSON resources."""
        token = await self._ensure_token() if authenticated else self._token
        response = await self._send("GET", path, token, json_body=False)
        return response.text
