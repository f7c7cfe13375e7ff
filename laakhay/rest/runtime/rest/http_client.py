"""aiohttp-backed transport."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

import aiohttp

from ...core.exceptions import TransportError
from ...models import RawResponse

logger = logging.getLogger(__name__)

# A hook may return a delay in seconds to throttle the next request
ResponseHook = Callable[[aiohttp.ClientResponse], "float | None | Awaitable[float | None]"]


class Transport(Protocol):
    """Anything that can put one HTTP request on the wire.

    Implementations return non-2xx statuses as RawResponse and raise
    TransportError only for network-level failures.
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> RawResponse: ...

    async def close(self) -> None: ...


class HTTPClient:
    """Async HTTP client wrapper."""

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        self.base_url = base_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._response_hooks: list[ResponseHook] = []
        self._throttle_until: float | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    def add_response_hook(self, hook: ResponseHook) -> None:
        """Register a hook called with every response before it is read."""
        self._response_hooks.append(hook)

    def set_throttle(self, delay: float) -> None:
        """Hold the next request back for ``delay`` seconds."""
        if delay <= 0:
            return
        until = time.time() + delay
        if self._throttle_until is None or until > self._throttle_until:
            self._throttle_until = until

    async def _wait_for_throttle(self) -> None:
        if self._throttle_until is None:
            return
        remaining = self._throttle_until - time.time()
        if remaining > 0:
            await asyncio.sleep(remaining)
        self._throttle_until = None

    async def _run_hooks(self, response: aiohttp.ClientResponse) -> None:
        for hook in self._response_hooks:
            try:
                delay = hook(response)
                if inspect.isawaitable(delay):
                    delay = await delay
            except Exception:
                logger.warning("response_hook_failed", exc_info=True)
                continue
            if delay:
                self.set_throttle(float(delay))

    def _resolve(self, url: str) -> str:
        # If base_url is set and url is relative, combine them
        if self.base_url and not url.startswith("http"):
            return f"{self.base_url}{url}"
        return url

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        """Send one request and return the undecoded response.

        Raises:
            TransportError: On timeouts and connection failures
        """
        url = self._resolve(url)
        await self._wait_for_throttle()

        kwargs: dict[str, Any] = {"headers": dict(headers or {}), "data": body}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with self.session.request(method, url, **kwargs) as response:
                await self._run_hooks(response)
                payload = await response.read()
                return RawResponse(
                    status_code=response.status,
                    headers=dict(response.headers),
                    body=payload,
                    reason=response.reason,
                )
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out", retryable=True) from e
        except aiohttp.ClientConnectionError as e:
            raise TransportError(f"{method} {url} failed: {e}", retryable=True) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}", retryable=False) from e

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
