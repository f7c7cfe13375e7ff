"""REST call runner: execute (through the cache when configured) and decode."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from ...core.descriptor import BoundCall
from ...core.exceptions import DecodeError, RestError
from ...models import RawResponse
from .executor import Executor

if TYPE_CHECKING:
    from ..cache import CacheLayer


def decode_response(call: BoundCall, response: RawResponse, raw: bool | None = None) -> Any:
    """Apply the call's decoder, or hand back the response in raw mode.

    Raises:
        DecodeError: If the decoder fails; library errors raised by the
            decoder (e.g. ApiStatusError) propagate unchanged
    """
    if call.raw if raw is None else raw:
        return response
    try:
        return call.descriptor.decode(response)
    except RestError:
        raise
    except Exception as e:
        raise DecodeError(
            f"{call.descriptor.id}: could not decode response: {e}", response.status_code
        ) from e


class RestRunner:
    """Runs bound calls and decodes their responses.

    With a cache layer every fetch goes through ``cached_execute``;
    otherwise straight to the executor.
    """

    def __init__(self, executor: Executor, cache: CacheLayer | None = None) -> None:
        self._executor = executor
        self._cache = cache

    @property
    def executor(self) -> Executor:
        return self._executor

    @property
    def cache(self) -> CacheLayer | None:
        return self._cache

    async def fetch(
        self,
        call: BoundCall,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RawResponse:
        if self._cache is not None:
            return await self._cache.cached_execute(call, timeout=timeout, cancel=cancel)
        return await self._executor.execute(call, timeout=timeout, cancel=cancel)

    async def run(
        self,
        call: BoundCall,
        *,
        raw: bool | None = None,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Any:
        """Fetch and decode one call.

        Args:
            call: Bound call
            raw: Override the call's raw passthrough setting
            timeout: Per-call timeout in seconds
            cancel: Cancellation token for the in-flight request
        """
        response = await self.fetch(call, timeout=timeout, cancel=cancel)
        return decode_response(call, response, raw=raw)
