"""Memoizing wrapper around the executor."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from ...config import default_cache_predicate
from ...core.descriptor import BoundCall
from ...models import RawResponse
from ..rest.executor import Executor
from ..telemetry import log_cache_hit, log_cache_miss, log_cache_stored
from .stores import CacheStore, MemoryStore

CachePredicate = Callable[[RawResponse], bool]


class CacheLayer:
    """Answers repeated calls from a store instead of the network.

    Keys are ``BoundCall.cache_key``: descriptor id, method, URL, sorted
    query pairs and a hash of the body. A response is stored only when the
    predicate accepts it; transport failures are never cached.

    The predicate sees the raw response. For a batch envelope cached as a
    whole that means the still-multipart body; the batcher avoids this by
    caching per sub-call, so the predicate normally sees one part.
    """

    def __init__(
        self,
        executor: Executor,
        *,
        store: CacheStore | None = None,
        predicate: CachePredicate = default_cache_predicate,
    ) -> None:
        self._executor = executor
        self._store: CacheStore = store if store is not None else MemoryStore()
        self._predicate = predicate

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def predicate(self) -> CachePredicate:
        return self._predicate

    def _resolve(self, store: CacheStore | None) -> CacheStore:
        # Stores may define __len__, so an empty override is falsy
        return store if store is not None else self._store

    async def lookup(self, call: BoundCall, store: CacheStore | None = None) -> RawResponse | None:
        """Return the cached response for ``call`` without touching the network."""
        key = call.cache_key
        cached = await self._resolve(store).get(key)
        if cached is None:
            log_cache_miss(call=call, key=key)
        else:
            log_cache_hit(call=call, key=key)
        return cached

    async def remember(
        self,
        call: BoundCall,
        response: RawResponse,
        predicate: CachePredicate | None = None,
        store: CacheStore | None = None,
    ) -> bool:
        """Store ``response`` for ``call`` if the predicate allows it.

        Returns:
            Whether the response was stored
        """
        if not (predicate or self._predicate)(response):
            return False
        key = call.cache_key
        await self._resolve(store).put(key, response)
        log_cache_stored(call=call, key=key, status_code=response.status_code)
        return True

    async def cached_execute(
        self,
        call: BoundCall,
        predicate: CachePredicate | None = None,
        store: CacheStore | None = None,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RawResponse:
        """Execute ``call`` unless an identical call is already cached.

        Args:
            call: Bound call to run
            predicate: Cacheability override for this call
            store: Store override for this call
            timeout: Passed through to the executor
            cancel: Passed through to the executor

        Returns:
            Cached or freshly fetched response (fresh responses are returned
            whether or not they were cacheable)

        Raises:
            TransportError: From the executor; nothing is stored
        """
        cached = await self.lookup(call, store)
        if cached is not None:
            return cached

        response = await self._executor.execute(call, timeout=timeout, cancel=cancel)
        await self.remember(call, response, predicate, store)
        return response

    async def invalidate(self, call: BoundCall) -> bool:
        return await self._store.delete(call.cache_key)

    async def clear(self) -> None:
        await self._store.clear()
