"""Pluggable response stores.

Architecture:
    The cache layer only needs ``get``/``put`` (plus ``delete``/``clear``
    for explicit invalidation), so stores are described by a Protocol
    rather than a base class. Three variants ship here:

    - MemoryStore: cachetools TTL/LRU cache, per process
    - DiskStore: diskcache-backed keyed files, shared across processes
    - RemoteStore: any redis.asyncio-compatible client

Design Decisions:
    - Stores persist CacheEntry records so ``stored_at`` survives a round
      trip through disk or the network.
    - Concurrent puts on one key are last-writer-wins; responses for an
      identical call are interchangeable.
    - Expiry is store-specific; the cache layer never expires entries.
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import diskcache
from cachetools import Cache, LRUCache, TTLCache

from ...models import CacheEntry, RawResponse


class CacheStore(Protocol):
    """Storage capability used by the cache layer."""

    async def get(self, key: str) -> RawResponse | None:
        """Return the stored response for ``key`` or None."""
        ...

    async def put(self, key: str, response: RawResponse) -> None:
        """Store ``response`` under ``key``, replacing any previous value."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def clear(self) -> None: ...


class MemoryStore:
    """In-process store on a cachetools cache.

    A TTLCache when ``ttl`` is set, otherwise an LRUCache. Both evict the
    least recently used entry once ``max_entries`` is reached.

    Args:
        ttl: Seconds an entry stays valid (None = until cleared)
        max_entries: Size bound (None = unbounded)
        timer: Clock used for expiry, in seconds
    """

    def __init__(
        self,
        ttl: float | None = None,
        max_entries: int | None = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        maxsize = max_entries if max_entries is not None else math.inf
        self._cache: Cache[str, CacheEntry] = (
            TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
            if ttl is not None
            else LRUCache(maxsize=maxsize)
        )
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._cache

    async def get(self, key: str) -> RawResponse | None:
        with self._lock:
            entry = self._cache.get(key)
        return entry.value if entry is not None else None

    async def put(self, key: str, response: RawResponse) -> None:
        entry = CacheEntry(key=key, value=response)
        with self._lock:
            self._cache[key] = entry

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class DiskStore:
    """Keyed files on local disk via diskcache.

    diskcache is synchronous, so calls run in a worker thread. Entries are
    stored as CacheEntry JSON; bodies are base64 encoded.
    """

    def __init__(self, directory: str | Path, ttl: float | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = ttl
        self._cache = diskcache.Cache(str(directory))

    @property
    def directory(self) -> str:
        return self._cache.directory

    async def get(self, key: str) -> RawResponse | None:
        stored = await asyncio.to_thread(self._cache.get, key)
        if stored is None:
            return None
        return CacheEntry.model_validate_json(stored).value

    async def put(self, key: str, response: RawResponse) -> None:
        payload = CacheEntry(key=key, value=response).model_dump_json()
        await asyncio.to_thread(self._cache.set, key, payload, expire=self._ttl)

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._cache.delete, key)

    async def clear(self) -> None:
        await asyncio.to_thread(self._cache.clear)

    def close(self) -> None:
        self._cache.close()


class RemoteStore:
    """Remote key-value store behind a redis.asyncio-style client.

    The client is injected; it must provide async ``get``, ``set`` (with an
    ``ex`` expiry argument), ``delete`` and ``scan_iter``.

    Args:
        client: Async key-value client
        prefix: Namespace prepended to every key
        ttl: Expiry in whole seconds (None = no expiry)
    """

    def __init__(self, client: Any, prefix: str = "laakhay-rest:", ttl: int | None = None) -> None:
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        self._client = client
        self._prefix = prefix
        self._ttl = ttl

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> RawResponse | None:
        stored = await self._client.get(self._key(key))
        if stored is None:
            return None
        return CacheEntry.model_validate_json(stored).value

    async def put(self, key: str, response: RawResponse) -> None:
        entry = CacheEntry(key=key, value=response, stored_at=datetime.now(UTC))
        await self._client.set(self._key(key), entry.model_dump_json(), ex=self._ttl)

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(self._key(key)))

    async def clear(self) -> None:
        keys = [key async for key in self._client.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._client.delete(*keys)
