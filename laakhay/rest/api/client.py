"""Ergonomic RestClient facade over the runtime components.

Architecture:
    This module implements the Facade pattern to wire a transport, an
    executor, an optional cache layer, a paginator, a batcher and a walker
    together behind one object. RestClient handles:
    - Component construction from a ClientConfig
    - Argument binding for descriptor-level calls
    - Resource lifecycle management of an owned transport

Design Decisions:
    - Transport injection allows testing with StubTransport
    - Caching is opt-in: pass a store (or ``cache=True`` for memory)
    - Raw passthrough is per call or per descriptor, never client-wide
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..config import MAX_BATCH_SIZE, ClientConfig
from ..core.descriptor import BoundCall, CallDescriptor
from ..core.enums import PageMethod
from ..models import RawResponse
from ..runtime.batching import Batcher, Walker, WalkResult
from ..runtime.cache import CacheLayer, CacheStore, MemoryStore
from ..runtime.paging import AdvanceFn, PageStream, Paginator
from ..runtime.rest import AuthProvider, Executor, HTTPClient, RestRunner, Transport

logger = logging.getLogger(__name__)


class RestClient:
    """High-level entry point for calling, paging, batching and walking.

    Example:
        >>> files_get = CallDescriptor(
        ...     id="drive.files.get",
        ...     method=HttpMethod.GET,
        ...     url_template="https://www.googleapis.com/drive/v3/files/{fileId}",
        ...     query_params={"fields": None},
        ...     api_family="drive",
        ... )
        >>> async with RestClient(auth=BearerToken(token), cache=True) as client:
        ...     meta = await client.call(files_get, fileId="abc", fields="id,name")
        ...     result = await client.walk(files_get, "fileId", ids, batch_size=50)
    """

    def __init__(
        self,
        *,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        auth: AuthProvider | None = None,
        store: CacheStore | None = None,
        cache: bool = False,
        walk_concurrency: int = 1,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client settings (defaults to ClientConfig())
            transport: Transport to use; an HTTPClient is created and owned
                when omitted
            auth: Credential collaborator
            store: Cache store; enables caching when given
            cache: Enable caching with an in-memory store when no store is given
            walk_concurrency: Chunks a walk may run at the same time
        """
        self._config = config or ClientConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HTTPClient(timeout=self._config.timeout)
        self._executor = Executor(
            self._transport,
            auth=auth,
            timeout=self._config.timeout,
            user_agent=self._config.user_agent,
        )
        if store is None and cache:
            store = MemoryStore()
        self._cache = (
            CacheLayer(self._executor, store=store, predicate=self._config.cache_predicate)
            if store is not None
            else None
        )
        self._runner = RestRunner(self._executor, self._cache)
        self._paginator = Paginator(self._runner)
        self._batcher = Batcher(self._executor, config=self._config, cache=self._cache)
        self._walker = Walker(self._batcher, concurrency=walk_concurrency)
        self._closed = False

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> CacheLayer | None:
        return self._cache

    @property
    def executor(self) -> Executor:
        return self._executor

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("RestClient is closed")

    async def call(
        self,
        target: CallDescriptor | BoundCall,
        *,
        raw: bool | None = None,
        body: Any = None,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
        **args: Any,
    ) -> Any:
        """Run one call and decode it.

        Args:
            target: A bound call, or a descriptor bound here from ``args``
            raw: Return the RawResponse instead of decoding it
            body: Request payload (descriptor targets only)
            timeout: Per-call timeout in seconds
            cancel: Cancellation token
            **args: Path and query arguments (descriptor targets only)
        """
        self._ensure_open()
        call = self._resolve(target, body=body, args=args)
        return await self._runner.run(call, raw=raw, timeout=timeout, cancel=cancel)

    async def fetch_raw(self, target: CallDescriptor | BoundCall, **args: Any) -> RawResponse:
        """Run one call and return the untouched response."""
        return await self.call(target, raw=True, **args)

    def page(
        self,
        target: CallDescriptor | BoundCall,
        *,
        advance: AdvanceFn,
        method: PageMethod = PageMethod.PARAM,
        param: str | None = None,
        cancel: asyncio.Event | None = None,
        **args: Any,
    ) -> PageStream:
        """Lazily page through a list endpoint (see Paginator.page)."""
        self._ensure_open()
        call = self._resolve(target, body=None, args=args)
        return self._paginator.page(call, advance=advance, method=method, param=param, cancel=cancel)

    async def batch(
        self,
        calls: Sequence[BoundCall],
        *,
        raw: bool = False,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Any]:
        """Send calls as one batch; per-call results or errors in input order."""
        self._ensure_open()
        if raw:
            return await self._batcher.execute(calls, timeout=timeout, cancel=cancel)
        return await self._batcher.batch(calls, timeout=timeout, cancel=cancel)

    async def walk(
        self,
        descriptor: CallDescriptor,
        walk_param: str,
        walk_values: Sequence[Any],
        fixed_args: Mapping[str, Any] | None = None,
        batch_size: int = MAX_BATCH_SIZE,
        post: Callable[[Any, Any], Any] | None = None,
        *,
        body: Any = None,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> WalkResult:
        """Walk one parameter over many values using batches (see Walker.walk)."""
        self._ensure_open()
        return await self._walker.walk(
            descriptor,
            walk_param,
            walk_values,
            fixed_args,
            batch_size=batch_size,
            post=post,
            body=body,
            timeout=timeout,
            cancel=cancel,
        )

    async def clear_cache(self) -> None:
        if self._cache is not None:
            await self._cache.clear()

    def _resolve(
        self, target: CallDescriptor | BoundCall, *, body: Any, args: Mapping[str, Any]
    ) -> BoundCall:
        if isinstance(target, BoundCall):
            if args or body is not None:
                raise TypeError("Arguments can only be given with a CallDescriptor target")
            return target
        return target.bind(body=body, **args)

    async def close(self) -> None:
        """Close the client and an owned transport."""
        if self._closed:
            return
        self._closed = True
        if self._owns_transport:
            await self._transport.close()
        logger.debug("RestClient closed")

    async def __aenter__(self) -> RestClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
