"""Batch execution: many bound calls, one multipart round trip.

Architecture:
    The batcher resolves the batch endpoint for the calls' API family,
    answers what it can from the cache layer, serializes the rest into one
    multipart envelope, sends it through the executor and demultiplexes
    the response back into input order.

Design Decisions:
    - Correlation ids are envelope indices; demultiplexing keys on them so
      part order in the response does not matter.
    - Failures are values: each slot holds a response, a decoded value or
      the RestError for that item. Only ConfigurationError is raised, and
      it is raised before any network call.
    - Caching is per sub-call, keyed exactly like a single call, so a
      batched and an unbatched fetch of the same call share an entry.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from time import perf_counter
from typing import TYPE_CHECKING, Any

from ...config import ClientConfig
from ...core.descriptor import BoundCall, CallDescriptor
from ...core.enums import HttpMethod
from ...core.exceptions import BatchPartError, ConfigurationError, RestError, TransportError
from ...models import RawResponse
from ..rest.executor import Executor
from ..rest.runner import decode_response
from ..telemetry import log_batch_part_error, log_batch_sent
from .wire import decode_batch_response, encode_batch_request

if TYPE_CHECKING:
    from ..cache import CacheLayer


class Batcher:
    """Sends bound calls as multipart batches."""

    def __init__(
        self,
        executor: Executor,
        *,
        config: ClientConfig | None = None,
        cache: CacheLayer | None = None,
    ) -> None:
        self._executor = executor
        self._config = config or ClientConfig()
        self._cache = cache

    @property
    def max_batch_size(self) -> int:
        return self._config.max_batch_size

    def resolve_endpoint(self, calls: Sequence[BoundCall]) -> str:
        """Batch endpoint shared by every call.

        Raises:
            ConfigurationError: Mixed API families, unknown family or too
                many calls for one batch
        """
        if len(calls) > self._config.max_batch_size:
            raise ConfigurationError(
                f"{len(calls)} calls exceed the maximum of "
                f"{self._config.max_batch_size} calls per batch"
            )
        families = {call.api_family for call in calls}
        if len(families) > 1:
            named = sorted(str(family) for family in families)
            raise ConfigurationError(f"Cannot batch calls from different API families: {named}")
        return self.endpoint_for(next(iter(families)))

    def endpoint_for(self, family: str | None) -> str:
        """Batch endpoint for one API family (ConfigurationError if none)."""
        return self._config.batch_endpoint(family)

    async def execute(
        self,
        calls: Sequence[BoundCall],
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[RawResponse | RestError]:
        """Run calls as one batch and return per-call raw responses.

        Args:
            calls: Bound calls, all of one API family
            timeout: Timeout for the envelope request
            cancel: Cancellation token for the envelope request

        Returns:
            One RawResponse or RestError per call, in input order
        """
        calls = list(calls)
        if not calls:
            return []
        endpoint = self.resolve_endpoint(calls)

        results: list[RawResponse | RestError | None] = [None] * len(calls)
        pending: list[int] = []
        for index, call in enumerate(calls):
            cached = await self._cache.lookup(call) if self._cache is not None else None
            if cached is not None:
                results[index] = cached
            else:
                pending.append(index)

        if pending:
            await self._send(calls, pending, results, endpoint, timeout=timeout, cancel=cancel)
        return [result for result in results if result is not None]

    async def _send(
        self,
        calls: list[BoundCall],
        pending: list[int],
        results: list[RawResponse | RestError | None],
        endpoint: str,
        *,
        timeout: float | None,
        cancel: asyncio.Event | None,
    ) -> None:
        family = calls[pending[0]].api_family
        body, content_type = encode_batch_request([calls[i] for i in pending])
        envelope = BoundCall(
            descriptor=_envelope_descriptor(family, endpoint),
            url=endpoint,
            body=body,
            headers=(("Content-Type", content_type),),
            raw=True,
        )

        start = perf_counter()
        try:
            response = await self._executor.execute(envelope, timeout=timeout, cancel=cancel)
        except TransportError as e:
            log_batch_sent(
                endpoint=endpoint,
                api_family=family,
                parts=len(pending),
                cached=len(calls) - len(pending),
            )
            for index in pending:
                results[index] = e
            return

        log_batch_sent(
            endpoint=endpoint,
            api_family=family,
            parts=len(pending),
            cached=len(calls) - len(pending),
            status_code=response.status_code,
            latency_ms=(perf_counter() - start) * 1000.0,
        )

        parts = decode_batch_response(response, len(pending))
        for position, index in enumerate(pending):
            part = parts[position]
            if isinstance(part, BatchPartError):
                part.index = index
                log_batch_part_error(endpoint=endpoint, index=index, error_message=str(part))
            elif self._cache is not None:
                await self._cache.remember(calls[index], part)
            results[index] = part

    async def batch(
        self,
        calls: Sequence[BoundCall],
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[Any]:
        """Run calls as one batch and decode each part.

        Returns:
            One decoded value (the RawResponse for raw calls) or RestError
            per call, in input order
        """
        calls = list(calls)
        responses = await self.execute(calls, timeout=timeout, cancel=cancel)
        decoded: list[Any] = []
        for call, response in zip(calls, responses):
            if isinstance(response, RestError):
                decoded.append(response)
                continue
            try:
                decoded.append(decode_response(call, response))
            except RestError as e:
                decoded.append(e)
        return decoded


def _envelope_descriptor(family: str | None, endpoint: str) -> CallDescriptor:
    return CallDescriptor(
        id=f"batch.{family}",
        method=HttpMethod.POST,
        url_template=endpoint.replace("{", "{{").replace("}", "}}"),
        api_family=family,
        raw=True,
    )
