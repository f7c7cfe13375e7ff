"""Walk one parameter over many values using batched calls.

Architecture:
    The walker binds one call per value of a single walked parameter,
    holding every other argument fixed, plans the calls into batch-sized
    chunks and sends each chunk through the batcher. Results are merged
    back into input order with per-item errors left in place.

Design Decisions:
    - Exactly one parameter varies. Multi-parameter walks must zip their
      values into one composite value before calling ``walk``.
    - A failed item never discards the rest of its chunk; a failed chunk
      never aborts the walk. Only ConfigurationError is raised.
    - Chunks run sequentially by default (rate-limit friendly). With
      ``concurrency > 1`` they overlap, but results are still placed by
      chunk offset so the output order is stable.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from time import perf_counter
from typing import Any

from ...config import MAX_BATCH_SIZE
from ...core.descriptor import BoundCall, CallDescriptor
from ...core.exceptions import BindingError, RestError
from ..telemetry import log_walk_chunk_completed, log_walk_complete
from .batcher import Batcher
from .planners import WalkChunk, WalkPlanner


@dataclass
class WalkResult:
    """Result of a walk.

    Attributes:
        values: Walked values, in input order
        items: Post-processed result or RestError per value, same order
        chunks_used: Number of batches sent
    """

    values: list[Any]
    items: list[Any]
    chunks_used: int = 0

    @property
    def data(self) -> list[Any]:
        """Successful items only, in input order."""
        return [item for item in self.items if not isinstance(item, RestError)]

    @property
    def errors(self) -> dict[int, RestError]:
        """Failed items keyed by their input index."""
        return {i: item for i, item in enumerate(self.items) if isinstance(item, RestError)}

    @property
    def ok(self) -> bool:
        return not self.errors

    def pairs(self) -> list[tuple[Any, Any]]:
        return list(zip(self.values, self.items))


class Walker:
    """Drives the batcher over the values of one parameter."""

    def __init__(self, batcher: Batcher, *, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._batcher = batcher
        self._concurrency = concurrency

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
        """Call ``descriptor`` once per walked value, in batches.

        Args:
            descriptor: Operation to walk
            walk_param: The single parameter that varies
            walk_values: Values for ``walk_param``
            fixed_args: Arguments held constant across every call
            batch_size: Calls per batch
            post: Called as ``post(value, decoded)`` for each success; its
                result is merged in place of the decoded value
            body: Request payload shared by every call
            timeout: Timeout for each batch envelope
            cancel: Cancellation token for every batch envelope

        Returns:
            WalkResult in input order

        Raises:
            BindingError: If ``walk_param`` is undeclared or also fixed
            ConfigurationError: Invalid batch size or batch endpoint
        """
        fixed = dict(fixed_args or {})
        if not descriptor.declares(walk_param):
            raise BindingError(f"{descriptor.id}: cannot walk undeclared parameter {walk_param!r}")
        if walk_param in fixed:
            raise BindingError(
                f"{descriptor.id}: {walk_param!r} is walked and cannot also be a fixed argument"
            )

        values = list(walk_values)
        plans = WalkPlanner(batch_size, self._batcher.max_batch_size).plan(values)
        if plans:
            self._batcher.endpoint_for(descriptor.api_family)

        items: list[Any] = [None] * len(values)
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run_chunk(chunk: WalkChunk) -> None:
            async with semaphore:
                await self._run_chunk(
                    descriptor, walk_param, chunk, fixed, body, post, items, timeout, cancel
                )

        if self._concurrency == 1:
            for chunk in plans:
                await self._run_chunk(
                    descriptor, walk_param, chunk, fixed, body, post, items, timeout, cancel
                )
        else:
            await asyncio.gather(*(run_chunk(chunk) for chunk in plans))

        result = WalkResult(values=values, items=items, chunks_used=len(plans))
        log_walk_complete(
            descriptor_id=descriptor.id,
            chunks_used=result.chunks_used,
            items=len(values),
            failures=len(result.errors),
        )
        return result

    async def _run_chunk(
        self,
        descriptor: CallDescriptor,
        walk_param: str,
        chunk: WalkChunk,
        fixed: dict[str, Any],
        body: Any,
        post: Callable[[Any, Any], Any] | None,
        items: list[Any],
        timeout: float | None,
        cancel: asyncio.Event | None,
    ) -> None:
        start = perf_counter()
        calls: list[BoundCall] = []
        positions: list[int] = []
        for position, value in enumerate(chunk.values, start=chunk.offset):
            try:
                calls.append(descriptor.bind(body=body, **{**fixed, walk_param: value}))
                positions.append(position)
            except BindingError as e:
                items[position] = e

        decoded = (
            await self._batcher.batch(calls, timeout=timeout, cancel=cancel) if calls else []
        )
        failures = 0
        for position, result in zip(positions, decoded):
            if isinstance(result, RestError):
                items[position] = result
                failures += 1
            else:
                value = chunk.values[position - chunk.offset]
                items[position] = post(value, result) if post is not None else result

        log_walk_chunk_completed(
            descriptor_id=descriptor.id,
            chunk_index=chunk.chunk_index,
            items=len(chunk),
            failures=failures + (len(chunk) - len(calls)),
            latency_ms=(perf_counter() - start) * 1000.0,
        )
