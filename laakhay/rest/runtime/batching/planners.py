"""Chunk planning for walks.

This module provides the WalkPlanner class that splits the values of a
walked parameter into batch-sized chunks.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ...config import MAX_BATCH_SIZE
from ...core.exceptions import ConfigurationError


@dataclass(frozen=True)
class WalkChunk:
    """Plan for a single chunk.

    Attributes:
        values: Walked values sent together in one batch
        offset: Position of the first value in the whole walk
        chunk_index: Zero-based index of this chunk in the overall plan
    """

    values: tuple[Any, ...]
    offset: int
    chunk_index: int = 0

    def __len__(self) -> int:
        return len(self.values)


class WalkPlanner:
    """Plans chunk boundaries for a walk.

    The planner never reorders values: concatenating the chunks of a plan
    gives back the input sequence.
    """

    def __init__(self, batch_size: int, max_batch_size: int = MAX_BATCH_SIZE) -> None:
        """Initialize walk planner.

        Args:
            batch_size: Values per chunk
            max_batch_size: Largest batch the target API accepts

        Raises:
            ConfigurationError: If batch_size is not in 1..max_batch_size
        """
        if batch_size < 1:
            raise ConfigurationError("batch_size must be at least 1")
        if batch_size > max_batch_size:
            raise ConfigurationError(
                f"batch_size {batch_size} exceeds the maximum of {max_batch_size} calls per batch"
            )
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def plan(self, values: Sequence[Any], max_chunks: int | None = None) -> list[WalkChunk]:
        """Plan chunks for a walk.

        Args:
            values: Values of the walked parameter, in output order
            max_chunks: Stop planning after this many chunks

        Returns:
            List of chunk plans (empty for an empty walk)
        """
        plans: list[WalkChunk] = []
        offset = 0
        chunk_index = 0

        while offset < len(values):
            if max_chunks is not None and chunk_index >= max_chunks:
                break
            chunk = tuple(values[offset : offset + self._batch_size])
            plans.append(WalkChunk(values=chunk, offset=offset, chunk_index=chunk_index))
            offset += len(chunk)
            chunk_index += 1

        return plans
