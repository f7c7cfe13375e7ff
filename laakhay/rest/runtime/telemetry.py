"""Structured logging for calls, cache, paging and batching.

Every event is a snake_case message with its fields in ``extra`` so log
handlers can ship them as structured records.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.descriptor import BoundCall
    from ..models import RawResponse

logger = logging.getLogger(__name__)


def log_call_executed(
    *,
    call: BoundCall,
    response: RawResponse,
    latency_ms: float | None = None,
) -> None:
    """Log a completed transport round trip."""
    logger.debug(
        "call_executed",
        extra={
            "descriptor_id": call.descriptor.id,
            "method": call.method.value,
            "url": call.full_url,
            "status_code": response.status_code,
            "latency_ms": latency_ms,
        },
    )


def log_call_failed(*, call: BoundCall, error_type: str, error_message: str, retryable: bool) -> None:
    logger.warning(
        "call_failed",
        extra={
            "descriptor_id": call.descriptor.id,
            "url": call.full_url,
            "error_type": error_type,
            "error_message": error_message,
            "retryable": retryable,
        },
    )


def log_cache_hit(*, call: BoundCall, key: str) -> None:
    logger.debug("cache_hit", extra={"descriptor_id": call.descriptor.id, "cache_key": key})


def log_cache_miss(*, call: BoundCall, key: str) -> None:
    logger.debug("cache_miss", extra={"descriptor_id": call.descriptor.id, "cache_key": key})


def log_cache_stored(*, call: BoundCall, key: str, status_code: int) -> None:
    logger.debug(
        "cache_stored",
        extra={
            "descriptor_id": call.descriptor.id,
            "cache_key": key,
            "status_code": status_code,
        },
    )


def log_page_fetched(*, call: BoundCall, page_index: int, has_next: bool) -> None:
    """Log one page pulled from a page stream.

    Args:
        call: The bound call that produced the page
        page_index: Zero-based index of the page in its stream
        has_next: Whether the advance function produced another cursor
    """
    logger.info(
        "page_fetched",
        extra={
            "descriptor_id": call.descriptor.id,
            "url": call.full_url,
            "page_index": page_index,
            "has_next": has_next,
        },
    )


def log_batch_sent(
    *,
    endpoint: str,
    api_family: str | None,
    parts: int,
    cached: int,
    status_code: int | None = None,
    latency_ms: float | None = None,
) -> None:
    """Log one batch envelope round trip.

    Args:
        endpoint: Batch endpoint URL
        api_family: API family of every part
        parts: Number of parts sent on the wire
        cached: Number of calls answered from cache and left out
        status_code: Envelope status (None if the transport failed)
        latency_ms: Round trip latency in milliseconds
    """
    logger.info(
        "batch_sent",
        extra={
            "endpoint": endpoint,
            "api_family": api_family,
            "parts": parts,
            "cached": cached,
            "status_code": status_code,
            "latency_ms": latency_ms,
        },
    )


def log_batch_part_error(*, endpoint: str, index: int, error_message: str) -> None:
    logger.warning(
        "batch_part_error",
        extra={"endpoint": endpoint, "index": index, "error_message": error_message},
    )


def log_walk_chunk_completed(
    *,
    descriptor_id: str,
    chunk_index: int,
    items: int,
    failures: int,
    latency_ms: float | None = None,
) -> None:
    logger.info(
        "walk_chunk_completed",
        extra={
            "descriptor_id": descriptor_id,
            "chunk_index": chunk_index,
            "items": items,
            "failures": failures,
            "latency_ms": latency_ms,
        },
    )


def log_walk_complete(*, descriptor_id: str, chunks_used: int, items: int, failures: int) -> None:
    logger.info(
        "walk_complete",
        extra={
            "descriptor_id": descriptor_id,
            "chunks_used": chunks_used,
            "items": items,
            "failures": failures,
        },
    )
