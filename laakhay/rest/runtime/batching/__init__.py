"""Multipart request batching and parameter walks.

Architecture:
    - wire.py: multipart/mixed codec for batch envelopes
    - batcher.py: one envelope per group of bound calls, demultiplexed
    - planners.py: splits walked values into batch-sized chunks
    - walker.py: binds one call per walked value and merges results
"""

from __future__ import annotations

from .batcher import Batcher
from .planners import WalkChunk, WalkPlanner
from .walker import Walker, WalkResult
from .wire import (
    EmbeddedRequest,
    decode_batch_request,
    decode_batch_response,
    encode_batch_request,
    encode_batch_response,
)

__all__ = [
    "Batcher",
    "Walker",
    "WalkResult",
    "WalkPlanner",
    "WalkChunk",
    "EmbeddedRequest",
    "encode_batch_request",
    "decode_batch_request",
    "encode_batch_response",
    "decode_batch_response",
]
