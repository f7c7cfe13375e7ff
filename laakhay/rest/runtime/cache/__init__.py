"""Response caching with pluggable stores and invalidation predicates."""

from __future__ import annotations

from .layer import CacheLayer, CachePredicate
from .stores import CacheStore, DiskStore, MemoryStore, RemoteStore

__all__ = [
    "CacheLayer",
    "CachePredicate",
    "CacheStore",
    "MemoryStore",
    "DiskStore",
    "RemoteStore",
]
