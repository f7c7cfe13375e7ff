"""Runtime components: transport, executor, cache, paging and batching."""

from .batching import Batcher, Walker, WalkResult
from .cache import CacheLayer, DiskStore, MemoryStore, RemoteStore
from .paging import PageStream, Paginator
from .rest import BearerToken, Executor, HTTPClient, NoAuth, RestRunner

__all__ = [
    "HTTPClient",
    "Executor",
    "RestRunner",
    "BearerToken",
    "NoAuth",
    "CacheLayer",
    "MemoryStore",
    "DiskStore",
    "RemoteStore",
    "Paginator",
    "PageStream",
    "Batcher",
    "Walker",
    "WalkResult",
]
