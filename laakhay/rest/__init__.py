"""Laakhay REST - batching, paging and caching runtime for REST API clients."""

from .api import RestClient
from .config import (
    BATCH_ENDPOINTS,
    DEFAULT_TIMEOUT,
    MAX_BATCH_SIZE,
    ClientConfig,
    default_cache_predicate,
    get_batch_endpoint,
)
from .core import (
    REQUIRED,
    ApiStatusError,
    BatchPartError,
    BindingError,
    BoundCall,
    CallDescriptor,
    ConfigurationError,
    DecodeError,
    HttpMethod,
    PageMethod,
    RateLimitError,
    RestError,
    TransportError,
    bind,
    decode_json,
)
from .models import CacheEntry, RawResponse
from .runtime import (
    Batcher,
    BearerToken,
    CacheLayer,
    DiskStore,
    Executor,
    HTTPClient,
    MemoryStore,
    NoAuth,
    PageStream,
    Paginator,
    RemoteStore,
    RestRunner,
    Walker,
    WalkResult,
)
from .runtime.paging import OffsetCursor, TokenCursor, next_link, next_page_token, offset_advance

__version__ = "0.1.0"

__all__ = [
    # Facade
    "RestClient",
    # Configuration
    "ClientConfig",
    "BATCH_ENDPOINTS",
    "DEFAULT_TIMEOUT",
    "MAX_BATCH_SIZE",
    "default_cache_predicate",
    "get_batch_endpoint",
    # Descriptors
    "REQUIRED",
    "CallDescriptor",
    "BoundCall",
    "bind",
    "decode_json",
    "HttpMethod",
    "PageMethod",
    # Models
    "RawResponse",
    "CacheEntry",
    # Runtime
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
    "TokenCursor",
    "OffsetCursor",
    "next_page_token",
    "next_link",
    "offset_advance",
    "Batcher",
    "Walker",
    "WalkResult",
    # Exceptions
    "RestError",
    "BindingError",
    "TransportError",
    "DecodeError",
    "ApiStatusError",
    "RateLimitError",
    "BatchPartError",
    "ConfigurationError",
]
