"""Core descriptors, enums and exceptions."""

from .descriptor import (
    REQUIRED,
    BoundCall,
    CallDescriptor,
    bind,
    decode_json,
    template_placeholders,
)
from .enums import HttpMethod, PageMethod
from .exceptions import (
    ApiStatusError,
    BatchPartError,
    BindingError,
    ConfigurationError,
    DecodeError,
    RateLimitError,
    RestError,
    TransportError,
)

__all__ = [
    "REQUIRED",
    "BoundCall",
    "CallDescriptor",
    "bind",
    "decode_json",
    "template_placeholders",
    "HttpMethod",
    "PageMethod",
    "RestError",
    "BindingError",
    "TransportError",
    "DecodeError",
    "ApiStatusError",
    "RateLimitError",
    "BatchPartError",
    "ConfigurationError",
]
