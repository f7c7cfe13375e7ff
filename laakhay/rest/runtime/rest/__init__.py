"""REST runtime abstractions."""

from .auth import AuthProvider, BearerToken, NoAuth
from .executor import Executor
from .http_client import HTTPClient, Transport
from .runner import RestRunner, decode_response

__all__ = [
    "HTTPClient",
    "Transport",
    "AuthProvider",
    "BearerToken",
    "NoAuth",
    "Executor",
    "RestRunner",
    "decode_response",
]
