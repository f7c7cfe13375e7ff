"""High-level client API."""

from .client import RestClient

__all__ = ["RestClient"]
