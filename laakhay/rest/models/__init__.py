"""Data models."""

from .response import CacheEntry, RawResponse

__all__ = ["RawResponse", "CacheEntry"]
