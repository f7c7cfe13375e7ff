"""Cursor- and offset-based pagination."""

from __future__ import annotations

from .cursors import (
    AdvanceFn,
    OffsetCursor,
    PageCursor,
    TokenCursor,
    next_link,
    next_page_token,
    offset_advance,
)
from .paginator import PageStream, Paginator

__all__ = [
    "Paginator",
    "PageStream",
    "PageCursor",
    "TokenCursor",
    "OffsetCursor",
    "AdvanceFn",
    "next_page_token",
    "next_link",
    "offset_advance",
]
