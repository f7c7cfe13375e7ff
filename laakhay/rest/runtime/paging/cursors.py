"""Page cursors and ready-made advance functions.

An advance function receives the decoded page and returns the next cursor,
or None when there are no further pages. It may return a plain value (a
URL, a token, an offset) or one of the cursor types below.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TokenCursor:
    """Opaque server-supplied continuation (page token or next URL)."""

    token: str

    @property
    def value(self) -> str:
        return self.token


@dataclass(frozen=True)
class OffsetCursor:
    """Offset/limit position within a result set of known size.

    Attributes:
        start_index: Offset of the next page (1-based for Google APIs)
        page_size: Items per page
        total_count: Size of the whole result set, if known
    """

    start_index: int
    page_size: int
    total_count: int | None = None

    @property
    def value(self) -> int:
        return self.start_index


PageCursor = Union[TokenCursor, OffsetCursor]

AdvanceFn = Callable[[Any], Any]


def as_cursor(value: Any) -> PageCursor:
    """Wrap a plain advance result in a cursor."""
    if isinstance(value, (TokenCursor, OffsetCursor)):
        return value
    return TokenCursor(str(value))


def cursor_value(value: Any) -> Any:
    """The value to re-bind with for an advance result."""
    if isinstance(value, (TokenCursor, OffsetCursor)):
        return value.value
    return value


def _lookup(page: Any, field: str) -> Any:
    if isinstance(page, dict):
        return page.get(field)
    return getattr(page, field, None)


def next_page_token(field: str = "nextPageToken") -> AdvanceFn:
    """Advance on a continuation token carried in the page body."""

    def advance(page: Any) -> TokenCursor | None:
        token = _lookup(page, field)
        return TokenCursor(str(token)) if token else None

    return advance


def next_link(field: str = "nextLink") -> AdvanceFn:
    """Advance on an absolute next-page URL carried in the page body."""

    def advance(page: Any) -> TokenCursor | None:
        url = _lookup(page, field)
        return TokenCursor(str(url)) if url else None

    return advance


def offset_advance(
    page_size: int,
    *,
    start: int = 1,
    total_field: str = "totalResults",
) -> AdvanceFn:
    """Advance an offset by ``page_size`` until it passes the total.

    Pages are strictly sequential, so the function tracks the current
    offset itself; build a fresh one for every page stream.

    Args:
        page_size: Items per page (the ``max-results`` value)
        start: Offset of the first page
        total_field: Page field holding the total result count

    Example:
        With ``start=1``, ``page_size=10`` and ``totalResults=25`` the stream
        requests offsets 1, 11 and 21.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    current = start

    def advance(page: Any) -> OffsetCursor | None:
        nonlocal current
        total = _lookup(page, total_field)
        if total is None:
            return None
        following = current + page_size
        if following > start - 1 + int(total):
            return None
        current = following
        return OffsetCursor(start_index=following, page_size=page_size, total_count=int(total))

    return advance
