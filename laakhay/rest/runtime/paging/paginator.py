"""Lazy, strictly sequential pagination over list endpoints.

Architecture:
    A PageStream owns one bound call and one cursor at a time. Each pull
    fetches the current call through the runner (and so through the cache
    layer), decodes it, asks the advance function for the next cursor and
    re-binds the call from it. The next request is derived from the page
    just observed, so pages can never be requested out of order.

Design Decisions:
    - No implicit page cap: the stream ends only when the advance function
      returns None. ``collect(max_pages=...)`` bounds it explicitly.
    - The first page is always fetched, so an advance function that returns
      a cursor k times yields k + 1 pages.
    - Not restartable: once exhausted or failed the stream stays done.
    - The first error is raised from the pull that hit it and the stream
      stops; ``pages_fetched`` says how many pages succeeded before it.
"""

from __future__ import annotations

import asyncio
from typing import Any

from ...core.descriptor import BoundCall
from ...core.enums import PageMethod
from ...core.exceptions import ConfigurationError
from ..rest.runner import RestRunner, decode_response
from ..telemetry import log_page_fetched
from .cursors import AdvanceFn, PageCursor, as_cursor, cursor_value


class PageStream:
    """Async iterator of decoded pages."""

    def __init__(
        self,
        runner: RestRunner,
        call: BoundCall,
        *,
        method: PageMethod,
        advance: AdvanceFn,
        param: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        self._runner = runner
        self._next_call: BoundCall | None = call
        self._method = method
        self._advance = advance
        self._param = param
        self._cancel = cancel
        self._cursor: PageCursor | None = None
        self.pages_fetched = 0

    @property
    def cursor(self) -> PageCursor | None:
        """Cursor that produced the next request (None before the first advance or when done)."""
        return self._cursor

    @property
    def done(self) -> bool:
        return self._next_call is None

    def __aiter__(self) -> PageStream:
        return self

    async def __anext__(self) -> Any:
        call = self._next_call
        if call is None:
            raise StopAsyncIteration

        try:
            response = await self._runner.fetch(call, cancel=self._cancel)
            page = decode_response(call, response)
            advanced = self._advance(page)
            following = None if advanced is None else self._rebind(call, advanced)
        except Exception:
            self._next_call = None
            self._cursor = None
            raise

        page_index = self.pages_fetched
        self.pages_fetched += 1
        self._next_call = following
        self._cursor = None if advanced is None else as_cursor(advanced)
        log_page_fetched(call=call, page_index=page_index, has_next=following is not None)
        return page

    def _rebind(self, call: BoundCall, advanced: Any) -> BoundCall:
        value = cursor_value(advanced)
        if self._method is PageMethod.URL:
            return call.with_url(str(value))
        return call.rebind(**{self._param: value})

    async def collect(self, max_pages: int | None = None) -> list[Any]:
        """Pull pages into a list, stopping after ``max_pages`` if given."""
        pages: list[Any] = []
        while max_pages is None or len(pages) < max_pages:
            try:
                page = await self.__anext__()
            except StopAsyncIteration:
                break
            pages.append(page)
        return pages


class Paginator:
    """Builds page streams on top of a runner."""

    def __init__(self, runner: RestRunner) -> None:
        self._runner = runner

    def page(
        self,
        call: BoundCall,
        *,
        advance: AdvanceFn,
        method: PageMethod = PageMethod.PARAM,
        param: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PageStream:
        """Start a page stream at ``call``.

        Args:
            call: Bound call for the first page
            advance: Maps a decoded page to the next cursor, or None to stop
            method: ``URL`` re-targets the call at the returned URL;
                ``PARAM`` re-binds ``param`` to the returned value
            param: Parameter re-bound on each step (PARAM only)
            cancel: Cancellation token shared by every page request

        Raises:
            ConfigurationError: If ``param`` is missing or undeclared for PARAM
        """
        method = PageMethod(method)
        if method is PageMethod.PARAM:
            if not param:
                raise ConfigurationError("PARAM pagination needs the name of the parameter to advance")
            if not call.descriptor.declares(param):
                raise ConfigurationError(
                    f"{call.descriptor.id}: cannot paginate on undeclared parameter {param!r}"
                )
        return PageStream(
            self._runner, call, method=method, advance=advance, param=param, cancel=cancel
        )
