"""Single-call executor."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from time import perf_counter

from ...config import DEFAULT_TIMEOUT, USER_AGENT
from ...core.descriptor import BoundCall
from ...core.exceptions import TransportError
from ...models import RawResponse
from ..telemetry import log_call_executed, log_call_failed
from .auth import AuthProvider, NoAuth
from .http_client import Transport


class Executor:
    """Issues exactly one transport round trip per bound call.

    The executor never retries and never interprets status codes: a 404 or
    a 500 comes back as a RawResponse like any other.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        auth: AuthProvider | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._transport = transport
        self._auth = auth or NoAuth()
        self._timeout = timeout
        self._user_agent = user_agent

    @property
    def transport(self) -> Transport:
        return self._transport

    async def execute(
        self,
        call: BoundCall,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RawResponse:
        """Send a bound call.

        Args:
            call: Fully resolved request
            timeout: Per-call timeout override in seconds
            cancel: Token that aborts the in-flight request when set

        Returns:
            The undecoded response, whatever its status

        Raises:
            TransportError: Network failure (retryable) or cancellation
                (not retryable)
        """
        if cancel is not None and cancel.is_set():
            raise TransportError(f"{call.descriptor.id}: cancelled before send", retryable=False)

        headers = {"User-Agent": self._user_agent}
        headers.update(call.header_dict())
        headers.update(await self._auth.headers())

        start = perf_counter()
        send = self._transport.send(
            call.method.value,
            call.full_url,
            headers,
            call.body,
            timeout if timeout is not None else self._timeout,
        )
        try:
            if cancel is None:
                response = await send
            else:
                response = await self._send_cancellable(call, send, cancel)
        except asyncio.TimeoutError as e:
            error = TransportError(f"{call.descriptor.id}: request timed out", retryable=True)
            log_call_failed(
                call=call, error_type="TimeoutError", error_message=str(error), retryable=True
            )
            raise error from e
        except TransportError as e:
            log_call_failed(
                call=call,
                error_type=type(e).__name__,
                error_message=str(e),
                retryable=e.retryable,
            )
            raise

        log_call_executed(call=call, response=response, latency_ms=(perf_counter() - start) * 1000.0)
        return response

    async def _send_cancellable(
        self, call: BoundCall, send: Awaitable[RawResponse], cancel: asyncio.Event
    ) -> RawResponse:
        send_task = asyncio.ensure_future(send)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not send_task.done():
                send_task.cancel()

        if send_task in done:
            return send_task.result()

        with contextlib.suppress(asyncio.CancelledError):
            await send_task
        raise TransportError(f"{call.descriptor.id}: request cancelled", retryable=False)
