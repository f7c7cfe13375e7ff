"""Test doubles for code built on laakhay.rest.

StubTransport stands in for the HTTP transport: it answers from canned
responses, records every request and understands batch envelopes, so a
batched call can be tested with the same routes as an unbatched one.
RecordingTransport wraps a real transport and captures traffic that a
StubTransport can later replay.
"""

from __future__ import annotations

import json
import random
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import urlsplit

from .core.exceptions import TransportError
from .models import RawResponse
from .runtime.batching.wire import decode_batch_request, encode_batch_response
from .runtime.rest.http_client import Transport


@dataclass(frozen=True)
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None
    batched: bool = False

    def json_body(self) -> Any:
        return json.loads(self.body) if self.body else None


Route = Union[RawResponse, TransportError, Callable[[RecordedRequest], RawResponse]]


def json_response(
    payload: Any,
    status_code: int = 200,
    headers: Mapping[str, str] | None = None,
    reason: str | None = None,
) -> RawResponse:
    """RawResponse with a JSON body."""
    merged = {"Content-Type": "application/json; charset=UTF-8"}
    merged.update(headers or {})
    return RawResponse(
        status_code=status_code,
        headers=merged,
        body=json.dumps(payload).encode("utf-8"),
        reason=reason or ("OK" if status_code == 200 else None),
    )


class StubTransport:
    """Transport that serves canned responses.

    Routes are keyed by (method, URL). A route may be a RawResponse, a list
    of responses served in turn (the last one repeats), a TransportError to
    raise, or a callable receiving the RecordedRequest. Unmatched requests
    get ``default`` (a 404 unless set).

    Args:
        batch_endpoints: URLs treated as batch endpoints
        shuffle_batches: Return batch parts in random order
        seed: Seed for the shuffle
        default: Response for unmatched requests
    """

    def __init__(
        self,
        *,
        batch_endpoints: Iterable[str] = (),
        shuffle_batches: bool = False,
        seed: int | None = None,
        default: RawResponse | None = None,
    ) -> None:
        self._routes: dict[tuple[str, str], list[Route]] = {}
        self._batch_endpoints = set(batch_endpoints)
        self._shuffle = shuffle_batches
        self._random = random.Random(seed)
        self._default = default or json_response(
            {"error": {"code": 404, "message": "Not Found"}}, status_code=404, reason="Not Found"
        )
        self.requests: list[RecordedRequest] = []
        self.closed = False

    def add(self, method: str, url: str, *responses: Route) -> StubTransport:
        """Register one or more responses for (method, url)."""
        if not responses:
            raise ValueError("add() needs at least one response")
        self._routes.setdefault((method.upper(), url), []).extend(responses)
        return self

    def add_json(self, method: str, url: str, payload: Any, status_code: int = 200) -> StubTransport:
        return self.add(method, url, json_response(payload, status_code=status_code))

    def add_batch_endpoint(self, url: str) -> StubTransport:
        self._batch_endpoints.add(url)
        return self

    def call_count(self, method: str | None = None, url: str | None = None) -> int:
        """Requests seen, optionally filtered (batched sub-requests included)."""
        return sum(
            1
            for request in self.requests
            if (method is None or request.method == method.upper())
            and (url is None or request.url == url)
        )

    @property
    def wire_requests(self) -> list[RecordedRequest]:
        """Requests that actually crossed the transport (no batched sub-requests)."""
        return [request for request in self.requests if not request.batched]

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        request = RecordedRequest(method=method.upper(), url=url, headers=dict(headers or {}), body=body)
        self.requests.append(request)
        if url in self._batch_endpoints and request.method == "POST":
            return self._answer_batch(request)
        return self._answer(request)

    def _answer(self, request: RecordedRequest) -> RawResponse:
        queue = self._routes.get((request.method, request.url))
        if queue is None:
            queue = self._routes.get((request.method, request.url.split("?", 1)[0]))
        if not queue:
            return self._default
        route = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(route, TransportError):
            raise route
        if isinstance(route, RawResponse):
            return route
        return route(request)

    def _answer_batch(self, request: RecordedRequest) -> RawResponse:
        content_type = next(
            (v for k, v in request.headers.items() if k.lower() == "content-type"), ""
        )
        origin = "{0.scheme}://{0.netloc}".format(urlsplit(request.url))
        parts: list[tuple[str, RawResponse]] = []
        for embedded in decode_batch_request(request.body or b"", content_type):
            sub_request = RecordedRequest(
                method=embedded.method,
                url=f"{origin}{embedded.target}",
                headers=embedded.headers,
                body=embedded.body or None,
                batched=True,
            )
            self.requests.append(sub_request)
            try:
                response = self._answer(sub_request)
            except TransportError as e:
                response = json_response(
                    {"error": {"code": 503, "message": str(e)}},
                    status_code=503,
                    reason="Service Unavailable",
                )
            parts.append((embedded.content_id, response))

        if self._shuffle:
            self._random.shuffle(parts)
        body, content_type = encode_batch_response(parts)
        return RawResponse(
            status_code=200, headers={"Content-Type": content_type}, body=body, reason="OK"
        )

    @classmethod
    def from_recording(cls, recording: RecordingTransport, **kwargs: Any) -> StubTransport:
        """Replay traffic captured by a RecordingTransport."""
        stub = cls(**kwargs)
        for request, response in recording.exchanges:
            stub.add(request.method, request.url, response)
        return stub

    async def close(self) -> None:
        self.closed = True


class RecordingTransport:
    """Pass-through transport that records request/response exchanges."""

    def __init__(self, inner: Transport) -> None:
        self._inner = inner
        self.exchanges: list[tuple[RecordedRequest, RawResponse]] = []

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        response = await self._inner.send(method, url, headers, body, timeout)
        request = RecordedRequest(method=method.upper(), url=url, headers=dict(headers or {}), body=body)
        self.exchanges.append((request, response))
        return response

    async def close(self) -> None:
        await self._inner.close()
