"""multipart/mixed batch codec.

Request envelope::

    --batch_<token>
    Content-Type: application/http
    Content-ID: <item0>

    GET /drive/v3/files/abc?fields=id HTTP/1.1
    Content-Type: application/json

    <body>
    --batch_<token>--

The response mirrors it: one part per request, ``Content-ID:
<response-item0>``, each embedding a full HTTP response. Parts may come
back in any order; the Content-ID is the only link to the request.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from email.message import Message

from ...core.descriptor import BoundCall
from ...core.exceptions import BatchPartError, DecodeError
from ...models import RawResponse

CRLF = b"\r\n"
RESPONSE_ID_PREFIX = "response-"

_CONTENT_ID = re.compile(r"^<?(?:response-)?item(\d+)>?$")
_STATUS_LINE = re.compile(r"^HTTP/\d(?:\.\d)?\s+(\d{3})(?:\s+(.*))?$")
_REQUEST_LINE = re.compile(r"^([A-Z]+)\s+(\S+)(?:\s+HTTP/\d(?:\.\d)?)?$")


@dataclass(frozen=True)
class EmbeddedRequest:
    """One request parsed out of a batch envelope."""

    content_id: str
    method: str
    target: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""


def new_boundary() -> str:
    return f"batch_{uuid.uuid4().hex}"


def content_id(index: int) -> str:
    """Correlation id for the request at ``index``."""
    return f"item{index}"


def parse_content_id(value: str | None) -> int | None:
    """Index encoded in a request or response Content-ID, if any."""
    if not value:
        return None
    match = _CONTENT_ID.match(value.strip())
    return int(match.group(1)) if match else None


def boundary_of(content_type: str) -> str | None:
    """Extract the multipart boundary from a Content-Type value."""
    if not content_type:
        return None
    message = Message()
    message["Content-Type"] = content_type
    if message.get_content_maintype() != "multipart":
        return None
    boundary = message.get_param("boundary")
    return boundary if isinstance(boundary, str) and boundary else None


def split_multipart(body: bytes, boundary: str) -> list[bytes]:
    """Split a multipart body into raw parts (headers + content)."""
    delimiter = b"--" + boundary.encode("ascii")
    sections = body.split(delimiter)
    parts: list[bytes] = []
    for section in sections[1:]:
        if section.startswith(b"--"):
            break
        if section.startswith(CRLF):
            section = section[2:]
        elif section.startswith(b"\n"):
            section = section[1:]
        if section.endswith(CRLF):
            section = section[:-2]
        elif section.endswith(b"\n"):
            section = section[:-1]
        parts.append(section)
    return parts


def _split_head(data: bytes) -> tuple[list[str], bytes]:
    """Split an HTTP-style message into header lines and body."""
    candidates = [(data.find(sep), sep) for sep in (b"\r\n\r\n", b"\n\n")]
    found = [(pos, sep) for pos, sep in candidates if pos != -1]
    if not found:
        return data.decode("latin-1").splitlines(), b""
    pos, sep = min(found)
    head = data[:pos].decode("latin-1")
    return head.splitlines(), data[pos + len(sep) :]


def _parse_headers(lines: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        if not line.strip():
            continue
        name, sep, value = line.partition(":")
        if not sep:
            raise ValueError(f"malformed header line {line!r}")
        headers[name.strip()] = value.strip()
    return headers


def _header(headers: dict[str, str], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _trim_to_length(body: bytes, headers: dict[str, str]) -> bytes:
    length = _header(headers, "Content-Length")
    if length is not None and length.isdigit():
        return body[: int(length)]
    return body


def encode_batch_request(
    calls: Sequence[BoundCall], boundary: str | None = None
) -> tuple[bytes, str]:
    """Serialize bound calls into one multipart/mixed body.

    Returns:
        (body, content_type) for the envelope request
    """
    boundary = boundary or new_boundary()
    chunks: list[bytes] = []
    for index, call in enumerate(calls):
        chunks.append(b"--" + boundary.encode("ascii") + CRLF)
        chunks.append(b"Content-Type: application/http" + CRLF)
        chunks.append(b"Content-Transfer-Encoding: binary" + CRLF)
        chunks.append(f"Content-ID: <{content_id(index)}>".encode("ascii") + CRLF)
        chunks.append(CRLF)
        chunks.append(f"{call.method.value} {call.path_and_query} HTTP/1.1".encode() + CRLF)
        for name, value in call.headers:
            chunks.append(f"{name}: {value}".encode() + CRLF)
        if call.body is not None:
            chunks.append(f"Content-Length: {len(call.body)}".encode("ascii") + CRLF)
        chunks.append(CRLF)
        if call.body is not None:
            chunks.append(call.body)
        chunks.append(CRLF)
    chunks.append(b"--" + boundary.encode("ascii") + b"--" + CRLF)
    return b"".join(chunks), f"multipart/mixed; boundary={boundary}"


def decode_batch_request(body: bytes, content_type: str) -> list[EmbeddedRequest]:
    """Parse a batch envelope back into its embedded requests.

    Raises:
        DecodeError: If the envelope or one of its parts is malformed
    """
    boundary = boundary_of(content_type)
    if boundary is None:
        raise DecodeError(f"Not a multipart request: {content_type!r}")

    requests: list[EmbeddedRequest] = []
    for raw_part in split_multipart(body, boundary):
        try:
            outer_lines, inner = _split_head(raw_part)
            outer = _parse_headers(outer_lines)
            inner_lines, inner_body = _split_head(inner)
            match = _REQUEST_LINE.match(inner_lines[0].strip()) if inner_lines else None
            if match is None:
                raise ValueError("missing request line")
            headers = _parse_headers(inner_lines[1:])
        except ValueError as e:
            raise DecodeError(f"Malformed batch request part: {e}") from e
        requests.append(
            EmbeddedRequest(
                content_id=(_header(outer, "Content-ID") or "").strip("<>"),
                method=match.group(1),
                target=match.group(2),
                headers=headers,
                body=_trim_to_length(inner_body, headers),
            )
        )
    return requests


def encode_batch_response(
    parts: Sequence[tuple[str, RawResponse]], boundary: str | None = None
) -> tuple[bytes, str]:
    """Serialize (request content id, response) pairs as a batch response.

    Parts are written in the order given; callers may shuffle them.
    """
    boundary = boundary or new_boundary()
    chunks: list[bytes] = []
    for request_id, response in parts:
        chunks.append(b"--" + boundary.encode("ascii") + CRLF)
        chunks.append(b"Content-Type: application/http" + CRLF)
        chunks.append(f"Content-ID: <{RESPONSE_ID_PREFIX}{request_id}>".encode("ascii") + CRLF)
        chunks.append(CRLF)
        reason = response.reason or ""
        chunks.append(f"HTTP/1.1 {response.status_code} {reason}".rstrip().encode() + CRLF)
        for name, value in response.headers.items():
            if name.lower() == "content-length":
                continue
            chunks.append(f"{name}: {value}".encode() + CRLF)
        chunks.append(f"Content-Length: {len(response.body)}".encode("ascii") + CRLF)
        chunks.append(CRLF)
        chunks.append(response.body)
        chunks.append(CRLF)
    chunks.append(b"--" + boundary.encode("ascii") + b"--" + CRLF)
    return b"".join(chunks), f"multipart/mixed; boundary={boundary}"


def parse_response_part(raw_part: bytes) -> tuple[int | None, RawResponse]:
    """Parse one response part into (correlation index, embedded response).

    Raises:
        ValueError: If the embedded HTTP response is malformed
    """
    outer_lines, inner = _split_head(raw_part)
    outer = _parse_headers(outer_lines)
    index = parse_content_id(_header(outer, "Content-ID"))

    inner_lines, inner_body = _split_head(inner)
    if not inner_lines:
        raise ValueError("empty embedded response")
    match = _STATUS_LINE.match(inner_lines[0].strip())
    if match is None:
        raise ValueError(f"malformed status line {inner_lines[0]!r}")
    headers = _parse_headers(inner_lines[1:])
    return index, RawResponse(
        status_code=int(match.group(1)),
        headers=headers,
        body=_trim_to_length(inner_body, headers),
        reason=match.group(2) or None,
    )


def decode_batch_response(
    response: RawResponse, expected: int
) -> list[RawResponse | BatchPartError]:
    """Demultiplex a batch response into ``expected`` per-call results.

    Results are ordered by correlation id, not by part position. A part
    that is missing, carries an unknown id or cannot be parsed becomes a
    BatchPartError in its slot; other slots are unaffected. When the
    envelope itself is not multipart every slot gets a BatchPartError.
    """
    boundary = boundary_of(response.content_type)
    if boundary is None:
        message = (
            f"Batch envelope failed: HTTP {response.status_code} "
            f"({response.content_type or 'no content type'})"
        )
        return [BatchPartError(message, index=i) for i in range(expected)]

    results: list[RawResponse | BatchPartError | None] = [None] * expected
    unattributed: list[str] = []
    for position, raw_part in enumerate(split_multipart(response.body, boundary)):
        try:
            index, part = parse_response_part(raw_part)
        except ValueError as e:
            # A broken part may still carry a readable Content-ID
            index = _content_id_only(raw_part)
            if index is not None and 0 <= index < expected:
                results[index] = BatchPartError(f"Malformed batch part: {e}", index=index)
            else:
                unattributed.append(f"part {position}: {e}")
            continue
        if index is None or not 0 <= index < expected:
            unattributed.append(f"part {position}: unexpected Content-ID")
            continue
        results[index] = part

    detail = f" ({'; '.join(unattributed)})" if unattributed else ""
    return [
        result
        if result is not None
        else BatchPartError(f"Batch response has no part for item {i}{detail}", index=i)
        for i, result in enumerate(results)
    ]


def _content_id_only(raw_part: bytes) -> int | None:
    try:
        outer_lines, _ = _split_head(raw_part)
        return parse_content_id(_header(_parse_headers(outer_lines), "Content-ID"))
    except ValueError:
        return None
