"""Call descriptors and parameter binding.

Architecture:
    A CallDescriptor is the immutable template of one API operation, the
    REST counterpart of an endpoint definition. Binding it to concrete argument
    values yields a BoundCall that is ready for transport. Binding never
    mutates the descriptor; re-binding (for paging or walking) produces a
    fresh BoundCall.

Design Decisions:
    - Frozen dataclasses with identity equality for descriptors: the
      descriptor reference (its ``id``) is part of the cache identity.
    - Bodies are encoded at bind time so the cache identity can hash the
      exact bytes that go on the wire.
    - Raw passthrough lives on the descriptor and can be overridden per
      bind, so there is no process-wide toggle to leak between calls.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from string import Formatter
from typing import Any
from urllib.parse import quote, urlencode, urlsplit

from ..models import RawResponse
from .enums import HttpMethod
from .exceptions import ApiStatusError, BindingError, DecodeError, RateLimitError


class _Required:
    """Sentinel for parameter slots that must be supplied at bind time."""

    _instance: _Required | None = None

    def __new__(cls) -> _Required:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()


def decode_json(response: RawResponse) -> Any:
    """Default decoder: JSON body for 2xx, typed errors otherwise.

    Google-style error envelopes (``{"error": {"message": ..., "status": ...}}``)
    are unpacked into the error message when present.
    """
    if response.status_code == 429:
        retry_after = response.header("Retry-After")
        try:
            delay = float(retry_after) if retry_after is not None else 60.0
        except ValueError:
            delay = 60.0
        raise RateLimitError(_error_message(response), retry_after=delay)

    if not response.ok:
        raise ApiStatusError(
            _error_message(response),
            status_code=response.status_code,
            reason=response.reason,
        )

    try:
        return response.json_body()
    except ValueError as e:
        raise DecodeError(f"Response body is not valid JSON: {e}", response.status_code) from e


def _error_message(response: RawResponse) -> str:
    try:
        payload = response.json_body()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        message = error.get("message") or error.get("status")
        if message:
            return f"HTTP {response.status_code}: {message}"
    return f"HTTP {response.status_code}: {response.reason or 'request failed'}"


def template_placeholders(url_template: str) -> tuple[str, ...]:
    """Names of the ``{placeholder}`` fields in a URL template, in order."""
    names: list[str] = []
    for _, name, _, _ in Formatter().parse(url_template):
        if name is not None and name and name not in names:
            names.append(name)
    return tuple(names)


@dataclass(frozen=True, eq=False)
class CallDescriptor:
    """Immutable description of one logical API operation.

    Attributes:
        id: Stable operation identifier, e.g. ``"drive.files.get"``
        method: HTTP verb
        url_template: Absolute URL with ``{name}`` path placeholders
        path_params: Defaults for path slots; placeholders without an entry
            are required
        query_params: Declared query slots mapped to their default.
            ``REQUIRED`` makes a slot mandatory, ``None`` omits it when unset
        body: Default request payload (dict/list are sent as JSON)
        headers: Static request headers
        decode: Turns a RawResponse into the domain value
        api_family: API family used to select the batch endpoint
        raw: Return the RawResponse verbatim instead of decoding it
    """

    id: str
    method: HttpMethod
    url_template: str
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query_params: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    decode: Callable[[RawResponse], Any] = decode_json
    api_family: str | None = None
    raw: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("CallDescriptor id must be a non-empty string")
        object.__setattr__(self, "method", HttpMethod.from_value(self.method))
        overlap = set(self.path_slots) & set(self.query_params)
        if overlap:
            raise ValueError(
                f"{self.id}: parameters declared as both path and query: {sorted(overlap)}"
            )

    @property
    def placeholders(self) -> tuple[str, ...]:
        return template_placeholders(self.url_template)

    @property
    def path_slots(self) -> tuple[str, ...]:
        """Template placeholders plus any extra declared path parameters."""
        extra = tuple(name for name in self.path_params if name not in self.placeholders)
        return self.placeholders + extra

    def declares(self, name: str) -> bool:
        return name in self.path_slots or name in self.query_params

    def split_args(self, args: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Split a flat argument mapping into (path_args, query_args).

        Raises:
            BindingError: If an argument is not declared by this descriptor
        """
        path_args: dict[str, Any] = {}
        query_args: dict[str, Any] = {}
        for name, value in args.items():
            if name in self.path_slots:
                path_args[name] = value
            elif name in self.query_params:
                query_args[name] = value
            else:
                raise BindingError(f"{self.id}: unknown parameter {name!r}", self.id)
        return path_args, query_args

    def bind(self, *, body: Any = None, raw: bool | None = None, **args: Any) -> BoundCall:
        """Bind flat keyword arguments (path and query mixed)."""
        path_args, query_args = self.split_args(args)
        return bind(self, path_args, query_args, body, raw=raw)

    def __repr__(self) -> str:
        return f"CallDescriptor(id={self.id!r}, method={self.method.value}, url={self.url_template!r})"


@dataclass(frozen=True, eq=False)
class BoundCall:
    """A descriptor with every parameter resolved, ready for transport.

    Equality and hashing follow ``identity``, so two bindings that would
    produce the same request compare equal.
    """

    descriptor: CallDescriptor
    url: str
    query: tuple[tuple[str, str], ...] = ()
    body: bytes | None = None
    headers: tuple[tuple[str, str], ...] = ()
    raw: bool = False
    path_args: Mapping[str, Any] = field(default_factory=dict)
    query_args: Mapping[str, Any] = field(default_factory=dict)
    payload: Any = None

    @property
    def method(self) -> HttpMethod:
        return self.descriptor.method

    @property
    def api_family(self) -> str | None:
        return self.descriptor.api_family

    @property
    def full_url(self) -> str:
        if not self.query:
            return self.url
        separator = "&" if urlsplit(self.url).query else "?"
        return f"{self.url}{separator}{urlencode(self.query)}"

    @property
    def path_and_query(self) -> str:
        """Request target as it appears in an embedded batch request line."""
        parts = urlsplit(self.full_url)
        path = parts.path or "/"
        return f"{path}?{parts.query}" if parts.query else path

    @property
    def body_digest(self) -> str:
        return hashlib.sha256(self.body or b"").hexdigest()

    @property
    def identity(self) -> tuple[Any, ...]:
        """(descriptor id, method, url, sorted query pairs, body hash)."""
        return (self.descriptor.id, self.method.value, self.url, self.query, self.body_digest)

    @property
    def cache_key(self) -> str:
        """Store-safe string form of ``identity``."""
        encoded = json.dumps(self.identity, separators=(",", ":")).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()

    def header_dict(self) -> dict[str, str]:
        return dict(self.headers)

    def rebind(self, **args: Any) -> BoundCall:
        """Bind again from the descriptor with some arguments replaced."""
        merged = {**self.path_args, **self.query_args, **args}
        path_args, query_args = self.descriptor.split_args(merged)
        return bind(self.descriptor, path_args, query_args, self.payload, raw=self.raw)

    def with_url(self, url: str) -> BoundCall:
        """Target an absolute URL (a server-supplied next link) instead."""
        if not urlsplit(url).scheme:
            raise BindingError(f"{self.descriptor.id}: next URL must be absolute: {url!r}")
        return BoundCall(
            descriptor=self.descriptor,
            url=url,
            query=(),
            body=self.body,
            headers=self.headers,
            raw=self.raw,
            path_args=self.path_args,
            query_args=self.query_args,
            payload=self.payload,
        )

    def with_raw(self, raw: bool) -> BoundCall:
        if raw == self.raw:
            return self
        return BoundCall(
            descriptor=self.descriptor,
            url=self.url,
            query=self.query,
            body=self.body,
            headers=self.headers,
            raw=raw,
            path_args=self.path_args,
            query_args=self.query_args,
            payload=self.payload,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundCall):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        return f"BoundCall({self.descriptor.id}: {self.method.value} {self.full_url})"


def bind(
    descriptor: CallDescriptor,
    path_args: Mapping[str, Any] | None = None,
    query_args: Mapping[str, Any] | None = None,
    body: Any = None,
    *,
    raw: bool | None = None,
) -> BoundCall:
    """Resolve a descriptor against concrete argument values.

    Args:
        descriptor: Operation template
        path_args: Values for path placeholders
        query_args: Values for declared query parameters
        body: Request payload, overriding the descriptor default
        raw: Override the descriptor's raw passthrough setting

    Returns:
        New BoundCall; the descriptor is left untouched

    Raises:
        BindingError: On unknown names or unresolved required slots
    """
    path_args = dict(path_args or {})
    query_args = dict(query_args or {})

    unknown = [name for name in path_args if name not in descriptor.path_slots]
    unknown += [name for name in query_args if name not in descriptor.query_params]
    if unknown:
        raise BindingError(f"{descriptor.id}: unknown parameter(s) {sorted(unknown)}", descriptor.id)

    missing: list[str] = []
    resolved_path: dict[str, str] = {}
    for name in descriptor.path_slots:
        value = path_args.get(name, descriptor.path_params.get(name, REQUIRED))
        if value is REQUIRED or value is None:
            missing.append(name)
            continue
        resolved_path[name] = quote(_format_value(value), safe="")

    query_pairs: list[tuple[str, str]] = []
    for name, default in descriptor.query_params.items():
        value = query_args.get(name, default)
        if value is REQUIRED:
            missing.append(name)
            continue
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            query_pairs.extend((name, _format_value(item)) for item in value)
        else:
            query_pairs.append((name, _format_value(value)))

    if missing:
        raise BindingError(
            f"{descriptor.id}: missing required parameter(s) {sorted(missing)}", descriptor.id
        )

    url = descriptor.url_template.format(
        **{name: resolved_path[name] for name in descriptor.placeholders}
    )
    payload = body if body is not None else descriptor.body
    encoded_body, content_type = _encode_body(payload)

    headers = dict(descriptor.headers)
    if content_type and not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = content_type

    return BoundCall(
        descriptor=descriptor,
        url=url,
        query=tuple(sorted(query_pairs, key=lambda pair: pair[0])),
        body=encoded_body,
        headers=tuple(headers.items()),
        raw=descriptor.raw if raw is None else raw,
        path_args=path_args,
        query_args=query_args,
        payload=payload,
    )


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_body(payload: Any) -> tuple[bytes | None, str | None]:
    if payload is None:
        return None, None
    if isinstance(payload, bytes):
        return payload, None
    if isinstance(payload, str):
        return payload.encode("utf-8"), "text/plain; charset=utf-8"
    try:
        encoded = json.dumps(payload, separators=(",", ":"), sort_keys=True)
    except TypeError as e:
        raise BindingError(f"Request body is not JSON serializable: {e}") from e
    return encoded.encode("utf-8"), "application/json; charset=UTF-8"
