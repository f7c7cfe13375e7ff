"""Credential collaborators.

Acquiring and refreshing tokens is out of scope; these only turn an
already-valid credential into request headers.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Protocol

TokenSource = Callable[[], "str | Awaitable[str]"]


class AuthProvider(Protocol):
    """Supplies authentication headers for each outgoing request."""

    async def headers(self) -> dict[str, str]: ...


class NoAuth:
    """Anonymous access (API-key-in-query or public endpoints)."""

    async def headers(self) -> dict[str, str]:
        return {}


class BearerToken:
    """``Authorization: Bearer`` from a fixed token or a token source.

    A token source is called once per request so it can hand out a
    refreshed token; it may be sync or async.
    """

    def __init__(self, token: str | TokenSource) -> None:
        if isinstance(token, str) and not token:
            raise ValueError("token must be a non-empty string")
        self._token = token

    async def headers(self) -> dict[str, str]:
        token = self._token
        if callable(token):
            token = token()
            if inspect.isawaitable(token):
                token = await token
        return {"Authorization": f"Bearer {token}"}
