"""Raw HTTP response and cache entry models."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RawResponse(BaseModel):
    """Undecoded HTTP response as returned by a transport.

    The cache and batch layers only look at ``status_code``, ``headers`` and
    the raw ``body``; interpreting the payload is the decoder's job.
    """

    status_code: int = Field(..., ge=100, le=599)
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    reason: str | None = None

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    @property
    def ok(self) -> bool:
        """True for 2xx statuses."""
        return 200 <= self.status_code < 300

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    @property
    def content_type(self) -> str:
        return self.header("Content-Type", "") or ""

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json_body(self) -> Any:
        """Parse the body as JSON (empty body parses to None)."""
        if not self.body:
            return None
        return json.loads(self.body)


class CacheEntry(BaseModel):
    """A stored response together with when it was stored."""

    key: str = Field(..., min_length=1)
    value: RawResponse
    stored_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = ConfigDict(frozen=True)

    def age_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(UTC)
        return (now - self.stored_at).total_seconds()
