"""Core enumerations shared by descriptors, runners and paginators.

Architecture:
    String enums keep wire values readable in logs and cache keys while
    still giving type safety at the call sites.
"""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP verbs a call descriptor can target."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"

    @classmethod
    def from_value(cls, value: "str | HttpMethod") -> "HttpMethod":
        """Normalize a string such as ``"get"`` into an HttpMethod."""
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(value.upper())
        except ValueError as e:
            raise ValueError(f"Unsupported HTTP method: {value!r}") from e


class PageMethod(str, Enum):
    """How a paginator derives the next request from the current page.

    URL: the advance function returns the absolute URL of the next page.
    PARAM: the advance function returns the next value of one named
        parameter (a page token or an offset).
    """

    URL = "url"
    PARAM = "param"
