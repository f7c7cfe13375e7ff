"""Runtime configuration: batch endpoints, timeouts and cache policy.

Batch endpoints are per API family; Google retired the global batch
endpoint, so a batch may only carry calls for a single family.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .core.exceptions import ConfigurationError
from .models import RawResponse

DEFAULT_TIMEOUT = 30.0

# Google APIs reject batches with more than 100 parts
MAX_BATCH_SIZE = 100

USER_AGENT = "laakhay-rest"

BATCH_ENDPOINTS: Mapping[str, str] = MappingProxyType(
    {
        "analytics": "https://www.googleapis.com/batch/analytics/v3",
        "bigquery": "https://bigquery.googleapis.com/batch/bigquery/v2",
        "calendar": "https://www.googleapis.com/batch/calendar/v3",
        "drive": "https://www.googleapis.com/batch/drive/v3",
        "gmail": "https://gmail.googleapis.com/batch/gmail/v1",
        "storage": "https://storage.googleapis.com/batch/storage/v1",
    }
)


def default_cache_predicate(response: RawResponse) -> bool:
    """Only plain 200 responses are cacheable by default."""
    return response.status_code == 200


def get_batch_endpoint(family: str | None, overrides: Mapping[str, str] | None = None) -> str:
    """Resolve the batch endpoint URL for an API family.

    Args:
        family: API family name (e.g. ``"drive"``)
        overrides: Extra or replacement endpoints, checked first

    Returns:
        Batch endpoint URL

    Raises:
        ConfigurationError: If the family is unset or has no endpoint

    Examples:
        >>> get_batch_endpoint("drive")
        'https://www.googleapis.com/batch/drive/v3'
        >>> get_batch_endpoint("crm", {"crm": "https://crm.example.com/batch"})
        'https://crm.example.com/batch'
    """
    if not family:
        raise ConfigurationError("Call has no api_family; cannot choose a batch endpoint")
    if overrides and family in overrides:
        return overrides[family]
    try:
        return BATCH_ENDPOINTS[family]
    except KeyError:
        raise ConfigurationError(f"No batch endpoint configured for API family {family!r}") from None


@dataclass(frozen=True)
class ClientConfig:
    """Client-wide settings.

    Attributes:
        batch_endpoints: Per-family batch endpoint overrides
        timeout: Per-request timeout in seconds
        max_batch_size: Upper bound on parts per batch request
        cache_predicate: Decides whether a response may be cached
        user_agent: Sent on every request
    """

    batch_endpoints: Mapping[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    max_batch_size: int = MAX_BATCH_SIZE
    cache_predicate: Callable[[RawResponse], bool] = default_cache_predicate
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.max_batch_size < 1:
            raise ValueError("max_batch_size must be at least 1")
        object.__setattr__(self, "batch_endpoints", MappingProxyType(dict(self.batch_endpoints)))

    def batch_endpoint(self, family: str | None) -> str:
        return get_batch_endpoint(family, self.batch_endpoints)
