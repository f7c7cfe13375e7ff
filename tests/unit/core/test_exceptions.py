"""Unit tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from laakhay.rest import (
    ApiStatusError,
    BatchPartError,
    BindingError,
    ConfigurationError,
    DecodeError,
    RateLimitError,
    RestError,
    TransportError,
)


class TestExceptionHierarchy:
    """Test exception inheritance and attributes."""

    @pytest.mark.parametrize(
        "error",
        [
            BindingError("x"),
            TransportError("x"),
            DecodeError("x"),
            ApiStatusError("x", status_code=500),
            RateLimitError("x"),
            BatchPartError("x", index=0),
            ConfigurationError("x"),
        ],
    )
    def test_all_derive_from_rest_error(self, error):
        assert isinstance(error, RestError)

    def test_transport_error_retryable_default(self):
        assert TransportError("timeout").retryable is True
        assert TransportError("cancelled", retryable=False).retryable is False

    def test_status_errors_are_decode_errors(self):
        error = RateLimitError("slow down", retry_after=5)
        assert isinstance(error, ApiStatusError)
        assert isinstance(error, DecodeError)
        assert error.status_code == 429
        assert error.retry_after == 5

    def test_batch_part_error_index(self):
        assert BatchPartError("missing", index=3).index == 3

    def test_binding_error_descriptor_id(self):
        assert BindingError("missing", "drive.files.get").descriptor_id == "drive.files.get"
