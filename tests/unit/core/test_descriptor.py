"""Unit tests for call descriptors and binding."""

from __future__ import annotations

import json

import pytest

from laakhay.rest import (
    REQUIRED,
    ApiStatusError,
    BindingError,
    CallDescriptor,
    DecodeError,
    HttpMethod,
    RateLimitError,
    RawResponse,
    bind,
    decode_json,
)


class TestCallDescriptor:
    """Test descriptor construction and validation."""

    def test_method_string_is_normalized(self):
        """Test lowercase method strings become HttpMethod members."""
        descriptor = CallDescriptor(id="x", method="get", url_template="https://api.example.com/x")
        assert descriptor.method is HttpMethod.GET

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError, match="Unsupported HTTP method"):
            CallDescriptor(id="x", method="FETCH", url_template="https://api.example.com/x")

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            CallDescriptor(id="", method=HttpMethod.GET, url_template="https://api.example.com")

    def test_path_and_query_overlap_rejected(self):
        """Test a name cannot be both a path slot and a query slot."""
        with pytest.raises(ValueError, match="both path and query"):
            CallDescriptor(
                id="x",
                method=HttpMethod.GET,
                url_template="https://api.example.com/{id}",
                query_params={"id": None},
            )

    def test_placeholders(self):
        descriptor = CallDescriptor(
            id="x",
            method=HttpMethod.GET,
            url_template="https://api.example.com/{project}/items/{item}",
        )
        assert descriptor.placeholders == ("project", "item")
        assert descriptor.declares("item")
        assert not descriptor.declares("other")

    def test_descriptor_is_immutable(self, files_get):
        with pytest.raises(AttributeError):
            files_get.url_template = "https://elsewhere.example.com"


class TestBind:
    """Test binding descriptors to concrete values."""

    def test_bind_path_and_query(self, files_get):
        call = bind(files_get, {"fileId": "abc"}, {"fields": "id,name"})

        assert call.url == "https://www.googleapis.com/drive/v3/files/abc"
        assert call.query == (("fields", "id,name"),)
        assert call.full_url == "https://www.googleapis.com/drive/v3/files/abc?fields=id%2Cname"

    def test_bind_does_not_mutate_descriptor(self, files_list):
        call = files_list.bind(pageToken="t1")
        assert files_list.query_params["pageToken"] is None
        assert call.query_args == {"pageToken": "t1"}

    def test_missing_path_placeholder_raises(self, files_get):
        with pytest.raises(BindingError, match="fileId"):
            bind(files_get)

    def test_missing_required_query_raises(self, items_list):
        with pytest.raises(BindingError, match="max-results"):
            bind(items_list)

    def test_unknown_parameter_raises(self, files_get):
        with pytest.raises(BindingError, match="unknown"):
            files_get.bind(fileId="abc", colour="blue")

    def test_defaults_applied_and_none_omitted(self, files_list):
        call = files_list.bind()
        assert call.query == (("pageSize", "10"),)

    def test_query_sorted_and_lists_repeated(self):
        descriptor = CallDescriptor(
            id="x",
            method=HttpMethod.GET,
            url_template="https://api.example.com/x",
            query_params={"z": None, "a": None, "flag": None},
        )
        call = descriptor.bind(z=["2", "1"], a=3, flag=True)
        assert call.query == (("a", "3"), ("flag", "true"), ("z", "2"), ("z", "1"))

    def test_path_values_are_escaped(self, files_get):
        call = files_get.bind(fileId="a/b c")
        assert call.url.endswith("/files/a%2Fb%20c")

    def test_path_default_used(self):
        descriptor = CallDescriptor(
            id="x",
            method=HttpMethod.GET,
            url_template="https://api.example.com/{version}/x",
            path_params={"version": "v1"},
        )
        assert descriptor.bind().url == "https://api.example.com/v1/x"

    def test_json_body_encoded_with_content_type(self):
        descriptor = CallDescriptor(
            id="x", method=HttpMethod.POST, url_template="https://api.example.com/x"
        )
        call = descriptor.bind(body={"b": 2, "a": 1})

        assert json.loads(call.body) == {"a": 1, "b": 2}
        assert call.header_dict()["Content-Type"].startswith("application/json")

    def test_bytes_body_passed_through(self):
        descriptor = CallDescriptor(
            id="x", method=HttpMethod.PUT, url_template="https://api.example.com/x"
        )
        call = descriptor.bind(body=b"\x00\x01")
        assert call.body == b"\x00\x01"
        assert "Content-Type" not in call.header_dict()

    def test_raw_override(self, files_get):
        assert files_get.bind(fileId="a").raw is False
        assert files_get.bind(fileId="a", raw=True).raw is True


class TestBoundCallIdentity:
    """Test cache identity of bound calls."""

    def test_identical_bindings_are_equal(self, files_get):
        first = files_get.bind(fileId="abc", fields="id")
        second = bind(files_get, {"fileId": "abc"}, {"fields": "id"})

        assert first == second
        assert hash(first) == hash(second)
        assert first.cache_key == second.cache_key

    def test_different_values_differ(self, files_get):
        assert files_get.bind(fileId="a").cache_key != files_get.bind(fileId="b").cache_key

    def test_body_is_part_of_identity(self):
        descriptor = CallDescriptor(
            id="x", method=HttpMethod.POST, url_template="https://api.example.com/x"
        )
        assert descriptor.bind(body={"a": 1}) != descriptor.bind(body={"a": 2})
        assert descriptor.bind(body={"a": 1, "b": 2}) == descriptor.bind(body={"b": 2, "a": 1})

    def test_descriptor_is_part_of_identity(self, files_get):
        twin = CallDescriptor(
            id="drive.files.get.v2",
            method=HttpMethod.GET,
            url_template=files_get.url_template,
            api_family="drive",
        )
        assert twin.bind(fileId="a") != files_get.bind(fileId="a")

    def test_cache_key_is_hex_digest(self, files_get):
        key = files_get.bind(fileId="a").cache_key
        assert len(key) == 64
        int(key, 16)


class TestRebinding:
    """Test producing new calls from bound calls."""

    def test_rebind_replaces_one_parameter(self, files_list):
        call = files_list.bind(q="trashed=false")
        following = call.rebind(pageToken="next")

        assert dict(following.query) == {"pageSize": "10", "pageToken": "next", "q": "trashed=false"}
        assert call.query_args == {"q": "trashed=false"}

    def test_with_url_targets_absolute_url(self, files_list):
        call = files_list.bind()
        following = call.with_url("https://www.googleapis.com/drive/v3/files?pageToken=x")

        assert following.full_url == "https://www.googleapis.com/drive/v3/files?pageToken=x"
        assert following.descriptor is files_list

    def test_with_url_rejects_relative(self, files_list):
        with pytest.raises(BindingError):
            files_list.bind().with_url("/files?pageToken=x")

    def test_path_and_query(self, files_get):
        call = files_get.bind(fileId="abc", fields="id")
        assert call.path_and_query == "/drive/v3/files/abc?fields=id"


class TestDecodeJson:
    """Test the default decoder."""

    def test_decodes_success(self):
        response = RawResponse(status_code=200, body=b'{"id": "abc"}')
        assert decode_json(response) == {"id": "abc"}

    def test_empty_body_decodes_to_none(self):
        assert decode_json(RawResponse(status_code=204)) is None

    def test_non_2xx_raises_status_error(self):
        response = RawResponse(
            status_code=404,
            body=b'{"error": {"code": 404, "message": "File not found: abc."}}',
        )
        with pytest.raises(ApiStatusError) as exc_info:
            decode_json(response)
        assert exc_info.value.status_code == 404
        assert "File not found" in str(exc_info.value)

    def test_429_raises_rate_limit_error(self):
        response = RawResponse(status_code=429, headers={"retry-after": "7"})
        with pytest.raises(RateLimitError) as exc_info:
            decode_json(response)
        assert exc_info.value.retry_after == 7.0

    def test_invalid_json_raises_decode_error(self):
        with pytest.raises(DecodeError):
            decode_json(RawResponse(status_code=200, body=b"{not json"))

    def test_required_sentinel_repr(self):
        assert repr(REQUIRED) == "REQUIRED"
