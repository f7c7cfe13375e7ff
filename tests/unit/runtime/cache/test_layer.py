"""Unit tests for CacheLayer."""

from __future__ import annotations

import pytest

from laakhay.rest import CacheLayer, Executor, MemoryStore, TransportError
from laakhay.rest.testing import json_response

FILES_URL = "https://www.googleapis.com/drive/v3/files"


def make_layer(stub, **kwargs) -> CacheLayer:
    return CacheLayer(Executor(stub), **kwargs)


class TestCachedExecute:
    """Memoization of identical calls."""

    @pytest.mark.asyncio
    async def test_identical_calls_hit_transport_once(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        layer = make_layer(stub)

        responses = [await layer.cached_execute(files_get.bind(fileId="abc")) for _ in range(5)]

        assert stub.call_count() == 1
        assert all(r == responses[0] for r in responses)

    @pytest.mark.asyncio
    async def test_distinct_calls_each_hit_transport(self, files_get, stub):
        for file_id in ("a", "b", "c"):
            stub.add_json("GET", f"{FILES_URL}/{file_id}", {"id": file_id})
        layer = make_layer(stub)

        for file_id in ("a", "b", "c"):
            await layer.cached_execute(files_get.bind(fileId=file_id))

        assert stub.call_count() == 3

    @pytest.mark.asyncio
    async def test_query_args_are_part_of_the_key(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        layer = make_layer(stub)

        await layer.cached_execute(files_get.bind(fileId="abc", fields="id"))
        await layer.cached_execute(files_get.bind(fileId="abc", fields="name"))

        assert stub.call_count() == 2

    @pytest.mark.asyncio
    async def test_non_cacheable_status_is_returned_but_not_stored(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"error": {"code": 500}}, status_code=500)
        layer = make_layer(stub)
        call = files_get.bind(fileId="abc")

        first = await layer.cached_execute(call)
        await layer.cached_execute(call)

        assert first.status_code == 500
        assert stub.call_count() == 2

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_cached(self, files_get, stub):
        stub.add(
            "GET",
            f"{FILES_URL}/abc",
            TransportError("reset"),
            json_response({"id": "abc"}),
        )
        layer = make_layer(stub)
        call = files_get.bind(fileId="abc")

        with pytest.raises(TransportError):
            await layer.cached_execute(call)
        response = await layer.cached_execute(call)

        assert response.json_body() == {"id": "abc"}
        assert stub.call_count() == 2

    @pytest.mark.asyncio
    async def test_predicate_override(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"error": {"code": 404}}, status_code=404)
        layer = make_layer(stub)
        call = files_get.bind(fileId="abc")

        def cache_everything(response):
            return True

        await layer.cached_execute(call, predicate=cache_everything)
        await layer.cached_execute(call, predicate=cache_everything)

        assert stub.call_count() == 1

    @pytest.mark.asyncio
    async def test_store_override(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        default_store = MemoryStore()
        other_store = MemoryStore()
        layer = make_layer(stub, store=default_store)
        call = files_get.bind(fileId="abc")

        await layer.cached_execute(call, store=other_store)

        assert call.cache_key in other_store
        assert call.cache_key not in default_store

    @pytest.mark.asyncio
    async def test_empty_override_store_is_used_for_lookup_and_put(self, files_get, stub):
        """An empty store is falsy (it has __len__) but is still the override."""
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        default_store = MemoryStore()
        layer = make_layer(stub, store=default_store)
        call = files_get.bind(fileId="abc")
        await layer.cached_execute(call)

        other_store = MemoryStore()
        assert len(other_store) == 0
        await layer.cached_execute(call, store=other_store)

        assert call.cache_key in other_store
        assert stub.call_count() == 2
        assert await layer.lookup(call, store=other_store) is not None


class TestInvalidation:
    @pytest.mark.asyncio
    async def test_invalidate_forces_refetch(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        layer = make_layer(stub)
        call = files_get.bind(fileId="abc")

        await layer.cached_execute(call)
        assert await layer.invalidate(call) is True
        await layer.cached_execute(call)

        assert stub.call_count() == 2

    @pytest.mark.asyncio
    async def test_clear(self, files_get, stub):
        stub.add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        store = MemoryStore()
        layer = make_layer(stub, store=store)

        await layer.cached_execute(files_get.bind(fileId="abc"))
        await layer.clear()

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_lookup_does_not_touch_network(self, files_get, stub):
        layer = make_layer(stub)

        assert await layer.lookup(files_get.bind(fileId="abc")) is None
        assert stub.call_count() == 0
