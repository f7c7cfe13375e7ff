"""Unit tests for Batcher."""

from __future__ import annotations

import pytest

from laakhay.rest import (
    ApiStatusError,
    BatchPartError,
    Batcher,
    CallDescriptor,
    CacheLayer,
    ClientConfig,
    ConfigurationError,
    Executor,
    MemoryStore,
    RawResponse,
    TransportError,
)
from laakhay.rest.runtime.batching import decode_batch_request
from laakhay.rest.testing import StubTransport, json_response

DRIVE_BATCH = "https://www.googleapis.com/batch/drive/v3"
FILES_URL = "https://www.googleapis.com/drive/v3/files"


def envelope_sizes(stub: StubTransport) -> list[int]:
    return [
        len(decode_batch_request(request.body, request.headers["Content-Type"]))
        for request in stub.wire_requests
    ]


def add_files(stub: StubTransport, *file_ids: str) -> None:
    for file_id in file_ids:
        stub.add_json("GET", f"{FILES_URL}/{file_id}", {"id": file_id})


class TestBatchExecution:
    """One envelope, results in input order."""

    @pytest.mark.asyncio
    async def test_one_wire_request_for_many_calls(self, files_get, stub):
        add_files(stub, "a", "b", "c")
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in "abc"])

        assert results == [{"id": "a"}, {"id": "b"}, {"id": "c"}]
        assert len(stub.wire_requests) == 1
        assert stub.wire_requests[0].url == DRIVE_BATCH
        assert stub.wire_requests[0].method == "POST"
        assert envelope_sizes(stub) == [3]

    @pytest.mark.asyncio
    async def test_order_preserved_when_parts_are_shuffled(self, files_get):
        stub = StubTransport(batch_endpoints=[DRIVE_BATCH], shuffle_batches=True, seed=7)
        ids = [f"f{i}" for i in range(20)]
        add_files(stub, *ids)
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in ids])

        assert [result["id"] for result in results] == ids

    @pytest.mark.asyncio
    async def test_per_item_status_errors_stay_in_their_slot(self, files_get, stub):
        add_files(stub, "a", "c")
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in "abc"])

        assert results[0] == {"id": "a"}
        assert isinstance(results[1], ApiStatusError)
        assert results[1].status_code == 404
        assert results[2] == {"id": "c"}

    @pytest.mark.asyncio
    async def test_execute_returns_raw_parts(self, files_get, stub):
        add_files(stub, "a")
        batcher = Batcher(Executor(stub))

        [part] = await batcher.execute([files_get.bind(fileId="a")])

        assert isinstance(part, RawResponse)
        assert part.json_body() == {"id": "a"}

    @pytest.mark.asyncio
    async def test_raw_call_keeps_response(self, files_get, stub):
        add_files(stub, "a")
        batcher = Batcher(Executor(stub))

        [result] = await batcher.batch([files_get.bind(fileId="a", raw=True)])

        assert isinstance(result, RawResponse)

    @pytest.mark.asyncio
    async def test_empty_batch(self, stub):
        assert await Batcher(Executor(stub)).batch([]) == []
        assert stub.call_count() == 0


class TestBatchFailures:
    @pytest.mark.asyncio
    async def test_corrupt_part_is_isolated(self, files_get):
        corrupt = (
            b"--b\r\nContent-Type: application/http\r\nContent-ID: <response-item0>\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n{\"id\": \"a\"}\r\n"
            b"--b\r\nContent-Type: application/http\r\nContent-ID: <response-item1>\r\n\r\n"
            b"HTTP/1.1 OK\r\n\r\n\r\n"
            b"--b\r\nContent-Type: application/http\r\nContent-ID: <response-item2>\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n\r\n{\"id\": \"c\"}\r\n"
            b"--b--\r\n"
        )
        stub = StubTransport()
        stub.add(
            "POST",
            DRIVE_BATCH,
            RawResponse(
                status_code=200,
                headers={"Content-Type": "multipart/mixed; boundary=b"},
                body=corrupt,
            ),
        )
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in "abc"])

        assert results[0] == {"id": "a"}
        assert isinstance(results[1], BatchPartError)
        assert results[1].index == 1
        assert results[2] == {"id": "c"}

    @pytest.mark.asyncio
    async def test_transport_failure_fills_every_slot(self, files_get):
        stub = StubTransport()
        stub.add("POST", DRIVE_BATCH, TransportError("connection reset"))
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in "ab"])

        assert all(isinstance(result, TransportError) for result in results)

    @pytest.mark.asyncio
    async def test_rejected_envelope_fails_every_slot(self, files_get):
        stub = StubTransport()
        stub.add("POST", DRIVE_BATCH, json_response({"error": {"code": 400}}, status_code=400))
        batcher = Batcher(Executor(stub))

        results = await batcher.batch([files_get.bind(fileId=f) for f in "ab"])

        assert [result.index for result in results] == [0, 1]

    @pytest.mark.asyncio
    async def test_mixed_families_rejected_before_network(self, files_get, items_list, stub):
        batcher = Batcher(Executor(stub))
        calls = [files_get.bind(fileId="a"), items_list.bind(**{"max-results": 10})]

        with pytest.raises(ConfigurationError):
            await batcher.batch(calls)
        assert stub.call_count() == 0

    @pytest.mark.asyncio
    async def test_unknown_family_rejected(self, stub):
        contacts = CallDescriptor(
            id="crm.contacts.get",
            method="GET",
            url_template="https://crm.example.com/contacts/{id}",
            api_family="crm",
        )
        batcher = Batcher(Executor(stub))

        with pytest.raises(ConfigurationError):
            await batcher.batch([contacts.bind(id="1")])
        assert stub.call_count() == 0

    @pytest.mark.asyncio
    async def test_family_override_endpoint(self, stub):
        contacts = CallDescriptor(
            id="crm.contacts.get",
            method="GET",
            url_template="https://crm.example.com/contacts/{id}",
            api_family="crm",
        )
        stub.add_batch_endpoint("https://crm.example.com/batch")
        stub.add_json("GET", "https://crm.example.com/contacts/1", {"id": "1"})
        config = ClientConfig(batch_endpoints={"crm": "https://crm.example.com/batch"})
        batcher = Batcher(Executor(stub), config=config)

        assert await batcher.batch([contacts.bind(id="1")]) == [{"id": "1"}]
        assert stub.wire_requests[0].url == "https://crm.example.com/batch"

    @pytest.mark.asyncio
    async def test_too_many_calls_rejected(self, files_get, stub):
        batcher = Batcher(Executor(stub), config=ClientConfig(max_batch_size=2))

        with pytest.raises(ConfigurationError):
            await batcher.batch([files_get.bind(fileId=f) for f in "abc"])


class TestBatchCaching:
    """Sub-calls share cache entries with single calls."""

    @pytest.mark.asyncio
    async def test_cached_sub_calls_are_not_resent(self, files_get, stub):
        add_files(stub, "a", "b", "c")
        executor = Executor(stub)
        batcher = Batcher(executor, cache=CacheLayer(executor, store=MemoryStore()))

        await batcher.batch([files_get.bind(fileId=f) for f in "ab"])
        results = await batcher.batch([files_get.bind(fileId=f) for f in "abc"])

        assert results == [{"id": "a"}, {"id": "b"}, {"id": "c"}]
        assert envelope_sizes(stub) == [2, 1]

    @pytest.mark.asyncio
    async def test_fully_cached_batch_sends_nothing(self, files_get, stub):
        add_files(stub, "a")
        executor = Executor(stub)
        cache = CacheLayer(executor, store=MemoryStore())
        batcher = Batcher(executor, cache=cache)

        await cache.cached_execute(files_get.bind(fileId="a"))
        results = await batcher.batch([files_get.bind(fileId="a")])

        assert results == [{"id": "a"}]
        assert len(stub.wire_requests) == 1
        assert stub.wire_requests[0].url == f"{FILES_URL}/a"

    @pytest.mark.asyncio
    async def test_failed_parts_are_not_cached(self, files_get, stub):
        executor = Executor(stub)
        batcher = Batcher(executor, cache=CacheLayer(executor, store=MemoryStore()))

        await batcher.batch([files_get.bind(fileId="missing")])
        await batcher.batch([files_get.bind(fileId="missing")])

        assert len(stub.wire_requests) == 2
