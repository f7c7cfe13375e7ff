"""Unit tests for the StubTransport and RecordingTransport doubles."""

from __future__ import annotations

import pytest

from laakhay.rest import Executor, RawResponse, TransportError
from laakhay.rest.testing import RecordingTransport, StubTransport, json_response

FILES_URL = "https://www.googleapis.com/drive/v3/files"


class TestStubTransport:
    @pytest.mark.asyncio
    async def test_unmatched_request_gets_404(self):
        response = await StubTransport().send("GET", "https://example.com/nothing")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_responses_served_in_turn_last_repeats(self):
        stub = StubTransport()
        stub.add("GET", FILES_URL, json_response({"n": 1}), json_response({"n": 2}))

        bodies = [(await stub.send("GET", FILES_URL)).json_body()["n"] for _ in range(3)]

        assert bodies == [1, 2, 2]

    @pytest.mark.asyncio
    async def test_query_falls_back_to_bare_url(self):
        stub = StubTransport().add_json("GET", FILES_URL, {"ok": True})

        response = await stub.send("GET", f"{FILES_URL}?pageSize=5")

        assert response.json_body() == {"ok": True}

    @pytest.mark.asyncio
    async def test_transport_error_route(self):
        stub = StubTransport().add("GET", FILES_URL, TransportError("down"))

        with pytest.raises(TransportError):
            await stub.send("GET", FILES_URL)

    @pytest.mark.asyncio
    async def test_callable_route(self):
        stub = StubTransport().add(
            "POST", FILES_URL, lambda request: json_response(request.json_body())
        )

        response = await stub.send("POST", FILES_URL, body=b'{"echo": 1}')

        assert response.json_body() == {"echo": 1}

    @pytest.mark.asyncio
    async def test_call_count_filters(self):
        stub = StubTransport()
        await stub.send("GET", FILES_URL)
        await stub.send("POST", FILES_URL)

        assert stub.call_count() == 2
        assert stub.call_count("get") == 1
        assert stub.call_count("GET", f"{FILES_URL}/x") == 0

    def test_add_requires_response(self):
        with pytest.raises(ValueError):
            StubTransport().add("GET", FILES_URL)

    @pytest.mark.asyncio
    async def test_close(self):
        stub = StubTransport()
        await stub.close()
        assert stub.closed


class TestRecordingTransport:
    @pytest.mark.asyncio
    async def test_records_and_replays(self, files_get):
        live = StubTransport().add_json("GET", f"{FILES_URL}/abc", {"id": "abc"})
        recording = RecordingTransport(live)

        await Executor(recording).execute(files_get.bind(fileId="abc"))
        replay = StubTransport.from_recording(recording)
        response = await Executor(replay).execute(files_get.bind(fileId="abc"))

        assert len(recording.exchanges) == 1
        assert isinstance(response, RawResponse)
        assert response.json_body() == {"id": "abc"}

    @pytest.mark.asyncio
    async def test_close_closes_inner(self):
        inner = StubTransport()
        await RecordingTransport(inner).close()
        assert inner.closed
