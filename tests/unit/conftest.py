"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from laakhay.rest import REQUIRED, CallDescriptor, HttpMethod
from laakhay.rest.testing import StubTransport

DRIVE_BATCH = "https://www.googleapis.com/batch/drive/v3"
FILES_URL = "https://www.googleapis.com/drive/v3/files"


@pytest.fixture
def files_get() -> CallDescriptor:
    return CallDescriptor(
        id="drive.files.get",
        method=HttpMethod.GET,
        url_template=FILES_URL + "/{fileId}",
        query_params={"fields": None},
        api_family="drive",
    )


@pytest.fixture
def files_list() -> CallDescriptor:
    return CallDescriptor(
        id="drive.files.list",
        method=HttpMethod.GET,
        url_template=FILES_URL,
        query_params={"pageSize": 10, "pageToken": None, "q": None},
        api_family="drive",
    )


@pytest.fixture
def items_list() -> CallDescriptor:
    return CallDescriptor(
        id="analytics.items.list",
        method=HttpMethod.GET,
        url_template="https://www.googleapis.com/analytics/v3/items",
        query_params={"start-index": 1, "max-results": REQUIRED},
        api_family="analytics",
    )


@pytest.fixture
def stub() -> StubTransport:
    return StubTransport(batch_endpoints=[DRIVE_BATCH])
