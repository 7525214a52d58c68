# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Main conftest for shared fixtures: a client, and collections, all pointed
to a local fake Data API provided by pytest-httpserver.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Iterator

import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from atlaspy import AsyncCollection, Collection, DataAPIClient

TEST_API_KEY = "test-api-key-0123456789"
TEST_CLUSTER = "Cluster0"
TEST_DATABASE = "test_db"
TEST_COLLECTION_NAME = "users"
BASE_PATH = "/app/data-test/endpoint/data/v1"
SLOW_RESPONSE_S = 0.5


def action_path(operation: str) -> str:
    return f"{BASE_PATH}/action/{operation}"


def routing_fields(collection_name: str = TEST_COLLECTION_NAME) -> dict[str, Any]:
    return {
        "dataSource": TEST_CLUSTER,
        "database": TEST_DATABASE,
        "collection": collection_name,
    }


def logged_payloads(httpserver: HTTPServer) -> list[dict[str, Any]]:
    """The JSON bodies of all requests received by the fake API so far."""
    return [json.loads(request.get_data()) for request, _ in httpserver.log]


@pytest.fixture
def client(httpserver: HTTPServer) -> DataAPIClient:
    return DataAPIClient(
        TEST_API_KEY,
        endpoint_base=httpserver.url_for(BASE_PATH),
        cluster=TEST_CLUSTER,
        database=TEST_DATABASE,
    )


@pytest.fixture
def collection(client: DataAPIClient) -> Collection:
    return client.get_collection(TEST_COLLECTION_NAME)


@pytest.fixture
def async_collection(client: DataAPIClient) -> AsyncCollection:
    return client.get_async_collection(TEST_COLLECTION_NAME)


@pytest.fixture
def slow_handler(httpserver: HTTPServer) -> Iterator[Callable[[Request], Response]]:
    """
    A response handler answering only after SLOW_RESPONSE_S seconds.
    The test ends only once the fake API is done with the late response,
    so that the next test finds the server idle.
    """
    handler_done = threading.Event()

    def _slow_handler(request: Request) -> Response:
        try:
            time.sleep(SLOW_RESPONSE_S)
            return Response("{}", content_type="application/json")
        finally:
            handler_done.set()

    yield _slow_handler
    handler_done.wait(timeout=10 * SLOW_RESPONSE_S)
    # the late response still has to be written out
    time.sleep(0.2)
    httpserver.clear()
