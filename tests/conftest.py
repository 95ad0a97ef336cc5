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
Main conftest for shared fixtures.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

import pytest
from blockbuster import BlockBuster, blockbuster_ctx
from pytest_httpserver import HTTPServer

from arangolite import ArangoClient, AsyncDatabase, Database
from arangolite.api_options import APIOptions

TEST_DATABASE_NAME = "dbName"
TEST_USERNAME = "foo"
TEST_PASSWORD = "bar"
DATABASE_BASE_PATH = f"/_db/{TEST_DATABASE_NAME}"
CURSOR_PATH = f"{DATABASE_BASE_PATH}/_api/cursor"
TRANSACTION_PATH = f"{DATABASE_BASE_PATH}/_api/transaction"


def envelope(
    result: Any = None,
    *,
    has_more: bool = False,
    cursor_id: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """Build a response envelope as the server would send it."""
    env: dict[str, Any] = {"error": False, "errorMessage": ""}
    if result is not None:
        env["result"] = result
    if has_more:
        env["hasMore"] = True
    if cursor_id is not None:
        env["id"] = cursor_id
    return {**env, **kwargs}


def error_envelope(message: str, **kwargs: Any) -> str:
    return json.dumps({"error": True, "errorMessage": message, **kwargs})


@pytest.fixture(autouse=True)
def blockbuster() -> Iterator[BlockBuster]:
    with blockbuster_ctx("arangolite") as bb:
        # TODO: follow discussion in https://github.com/encode/httpx/discussions/3456
        bb.functions["os.stat"].can_block_in("httpx/_client.py", "_init_transport")
        yield bb


@pytest.fixture
def client() -> ArangoClient:
    return ArangoClient(auth=(TEST_USERNAME, TEST_PASSWORD))


@pytest.fixture
def database(client: ArangoClient, httpserver: HTTPServer) -> Database:
    return client.get_database(
        httpserver.url_for("/"),
        database=TEST_DATABASE_NAME,
    )


@pytest.fixture
def async_database(client: ArangoClient, httpserver: HTTPServer) -> AsyncDatabase:
    return client.get_async_database(
        httpserver.url_for("/"),
        database=TEST_DATABASE_NAME,
    )


@pytest.fixture
def narrow_database(database: Database) -> Database:
    """A database whose streams prefetch at most one page."""
    return database.with_options(api_options=APIOptions(result_channel_capacity=1))


@pytest.fixture
def narrow_async_database(async_database: AsyncDatabase) -> AsyncDatabase:
    """An async database whose streams prefetch at most one page."""
    return async_database.with_options(
        api_options=APIOptions(result_channel_capacity=1)
    )
