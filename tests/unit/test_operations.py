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

from __future__ import annotations

import json

import pytest
from pytest_httpserver import HTTPServer

from arangolite import Database
from arangolite.operations import (
    CreateCollection,
    CreateDatabase,
    DropCollection,
    DropDatabase,
    ListCollections,
    ListDatabases,
)
from arangolite.utils.request_tools import HttpMethod

from ..conftest import DATABASE_BASE_PATH, envelope


class TestOperations:
    @pytest.mark.describe("test of management operations, requests")
    def test_operation_requests(self) -> None:
        assert ListDatabases().method() == HttpMethod.GET
        assert ListDatabases().path() == "/_api/database"
        assert ListDatabases().generate() is None

        create_db = CreateDatabase("shop", users=[{"username": "u", "passwd": "p"}])
        assert create_db.method() == HttpMethod.POST
        assert json.loads(create_db.generate() or b"") == {
            "name": "shop",
            "users": [{"username": "u", "passwd": "p"}],
        }
        assert CreateDatabase("shop").generate() == b'{"name":"shop"}'

        assert DropDatabase("shop").method() == HttpMethod.DELETE
        assert DropDatabase("shop").path() == "/_api/database/shop"
        assert DropDatabase("a/b").path() == "/_api/database/a%2Fb"

        assert ListCollections().path() == "/_api/collection"
        assert ListCollections(exclude_system=True).path() == (
            "/_api/collection?excludeSystem=true"
        )

        assert json.loads(CreateCollection("c").generate() or b"") == {
            "name": "c",
            "type": 2,
        }
        assert json.loads(CreateCollection("e", edge=True).generate() or b"") == {
            "name": "e",
            "type": 3,
        }
        assert DropCollection("c").path() == "/_api/collection/c"
        assert DropCollection("c").description() == "DROP COLLECTION"

    @pytest.mark.describe("test of management operations, run on a database")
    def test_operation_runs(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            f"{DATABASE_BASE_PATH}/_api/database",
            method=HttpMethod.GET,
        ).respond_with_json(envelope(["_system", "dbName"], code=200))
        assert json.loads(database.run(ListDatabases())) == ["_system", "dbName"]

        httpserver.expect_oneshot_request(
            f"{DATABASE_BASE_PATH}/_api/database",
            method=HttpMethod.POST,
            json={"name": "shop"},
        ).respond_with_json(envelope(True, code=201), status=201)
        assert database.run(CreateDatabase("shop")) == b"[true]"

        httpserver.expect_oneshot_request(
            f"{DATABASE_BASE_PATH}/_api/database/shop",
            method=HttpMethod.DELETE,
        ).respond_with_json(envelope(True, code=200))
        assert database.run(DropDatabase("shop")) == b"[true]"

        httpserver.expect_oneshot_request(
            f"{DATABASE_BASE_PATH}/_api/collection",
            method=HttpMethod.GET,
            query_string="excludeSystem=true",
        ).respond_with_json(envelope([{"name": "customer", "type": 2}], code=200))
        collections = json.loads(database.run(ListCollections(exclude_system=True)))
        assert [coll["name"] for coll in collections] == ["customer"]
