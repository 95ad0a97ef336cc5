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
import logging
import time

import pytest
from pytest_httpserver import HTTPServer

from arangolite import AsyncDatabase, Database, Query
from arangolite.api_options import APIOptions, LoggerOptions
from arangolite.exceptions import (
    ArangoHttpException,
    DatabaseException,
    DecodeException,
    MarshalException,
    TransportException,
)
from arangolite.utils.request_tools import HttpMethod

from ..conftest import (
    CURSOR_PATH,
    DATABASE_BASE_PATH,
    envelope,
    error_envelope,
)

SHORT_QUERY = """
    FOR d
    IN documents
    RETURN {
        document: d,
        metaData: (
            FOR m
            IN metaData
            FILTER m.documentId == d._id
            RETURN m
        )
    }
"""
SEND_PATH = f"{DATABASE_BASE_PATH}/path"


class TestDatabaseRun:
    @pytest.mark.describe("test of database run, nothing to run")
    def test_run_none(self, database: Database, httpserver: HTTPServer) -> None:
        assert database.run(None) == b"[]"
        stream = database.run_stream(None)
        assert stream.has_more() is False
        assert stream.next_item() is None
        assert list(stream) == []
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of database run, single and multiple pages")
    def test_run_pages(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            method=HttpMethod.POST,
        ).respond_with_json(envelope([]))
        assert database.run(Query("")) == b"[]"

        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            method=HttpMethod.POST,
            json={"query": SHORT_QUERY, "cache": True, "batchSize": 500},
        ).respond_with_json(envelope([]))
        assert database.run(Query(SHORT_QUERY).cache(True).batch_size(500)) == b"[]"

        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            method=HttpMethod.POST,
        ).respond_with_json(envelope([{}], has_more=True, cursor_id="1000"))
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_json(envelope([{}], has_more=False))
        assert database.run(Query("")) == b"[{},{}]"

        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            method=HttpMethod.POST,
            json={
                "query": "FOR d IN documents FILTER d._key == @key RETURN d",
                "bindVars": {"key": 1000},
            },
        ).respond_with_json(envelope([{}]))
        query = Query("FOR d IN documents FILTER d._key == @key RETURN d")
        query.bind("key", 1000)
        assert database.run(query) == b"[{}]"

    @pytest.mark.describe("test of database run, empty pages around non-empty ones")
    def test_run_empty_pages(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([], has_more=True, cursor_id="c")
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/c").respond_with_json(
            envelope([1, 2], has_more=True, cursor_id="c")
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/c").respond_with_json(
            envelope([])
        )
        assert json.loads(database.run(Query("RETURN 1"))) == [1, 2]

    @pytest.mark.describe("test of database run, advancing cursor ids")
    def test_run_advancing_cursor_ids(
        self, database: Database, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            CURSOR_PATH, method=HttpMethod.POST
        ).respond_with_json(envelope([1], has_more=True, cursor_id="a"))
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/a", method=HttpMethod.PUT
        ).respond_with_json(envelope([2], has_more=True, cursor_id="b"))
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/b", method=HttpMethod.PUT
        ).respond_with_json(envelope([3]))
        assert database.run(Query("RETURN 1")) == b"[1,2,3]"
        assert [request.path for request, _ in httpserver.log] == [
            CURSOR_PATH,
            f"{CURSOR_PATH}/a",
            f"{CURSOR_PATH}/b",
        ]

    @pytest.mark.describe("test of database run, element texts kept as sent")
    def test_run_verbatim_elements(
        self, database: Database, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            '{"error": false, "result": [1e400, 1.10, 12345678901234567890123.0],'
            ' "hasMore": true, "id": "a"}'
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/a").respond_with_data(
            '{"error": false, "result": ["\\ud800", "\\u00e8"]}'
        )
        result = database.run(Query("RETURN 1"))
        assert result == (
            b'[1e400,1.10,12345678901234567890123.0,"\\ud800","\\u00e8"]'
        )
        json.loads(result, parse_constant=pytest.fail)

        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            '{"error": false, "result": [1, NaN]}'
        )
        with pytest.raises(DecodeException):
            database.run(Query("RETURN 1"))

        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            '{"error": false, "result": [1], "hasMore": true, "id": "a"}'
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/a").respond_with_data(
            '{"error": false, "result": [Infinity]}'
        )
        with pytest.raises(DecodeException):
            database.run(Query("RETURN 1"))

    @pytest.mark.describe("test of database run, errors")
    def test_run_errors(self, database: Database, httpserver: HTTPServer) -> None:
        # unauthorized, no envelope: nothing reaches a channel
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            "", status=401
        )
        with pytest.raises(TransportException) as exc_t:
            database.run(Query(SHORT_QUERY))
        assert isinstance(exc_t.value, ArangoHttpException)

        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            error_envelope("error !", code=500, errorNum=4),
            status=500,
        )
        with pytest.raises(DatabaseException) as exc_d:
            database.run(Query(SHORT_QUERY))
        assert str(exc_d.value) == "error !"
        assert exc_d.value.code == 500
        assert exc_d.value.error_num == 4

        # error on a later page: partial results are discarded
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([{}], has_more=True, cursor_id="1000")
        )
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_data(error_envelope("ERROR !"))
        with pytest.raises(DatabaseException) as exc_c:
            database.run(Query(SHORT_QUERY))
        assert str(exc_c.value) == "ERROR !"

    @pytest.mark.describe("test of database run, unserializable bind values")
    def test_run_marshal_error(
        self, database: Database, httpserver: HTTPServer
    ) -> None:
        with pytest.raises(MarshalException):
            database.run(Query("RETURN @f").bind("f", lambda: None))
        with pytest.raises(MarshalException):
            database.run_stream(Query("RETURN @f").bind("f", object()))
        assert len(httpserver.log) == 0


class TestDatabaseStream:
    @pytest.mark.describe("test of database streams, items in order")
    def test_stream_items(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([{}], has_more=True, cursor_id="1000")
        )
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_json(envelope([{}]))
        with database.run_stream(Query("")) as stream:
            assert stream.has_more()
            payloads = [item.payload for item in stream]
            assert payloads == [b"[{}]", b"[{}]"]
            assert not stream.has_more()
            assert stream.next_item() is None

    @pytest.mark.describe("test of database streams, errors delivered in-band")
    def test_stream_errors(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([], has_more=True, cursor_id="1000")
        )
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_data(
            error_envelope("ERROR !", result=[], hasMore=False, id="1000")
        )
        stream = database.run_stream(Query(""))
        first = stream.next_item()
        assert first is not None and first.payload == b"[]"
        last = stream.next_item()
        assert last is not None and last.is_error
        assert str(last.error) == "ERROR !"
        assert stream.next_item() is None
        assert not stream.has_more()

        # a database error on the first page is also in-band
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            error_envelope("ERROR !")
        )
        stream_1 = database.run_stream(Query(""))
        assert stream_1.has_more()
        items = list(stream_1)
        assert len(items) == 1
        assert isinstance(items[0].error, DatabaseException)

        # transport errors on the first request are raised
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            "", status=401
        )
        with pytest.raises(TransportException):
            database.run_stream(Query(""))

    @pytest.mark.describe("test of database streams, closing stops the fetching")
    def test_stream_close(
        self, narrow_database: Database, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_request(CURSOR_PATH, method=HttpMethod.POST).respond_with_json(
            envelope([0], has_more=True, cursor_id="inf")
        )
        httpserver.expect_request(
            f"{CURSOR_PATH}/inf",
            method=HttpMethod.PUT,
        ).respond_with_json(envelope([1], has_more=True, cursor_id="inf"))
        with narrow_database.run_stream(Query("")) as stream:
            assert stream.next_item() is not None
            assert stream.next_item() is not None
        assert not stream.has_more()
        assert stream.next_item() is None
        time.sleep(0.3)
        requests_after_close = len(httpserver.log)
        time.sleep(0.3)
        assert len(httpserver.log) == requests_after_close

    @pytest.mark.describe("test of database streams, draining to bytes")
    def test_stream_to_bytes(
        self, narrow_database: Database, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([1], has_more=True, cursor_id="9")
        )
        for i in range(2, 6):
            httpserver.expect_oneshot_request(f"{CURSOR_PATH}/9").respond_with_json(
                envelope([i], has_more=i < 5, cursor_id="9" if i < 5 else None)
            )
        stream = narrow_database.run_stream(Query(""))
        assert stream.to_bytes() == b"[1,2,3,4,5]"
        assert not stream.has_more()


class TestDatabaseSend:
    @pytest.mark.describe("test of database send with arbitrary payloads")
    def test_send(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(
            SEND_PATH,
            method=HttpMethod.POST,
            data=b"",
        ).respond_with_data('{"error": false, "errorMessage": "", "result": []}')
        assert database.send("TEST", HttpMethod.POST, "/path", b"") == b"[]"

        httpserver.expect_oneshot_request(
            SEND_PATH,
            method=HttpMethod.POST,
        ).respond_with_data('{"error": false, "errorMessage": "", "result": []}')
        assert database.send("TEST", HttpMethod.POST, "/path", None) == b"[]"

        httpserver.expect_oneshot_request(
            SEND_PATH,
            method=HttpMethod.POST,
            json={"query": "FOR c IN customer RETURN c"},
        ).respond_with_data('{"error": false, "errorMessage": "", "result": []}')
        result = database.send(
            "TEST",
            HttpMethod.POST,
            "/path",
            {"query": "FOR c IN customer RETURN c"},
        )
        assert result == b"[]"

        # a response without a result is an empty page
        httpserver.expect_oneshot_request(SEND_PATH).respond_with_data(
            '{"error": false}'
        )
        assert database.send("TEST", HttpMethod.POST, "/path", {}) == b"[]"

        httpserver.expect_oneshot_request(SEND_PATH).respond_with_data(
            '{"error": true, "errorMessage": "ERROR !"}'
        )
        with pytest.raises(DatabaseException) as exc:
            database.send("TEST", HttpMethod.POST, "/path", {"query": "x"})
        assert str(exc.value) == "ERROR !"

        n_requests = len(httpserver.log)
        with pytest.raises(MarshalException):
            database.send("TEST", HttpMethod.POST, "/path", lambda: None)
        assert len(httpserver.log) == n_requests

    @pytest.mark.describe("test of database send_stream")
    def test_send_stream(self, database: Database, httpserver: HTTPServer) -> None:
        httpserver.expect_oneshot_request(SEND_PATH).respond_with_json(
            envelope([], has_more=True, cursor_id="1000")
        )
        # no handler for the continuation request
        stream = database.send_stream("TEST", HttpMethod.POST, "/path", {"q": 1})
        first = stream.next_item()
        assert first is not None and first.payload == b"[]"
        last = stream.next_item()
        assert last is not None and isinstance(last.error, TransportException)
        assert stream.next_item() is None


class TestDatabaseConversions:
    @pytest.mark.describe("test of database switch methods and conversions")
    def test_database_conversions(self, database: Database) -> None:
        db_other = database.switch_database("other")
        assert db_other.name == "other"
        assert db_other != database
        assert db_other.switch_database(database.name) == database

        db_user = database.switch_user("bar", "foo")
        assert db_user.api_options.auth != database.api_options.auth
        assert db_user.switch_user("foo", "bar") == database

        assert database.with_options(database="x") == db_other.with_options(
            database="x"
        )
        assert database.to_async().to_sync() == database
        assert database.with_options(
            api_options=APIOptions(result_channel_capacity=3)
        ) != database
        assert "dbName" in repr(database)
        assert "bar" not in repr(database)

    @pytest.mark.describe("test of database authentication headers")
    def test_database_auth_headers(
        self, database: Database, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            headers={"Authorization": "Basic Zm9vOmJhcg=="},
        ).respond_with_json(envelope([1]))
        assert database.run(Query("RETURN 1")) == b"[1]"

        httpserver.expect_oneshot_request(
            CURSOR_PATH,
            headers={"Authorization": "Basic YmFyOmZvbw=="},
        ).respond_with_json(envelope([2]))
        assert database.switch_user("bar", "foo").run(Query("RETURN 2")) == b"[2]"

        httpserver.expect_oneshot_request(
            "/_db/other/_api/cursor",
        ).respond_with_json(envelope([3]))
        assert database.switch_database("other").run(Query("RETURN 3")) == b"[3]"


class TestDatabaseLogging:
    @pytest.mark.describe("test of database logging of runs")
    def test_run_logging(
        self,
        database: Database,
        httpserver: HTTPServer,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        httpserver.expect_request(CURSOR_PATH).respond_with_json(envelope([1]))

        with caplog.at_level(logging.INFO, logger="arangolite.data.database"):
            database.run(Query("RETURN 1"))
        assert not [
            rec for rec in caplog.records if rec.name == "arangolite.data.database"
        ]

        caplog.clear()
        verbose_database = database.with_options(
            api_options=APIOptions(
                logger_options=LoggerOptions(
                    enabled=True,
                    print_query=True,
                    print_result=True,
                ),
            ),
        )
        with caplog.at_level(logging.INFO, logger="arangolite.data.database"):
            verbose_database.run(Query("RETURN 1"))
        messages = [
            rec.getMessage()
            for rec in caplog.records
            if rec.name == "arangolite.data.database"
        ]
        assert any(msg.startswith("QUERY on database 'dbName'") for msg in messages)
        assert any('"query":"RETURN 1"' in msg for msg in messages)
        assert any("completed in" in msg for msg in messages)
        assert any(msg == "QUERY result: [1]" for msg in messages)


class TestAsyncDatabase:
    @pytest.mark.describe("test of database run, nothing to run, async")
    async def test_run_none_async(
        self, async_database: AsyncDatabase, httpserver: HTTPServer
    ) -> None:
        assert await async_database.run(None) == b"[]"
        stream = await async_database.run_stream(None)
        assert stream.has_more() is False
        assert await stream.next_item() is None
        assert len(httpserver.log) == 0

    @pytest.mark.describe("test of database run, pages and errors, async")
    async def test_run_async(
        self, async_database: AsyncDatabase, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([{}], has_more=True, cursor_id="1000")
        )
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_json(envelope([{}]))
        assert await async_database.run(Query("")) == b"[{},{}]"

        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([{}], has_more=True, cursor_id="1000")
        )
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/1000",
            method=HttpMethod.PUT,
        ).respond_with_data(error_envelope("ERROR !"))
        with pytest.raises(DatabaseException) as exc:
            await async_database.run(Query(""))
        assert str(exc.value) == "ERROR !"

        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_data(
            "", status=401
        )
        with pytest.raises(TransportException):
            await async_database.run(Query(""))

        with pytest.raises(MarshalException):
            await async_database.send("TEST", HttpMethod.POST, "/path", object())

    @pytest.mark.describe("test of database run, advancing cursor ids, async")
    async def test_run_advancing_cursor_ids_async(
        self, async_database: AsyncDatabase, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            CURSOR_PATH, method=HttpMethod.POST
        ).respond_with_json(envelope([1], has_more=True, cursor_id="a"))
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/a", method=HttpMethod.PUT
        ).respond_with_json(envelope([2], has_more=True, cursor_id="b"))
        httpserver.expect_oneshot_request(
            f"{CURSOR_PATH}/b", method=HttpMethod.PUT
        ).respond_with_json(envelope([3]))
        assert await async_database.run(Query("RETURN 1")) == b"[1,2,3]"
        assert [request.path for request, _ in httpserver.log] == [
            CURSOR_PATH,
            f"{CURSOR_PATH}/a",
            f"{CURSOR_PATH}/b",
        ]

    @pytest.mark.describe("test of database streams, async")
    async def test_stream_async(
        self, narrow_async_database: AsyncDatabase, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(CURSOR_PATH).respond_with_json(
            envelope([1], has_more=True, cursor_id="5")
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/5").respond_with_json(
            envelope([2], has_more=True, cursor_id="5")
        )
        httpserver.expect_oneshot_request(f"{CURSOR_PATH}/5").respond_with_json(
            envelope([3])
        )
        async with await narrow_async_database.run_stream(Query("")) as stream:
            assert stream.has_more()
            elements = [item.page.elements async for item in stream if item.page]
        assert elements == [[1], [2], [3]]
        assert not stream.has_more()

        httpserver.expect_request(CURSOR_PATH, method=HttpMethod.POST).respond_with_json(
            envelope([0], has_more=True, cursor_id="inf")
        )
        httpserver.expect_request(
            f"{CURSOR_PATH}/inf",
            method=HttpMethod.PUT,
        ).respond_with_json(envelope([1], has_more=True, cursor_id="inf"))
        stream_inf = await narrow_async_database.run_stream(Query(""))
        assert await stream_inf.next_item() is not None
        assert await stream_inf.next_item() is not None
        await stream_inf.aclose()
        assert not stream_inf.has_more()
        assert await stream_inf.next_item() is None

    @pytest.mark.describe("test of database send, async")
    async def test_send_async(
        self, async_database: AsyncDatabase, httpserver: HTTPServer
    ) -> None:
        httpserver.expect_oneshot_request(
            SEND_PATH,
            method=HttpMethod.POST,
            json={"query": "FOR c IN customer RETURN c"},
        ).respond_with_data('{"error": false}')
        result = await async_database.send(
            "TEST",
            HttpMethod.POST,
            "/path",
            {"query": "FOR c IN customer RETURN c"},
        )
        assert result == b"[]"

        httpserver.expect_oneshot_request(SEND_PATH).respond_with_json(envelope([7]))
        stream = await async_database.send_stream("TEST", HttpMethod.POST, "/path")
        assert await stream.to_bytes() == b"[7]"

    @pytest.mark.describe("test of async database conversions")
    def test_async_database_conversions(self, async_database: AsyncDatabase) -> None:
        assert async_database.switch_database("other").name == "other"
        assert (
            async_database.switch_database("other").switch_database("dbName")
            == async_database
        )
        assert async_database.switch_user("foo", "bar") == async_database
        assert async_database.with_options(database="x").name == "x"
