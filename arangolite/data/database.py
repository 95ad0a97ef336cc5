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

import logging
import time
from types import TracebackType
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from arangolite.data.cursor_engine import AsyncCursorEngine, CursorEngine
from arangolite.data.runnable import Runnable, marshal_payload
from arangolite.data.streams import AsyncResultStream, ResultStream
from arangolite.settings.defaults import DATABASE_PATH_TEMPLATE
from arangolite.utils.api_commander import APICommander
from arangolite.utils.api_options import (
    APIOptions,
    FullAPIOptions,
    FullLoggerOptions,
)
from arangolite.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from arangolite.authentication import AuthType


logger = logging.getLogger(__name__)

EMPTY_RESULT = b"[]"


def _log_run_start(
    logger_options: FullLoggerOptions,
    description: str,
    database: str,
    content: bytes | None,
) -> None:
    if logger_options.enabled:
        logger.info(f"{description} on database '{database}'")
        if logger_options.print_query and content is not None:
            logger.info(
                f"{description} request body: {content.decode(errors='replace')}"
            )


def _log_run_end(
    logger_options: FullLoggerOptions,
    description: str,
    started: float,
    result: bytes,
) -> None:
    if logger_options.enabled:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(f"{description} completed in {elapsed_ms} ms")
        if logger_options.print_result:
            logger.info(f"{description} result: {result.decode(errors='replace')}")


class Database:
    """
    An ArangoDB database. This is the object for running queries, transactions
    and other operations against the server. This class has a synchronous
    interface.

    The usual way of obtaining one Database is through the `get_database`
    method of an `ArangoClient`.

    Each run issues a first request and, if the server answers with a cursor
    holding further pages, keeps fetching them in a background thread until
    the cursor is exhausted. `run` waits for all pages and returns them as one
    JSON array; `run_stream` returns as soon as the first page is there.

    Args:
        api_endpoint: the base URL of the server, e.g. "http://localhost:8529".
        database: the name of the database all requests target.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> from arangolite import ArangoClient, Query
        >>> my_client = ArangoClient(auth=("root", "secret"))
        >>> my_db = my_client.get_database("http://localhost:8529", database="shop")
        >>> my_db.run(Query("FOR c IN customer LIMIT 2 RETURN c.name"))
        b'["Anna","Bob"]'

    Note:
        creating an instance of Database does not trigger actual creation
        of the database itself, which should exist beforehand. To create databases,
        run a `CreateDatabase` operation on a database with suitable permissions.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        database: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self.api_endpoint = api_endpoint.strip("/")
        self.database = database

        self._commander_headers = {
            **self.api_options.auth.get_headers(),
            **self.api_options.database_additional_headers,
        }
        self._api_commander = self._get_api_commander()

    def __repr__(self) -> str:
        ep_desc = f'api_endpoint="{self.api_endpoint}"'
        database_desc = f'database="{self.database}"'
        api_options_desc = f"api_options={self.api_options}"
        parts = [ep_desc, database_desc, api_options_desc]
        return f"{self.__class__.__name__}({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Database):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.database == other.database,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        base_path = DATABASE_PATH_TEMPLATE.format(
            database=quote(self.database, safe="")
        )
        return APICommander(
            api_endpoint=self.api_endpoint,
            path=base_path,
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _get_cursor_engine(self) -> CursorEngine:
        return CursorEngine(
            api_commander=self._api_commander,
            request_timeout_ms=self.api_options.timeout_options.request_timeout_ms,
            channel_capacity=self.api_options.result_channel_capacity,
        )

    def _copy(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        arg_api_options = APIOptions(
            auth=auth,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Database(
            api_endpoint=self.api_endpoint,
            database=database or self.database,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Create a clone of this database with some changed attributes.

        Args:
            database: the name of the database the clone targets.
            auth: the credentials for the clone: an `AuthProvider`,
                a (username, password) pair, or None for no authentication.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new `Database` instance.

        Example:
            >>> my_db_2 = my_db.with_options(
            ...     database="the_other_database",
            ...     auth=("reader", "p4ssw0rd"),
            ... )
        """

        return self._copy(
            database=database,
            auth=auth,
            api_options=api_options,
        )

    def switch_database(self, database: str) -> Database:
        """
        Create a clone of this database targeting another database
        on the same server, with the same credentials.

        Args:
            database: the name of the database to target.

        Returns:
            a new `Database` instance.
        """

        return self._copy(database=database)

    def switch_user(self, username: str, password: str) -> Database:
        """
        Create a clone of this database authenticating as another user.

        Args:
            username: the username for Basic authentication.
            password: the password for Basic authentication.

        Returns:
            a new `Database` instance.
        """

        return self._copy(auth=(username, password))

    def to_async(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Create an AsyncDatabase from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this database in the copy.

        Args:
            database: the name of the database the result targets.
            auth: the credentials for the result: an `AuthProvider`,
                a (username, password) pair, or None for no authentication.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            the new copy, an `AsyncDatabase` instance.

        Example:
            >>> async_database = my_db.to_async()
            >>> asyncio.run(async_database.run(Query("RETURN 1")))
            b'[1]'
        """

        arg_api_options = APIOptions(
            auth=auth,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            database=database or self.database,
            api_options=final_api_options,
        )

    @property
    def name(self) -> str:
        """The name of the database targeted by this object."""
        return self.database

    def _start_stream(
        self,
        *,
        description: str,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> ResultStream:
        channel = self._get_cursor_engine().start(
            http_method=http_method,
            path=path,
            content=content,
        )
        return ResultStream(channel, description=description)

    def _execute(
        self,
        *,
        description: str,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> bytes:
        started = time.perf_counter()
        logger_options = self.api_options.logger_options
        _log_run_start(logger_options, description, self.database, content)
        result = self._start_stream(
            description=description,
            http_method=http_method,
            path=path,
            content=content,
        ).to_bytes()
        _log_run_end(logger_options, description, started, result)
        return result

    def run(self, runnable: Runnable | None) -> bytes:
        """
        Run a query, a transaction or any other `Runnable`, waiting for all
        of its result pages.

        Args:
            runnable: the runnable to execute. None is accepted and yields an
                empty result without contacting the server.

        Returns:
            the elements of all result pages, in order, as a JSON array (bytes).
            An empty result is `b"[]"`.

        Raises:
            MarshalException: if the request body cannot be serialized.
            InvalidTransactionException: for a transaction without collections.
            TransportException: if any request cannot be completed.
            DecodeException: if any response cannot be decoded.
            DatabaseException: if the server reports an error on any page.
                In all these cases, pages already received are discarded.

        Example:
            >>> my_db.run(Query("FOR d IN documents RETURN d._key").batch_size(2))
            b'["a","b","c"]'
        """

        if runnable is None:
            return EMPTY_RESULT
        return self._execute(
            description=runnable.description(),
            http_method=runnable.method(),
            path=runnable.path(),
            content=runnable.generate(),
        )

    def run_stream(self, runnable: Runnable | None) -> ResultStream:
        """
        Run a query, a transaction or any other `Runnable`, returning as soon
        as its first page is available. The remaining pages are fetched in the
        background and delivered, in order, through the returned stream.

        Args:
            runnable: the runnable to execute. None is accepted and yields an
                exhausted stream without contacting the server.

        Returns:
            a `ResultStream`. An error happening after the first request
            (including a database error reported on the first page) is
            delivered as the last item of the stream.

        Raises:
            MarshalException: if the request body cannot be serialized.
            InvalidTransactionException: for a transaction without collections.
            TransportException: if the first request cannot be completed.
            DecodeException: if the first response cannot be decoded.

        Example:
            >>> stream = my_db.run_stream(Query("FOR d IN documents RETURN d._key"))
            >>> stream.has_more()
            True
            >>> stream.next_item().payload
            b'["a","b"]'
        """

        if runnable is None:
            return ResultStream(None)
        content = runnable.generate()
        _log_run_start(
            self.api_options.logger_options,
            runnable.description(),
            self.database,
            content,
        )
        return self._start_stream(
            description=runnable.description(),
            http_method=runnable.method(),
            path=runnable.path(),
            content=content,
        )

    def send(
        self,
        description: str,
        http_method: str,
        path: str,
        payload: Any = None,
    ) -> bytes:
        """
        Send an arbitrary request through the cursor machinery, waiting for all
        of its result pages.

        Args:
            description: a label for the request, used in logs.
            http_method: the HTTP method, e.g. "POST".
            path: the API path, relative to the database, e.g. "/_api/cursor".
            payload: a JSON-serializable object for the request body. Bytes are
                sent as they are; None sends no body.

        Returns:
            the elements of all result pages as a JSON array (bytes).

        Raises:
            MarshalException: if the payload cannot be serialized. Nothing is sent.
            ArangoException: see `run` for the other errors.
        """

        return self._execute(
            description=description,
            http_method=http_method,
            path=path,
            content=marshal_payload(payload),
        )

    def send_stream(
        self,
        description: str,
        http_method: str,
        path: str,
        payload: Any = None,
    ) -> ResultStream:
        """
        Send an arbitrary request through the cursor machinery, returning
        a stream over its result pages. See `send` and `run_stream`.
        """

        content = marshal_payload(payload)
        _log_run_start(
            self.api_options.logger_options, description, self.database, content
        )
        return self._start_stream(
            description=description,
            http_method=http_method,
            path=path,
            content=content,
        )


class AsyncDatabase:
    """
    An ArangoDB database. This is the object for running queries, transactions
    and other operations against the server. This class has an asynchronous
    interface.

    The usual way of obtaining one AsyncDatabase is through the `get_async_database`
    method of an `ArangoClient`.

    Each run awaits a first request and, if the server answers with a cursor
    holding further pages, keeps fetching them in a separate task until the
    cursor is exhausted. See `Database` for the details.

    Args:
        api_endpoint: the base URL of the server, e.g. "http://localhost:8529".
        database: the name of the database all requests target.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> from arangolite import ArangoClient, Query
        >>> my_client = ArangoClient(auth=("root", "secret"))
        >>> my_async_db = my_client.get_async_database(
        ...     "http://localhost:8529",
        ...     database="shop",
        ... )
        >>> asyncio.run(my_async_db.run(Query("RETURN 1")))
        b'[1]'
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        database: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self.api_endpoint = api_endpoint.strip("/")
        self.database = database

        self._commander_headers = {
            **self.api_options.auth.get_headers(),
            **self.api_options.database_additional_headers,
        }
        self._api_commander = self._get_api_commander()

    def __repr__(self) -> str:
        ep_desc = f'api_endpoint="{self.api_endpoint}"'
        database_desc = f'database="{self.database}"'
        api_options_desc = f"api_options={self.api_options}"
        parts = [ep_desc, database_desc, api_options_desc]
        return f"{self.__class__.__name__}({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncDatabase):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.database == other.database,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.__aexit__(
            exc_type=exc_type,
            exc_value=exc_value,
            traceback=traceback,
        )

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        base_path = DATABASE_PATH_TEMPLATE.format(
            database=quote(self.database, safe="")
        )
        return APICommander(
            api_endpoint=self.api_endpoint,
            path=base_path,
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _get_cursor_engine(self) -> AsyncCursorEngine:
        return AsyncCursorEngine(
            api_commander=self._api_commander,
            request_timeout_ms=self.api_options.timeout_options.request_timeout_ms,
            channel_capacity=self.api_options.result_channel_capacity,
        )

    def _copy(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        arg_api_options = APIOptions(
            auth=auth,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            database=database or self.database,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Create a clone of this database with some changed attributes.

        Args:
            database: the name of the database the clone targets.
            auth: the credentials for the clone: an `AuthProvider`,
                a (username, password) pair, or None for no authentication.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new `AsyncDatabase` instance.
        """

        return self._copy(
            database=database,
            auth=auth,
            api_options=api_options,
        )

    def switch_database(self, database: str) -> AsyncDatabase:
        """
        Create a clone of this database targeting another database
        on the same server, with the same credentials.
        """

        return self._copy(database=database)

    def switch_user(self, username: str, password: str) -> AsyncDatabase:
        """Create a clone of this database authenticating as another user."""

        return self._copy(auth=(username, password))

    def to_sync(
        self,
        *,
        database: str | None = None,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Create a (synchronous) Database from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this database in the copy.

        Args:
            database: the name of the database the result targets.
            auth: the credentials for the result: an `AuthProvider`,
                a (username, password) pair, or None for no authentication.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            the new copy, a `Database` instance.

        Example:
            >>> my_sync_db = my_async_db.to_sync()
            >>> my_sync_db.run(Query("RETURN 1"))
            b'[1]'
        """

        arg_api_options = APIOptions(
            auth=auth,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Database(
            api_endpoint=self.api_endpoint,
            database=database or self.database,
            api_options=final_api_options,
        )

    @property
    def name(self) -> str:
        """The name of the database targeted by this object."""
        return self.database

    async def _start_stream(
        self,
        *,
        description: str,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> AsyncResultStream:
        channel = await self._get_cursor_engine().start(
            http_method=http_method,
            path=path,
            content=content,
        )
        return AsyncResultStream(channel, description=description)

    async def _execute(
        self,
        *,
        description: str,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> bytes:
        started = time.perf_counter()
        logger_options = self.api_options.logger_options
        _log_run_start(logger_options, description, self.database, content)
        stream = await self._start_stream(
            description=description,
            http_method=http_method,
            path=path,
            content=content,
        )
        result = await stream.to_bytes()
        _log_run_end(logger_options, description, started, result)
        return result

    async def run(self, runnable: Runnable | None) -> bytes:
        """
        Run a query, a transaction or any other `Runnable`, waiting for all
        of its result pages.

        Args:
            runnable: the runnable to execute. None is accepted and yields an
                empty result without contacting the server.

        Returns:
            the elements of all result pages, in order, as a JSON array (bytes).

        Raises:
            ArangoException: see `Database.run`.
        """

        if runnable is None:
            return EMPTY_RESULT
        return await self._execute(
            description=runnable.description(),
            http_method=runnable.method(),
            path=runnable.path(),
            content=runnable.generate(),
        )

    async def run_stream(self, runnable: Runnable | None) -> AsyncResultStream:
        """
        Run a query, a transaction or any other `Runnable`, returning as soon
        as its first page is available. See `Database.run_stream`.

        Args:
            runnable: the runnable to execute. None is accepted and yields an
                exhausted stream without contacting the server.

        Returns:
            an `AsyncResultStream`.
        """

        if runnable is None:
            return AsyncResultStream(None)
        content = runnable.generate()
        _log_run_start(
            self.api_options.logger_options,
            runnable.description(),
            self.database,
            content,
        )
        return await self._start_stream(
            description=runnable.description(),
            http_method=runnable.method(),
            path=runnable.path(),
            content=content,
        )

    async def send(
        self,
        description: str,
        http_method: str,
        path: str,
        payload: Any = None,
    ) -> bytes:
        """
        Send an arbitrary request through the cursor machinery, waiting for all
        of its result pages. See `Database.send`.
        """

        return await self._execute(
            description=description,
            http_method=http_method,
            path=path,
            content=marshal_payload(payload),
        )

    async def send_stream(
        self,
        description: str,
        http_method: str,
        path: str,
        payload: Any = None,
    ) -> AsyncResultStream:
        """
        Send an arbitrary request through the cursor machinery, returning
        a stream over its result pages. See `Database.send`.
        """

        content = marshal_payload(payload)
        _log_run_start(
            self.api_options.logger_options, description, self.database, content
        )
        return await self._start_stream(
            description=description,
            http_method=http_method,
            path=path,
            content=content,
        )
