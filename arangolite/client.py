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
from typing import TYPE_CHECKING, Any, Sequence

from arangolite.constants import CallerType
from arangolite.settings.defaults import DEFAULT_DATABASE_NAME
from arangolite.utils.api_options import (
    APIOptions,
    FullAPIOptions,
    defaultAPIOptions,
)
from arangolite.utils.endpoints import (
    parse_server_url,
    server_url_parsing_error_message,
)
from arangolite.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from arangolite import AsyncDatabase, Database
    from arangolite.authentication import AuthType


logger = logging.getLogger(__name__)


class ArangoClient:
    """
    A client for ArangoDB. This is the entry point, sitting at the top of the
    conceptual "client -> database -> query" hierarchy.

    A client is created first, optionally passing it the credentials.
    Starting from the client, databases (Database and AsyncDatabase) are
    obtained for running queries and transactions.

    Args:
        auth: the credentials to use: an `AuthProvider` (such as
            `BasicAuthProvider` or `JWTAuthProvider`), or a (username, password)
            pair for Basic authentication. If omitted, no authentication is used.
            Credentials can also be passed later, when spawning Database instances.
        callers: a list of caller identities, i.e. applications, or frameworks,
            on behalf of which the requests are performed.
            These end up in the request user-agent.
            Each caller identity is a ("caller_name", "caller_version") pair.
        api_options: a specification - complete or partial - of the API Options
            to override the system defaults. This allows for a deeper configuration
            than what the named parameters (auth, callers) offer.
            If this is passed alongside these named parameters, those will take
            precedence.

    Example:
        >>> from arangolite import ArangoClient, Query
        >>> my_client = ArangoClient(auth=("root", "secret"))
        >>> my_db = my_client.get_database("http://localhost:8529", database="shop")
        >>> my_db.run(Query("FOR c IN customer RETURN c.name"))
        b'["Anna","Bob"]'
        >>> my_other_db = my_db.switch_database("archive")
    """

    def __init__(
        self,
        auth: AuthType | None | UnsetType = _UNSET,
        *,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> None:
        arg_api_options = APIOptions(
            callers=callers,
            auth=auth,
        )
        self.api_options = (
            defaultAPIOptions().with_override(api_options).with_override(arg_api_options)
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.api_options})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ArangoClient):
            return self.api_options == other.api_options
        else:
            return False

    def _copy(
        self,
        *,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> ArangoClient:
        arg_api_options = APIOptions(auth=auth)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return ArangoClient(api_options=final_api_options)

    def with_options(
        self,
        *,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> ArangoClient:
        """
        Create a clone of this ArangoClient with some changed attributes.

        Args:
            auth: the credentials for the clone: an `AuthProvider`,
                a (username, password) pair, or None for no authentication.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new ArangoClient instance.

        Example:
            >>> other_auth_client = my_client.with_options(
            ...     auth=("reader", "p4ssw0rd"),
            ... )
        """

        return self._copy(
            auth=auth,
            api_options=api_options,
        )

    def _resolve_database_args(
        self,
        url: str,
        auth: AuthType | None | UnsetType,
        api_options: APIOptions | UnsetType,
    ) -> tuple[str, FullAPIOptions]:
        parsed_url = parse_server_url(url)
        if parsed_url is None:
            msg = server_url_parsing_error_message(url)
            raise ValueError(msg)
        arg_api_options = APIOptions(auth=auth)
        resulting_api_options = self.api_options.with_override(
            api_options
        ).with_override(arg_api_options)
        return parsed_url, resulting_api_options

    def get_database(
        self,
        url: str,
        *,
        database: str = DEFAULT_DATABASE_NAME,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Get a Database object from this client, for running queries and
        transactions.

        Args:
            url: the base URL of the server, e.g. `http://localhost:8529`.
            database: the name of the database. Defaults to "_system".
                The database must exist already for the resulting object
                to be effectively used; in other words, this invocation
                does not create the database, just the object instance.
            auth: if supplied, is passed to the Database instead of the
                client credentials.
            api_options: a specification - complete or partial - of the
                API Options to override the defaults.
                This allows for a deeper configuration of the database, e.g.
                concerning timeouts; if this is passed together with
                the equivalent named parameters, the latter will take precedence
                in their respective settings.

        Returns:
            a Database object with which to run queries and transactions.

        Raises:
            ValueError: if the URL is not a valid server URL.

        Example:
            >>> my_db1 = my_client.get_database("http://localhost:8529")
            >>> my_db2 = my_client.get_database(
            ...     "http://localhost:8529",
            ...     database="shop",
            ...     auth=("shopkeeper", "p4ssw0rd"),
            ... )
        """

        # lazy importing here to avoid circular dependency
        from arangolite import Database

        parsed_url, resulting_api_options = self._resolve_database_args(
            url, auth, api_options
        )
        logger.debug(f"Spawning a database '{database}' on {parsed_url}")
        return Database(
            api_endpoint=parsed_url,
            database=database,
            api_options=resulting_api_options,
        )

    def get_async_database(
        self,
        url: str,
        *,
        database: str = DEFAULT_DATABASE_NAME,
        auth: AuthType | None | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Get an AsyncDatabase object from this client, for running queries and
        transactions with an asynchronous interface.

        This method has identical behavior and signature as the sync
        counterpart `get_database`: please see that one for more details.
        """

        # lazy importing here to avoid circular dependency
        from arangolite import AsyncDatabase

        parsed_url, resulting_api_options = self._resolve_database_args(
            url, auth, api_options
        )
        logger.debug(f"Spawning an async database '{database}' on {parsed_url}")
        return AsyncDatabase(
            api_endpoint=parsed_url,
            database=database,
            api_options=resulting_api_options,
        )
