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

import re
from typing import TYPE_CHECKING, Any, Iterable

from typing_extensions import override

from arangolite.data.runnable import Runnable, marshal_payload
from arangolite.exceptions import InvalidTransactionException
from arangolite.settings.defaults import TRANSACTION_API_PATH
from arangolite.utils.request_tools import HttpMethod

if TYPE_CHECKING:
    from arangolite.data.database import AsyncDatabase, Database


PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")
SCRIPT_PREAMBLE = "function () {var db = require('internal').db;"


def _result_reference(variable: str) -> str:
    return f"' + JSON.stringify({variable}._documents) + '"


def render_statement(aql: str, known_variables: Iterable[str]) -> str:
    """
    Replace each `{{.name}}` placeholder of an AQL fragment with a reference
    to the result of the earlier statement stored in `name`.

    Placeholders naming anything else are left untouched, as is the rest
    of the fragment (whitespace and quoting included).
    """

    _known = set(known_variables)

    def _replace(match: re.Match[str]) -> str:
        variable = match.group(1)
        if variable in _known:
            return _result_reference(variable)
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, aql)


class Transaction(Runnable):
    """
    A server-side transaction, made of a chain of AQL statements whose results
    are stored in named variables. A statement can use the result of any
    earlier one through a `{{.name}}` placeholder.

    The transaction must declare at least one collection, for reading or
    for writing, otherwise it is rejected before anything is sent.

    Args:
        read_collections: the names of the collections opened for reading.
        write_collections: the names of the collections opened for writing.

    Example:
        >>> from arangolite import Transaction
        >>> transaction = (
        ...     Transaction(["customer"], ["orders"])
        ...     .add_query("customers", "FOR c IN customer RETURN c")
        ...     .add_query("names", "FOR c IN {{.customers}} RETURN c.name")
        ...     .returning("names")
        ... )
        >>> transaction.run(my_database)
        b'[["Anna","Bob"]]'
    """

    def __init__(
        self,
        read_collections: Iterable[str] | None = None,
        write_collections: Iterable[str] | None = None,
    ) -> None:
        self.read_collections = list(read_collections or [])
        self.write_collections = list(write_collections or [])
        self.statements: list[tuple[str, str]] = []
        self.return_variable: str | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(read={self.read_collections}, "
            f"write={self.write_collections}, "
            f"variables={[variable for variable, _ in self.statements]}, "
            f"returning={self.return_variable})"
        )

    def add_query(self, variable: str, aql: str) -> Transaction:
        """Append a statement whose result is stored in `variable`."""
        self.statements.append((variable, aql))
        return self

    def returning(self, variable: str) -> Transaction:
        """Set the variable whose value is the result of the transaction."""
        self.return_variable = variable
        return self

    def validate(self) -> None:
        """
        Raises:
            InvalidTransactionException: if no collection is declared.
        """
        if not self.read_collections and not self.write_collections:
            raise InvalidTransactionException(
                "A transaction must declare at least one read or write collection."
            )

    def script(self) -> str:
        """The JavaScript action executed by the server."""
        pieces = [SCRIPT_PREAMBLE]
        declared: list[str] = []
        for variable, aql in self.statements:
            rendered = render_statement(aql, declared)
            pieces.append(f" var {variable} = db._query('{rendered}');")
            declared.append(variable)
        if self.return_variable:
            pieces.append(f" return {self.return_variable};")
        pieces.append("}")
        return "".join(pieces)

    def to_dict(self) -> dict[str, Any]:
        return {
            "collections": {
                "read": self.read_collections,
                "write": self.write_collections,
            },
            "action": self.script(),
        }

    @override
    def description(self) -> str:
        return "TRANSACTION"

    @override
    def path(self) -> str:
        return TRANSACTION_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.POST

    @override
    def generate(self) -> bytes | None:
        self.validate()
        return marshal_payload(self.to_dict())

    def run(self, database: Database) -> bytes:
        """
        Validate the transaction and run it on a database.

        Args:
            database: the `Database` to run the transaction on.

        Returns:
            the result of the transaction, as a JSON array.

        Raises:
            InvalidTransactionException: if no collection is declared. In this
                case no request is issued.
        """
        self.validate()
        return database.run(self)

    async def async_run(self, async_database: AsyncDatabase) -> bytes:
        """
        Validate the transaction and run it on an async database.

        Args:
            async_database: the `AsyncDatabase` to run the transaction on.

        Returns:
            the result of the transaction, as a JSON array.

        Raises:
            InvalidTransactionException: if no collection is declared. In this
                case no request is issued.
        """
        self.validate()
        return await async_database.run(self)
