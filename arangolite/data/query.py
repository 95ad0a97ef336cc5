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

from typing import Any

from typing_extensions import override

from arangolite.constants import BindVarsType
from arangolite.data.runnable import Runnable, marshal_payload
from arangolite.settings.defaults import CURSOR_API_PATH
from arangolite.utils.request_tools import HttpMethod


class Query(Runnable):
    """
    An AQL query, to be run through a cursor.

    The setter methods return the query itself, so that calls can be chained.

    Args:
        aql: the text of the query.

    Example:
        >>> from arangolite import Query
        >>> query = Query(
        ...     "FOR d IN documents FILTER d._key == @key RETURN d"
        ... ).bind("key", 1000).batch_size(500)
        >>> my_database.run(query)
        b'[{"_key":"1000", ...}]'
    """

    aql: str
    bind_vars: BindVarsType
    cache_flag: bool | None
    batch_size_value: int | None

    def __init__(self, aql: str) -> None:
        self.aql = aql
        self.bind_vars = {}
        self.cache_flag = None
        self.batch_size_value = None

    def __repr__(self) -> str:
        pieces = [
            pc
            for pc in (
                f"aql={self.aql!r}",
                f"bind_vars={self.bind_vars}" if self.bind_vars else None,
                f"cache={self.cache_flag}" if self.cache_flag is not None else None,
                f"batch_size={self.batch_size_value}"
                if self.batch_size_value
                else None,
            )
            if pc is not None
        ]
        return f"{self.__class__.__name__}({', '.join(pieces)})"

    def bind(self, name: str, value: Any) -> Query:
        """Set the value of the bind variable `@name`."""
        self.bind_vars[name] = value
        return self

    def cache(self, enabled: bool) -> Query:
        """Ask the server to use (or not) its query result cache."""
        self.cache_flag = enabled
        return self

    def batch_size(self, size: int | None) -> Query:
        """
        Set the maximum number of results per page.
        Zero or None leave the choice to the server.
        """
        self.batch_size_value = size
        return self

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.aql}
        if self.bind_vars:
            body["bindVars"] = self.bind_vars
        if self.cache_flag is not None:
            body["cache"] = self.cache_flag
        if self.batch_size_value:
            body["batchSize"] = self.batch_size_value
        return body

    @override
    def description(self) -> str:
        return "QUERY"

    @override
    def path(self) -> str:
        return CURSOR_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.POST

    @override
    def generate(self) -> bytes | None:
        return marshal_payload(self.to_dict())
