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
from urllib.parse import quote

from typing_extensions import override

from arangolite.data.runnable import Runnable, marshal_payload
from arangolite.settings.defaults import COLLECTION_API_PATH, DATABASE_API_PATH
from arangolite.utils.request_tools import HttpMethod

DOCUMENT_COLLECTION_TYPE = 2
EDGE_COLLECTION_TYPE = 3


def _named_path(base_path: str, name: str) -> str:
    return f"{base_path}/{quote(name, safe='')}"


class ListDatabases(Runnable):
    """List the names of the databases on the server."""

    @override
    def description(self) -> str:
        return "LIST DATABASES"

    @override
    def path(self) -> str:
        return DATABASE_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.GET

    @override
    def generate(self) -> bytes | None:
        return None


class CreateDatabase(Runnable):
    """
    Create a database.

    Args:
        name: the name of the new database.
        users: an optional list of user definitions, each a dictionary such as
            `{"username": "foo", "passwd": "bar"}`, to grant access to.
    """

    def __init__(self, name: str, users: list[dict[str, Any]] | None = None) -> None:
        self.name = name
        self.users = users

    @override
    def description(self) -> str:
        return "CREATE DATABASE"

    @override
    def path(self) -> str:
        return DATABASE_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.POST

    @override
    def generate(self) -> bytes | None:
        body: dict[str, Any] = {"name": self.name}
        if self.users:
            body["users"] = self.users
        return marshal_payload(body)


class DropDatabase(Runnable):
    """
    Drop a database.

    Args:
        name: the name of the database to drop.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @override
    def description(self) -> str:
        return "DROP DATABASE"

    @override
    def path(self) -> str:
        return _named_path(DATABASE_API_PATH, self.name)

    @override
    def method(self) -> str:
        return HttpMethod.DELETE

    @override
    def generate(self) -> bytes | None:
        return None


class ListCollections(Runnable):
    """
    List the collections of the database.

    Args:
        exclude_system: whether to leave out the system collections.
    """

    def __init__(self, exclude_system: bool = False) -> None:
        self.exclude_system = exclude_system

    @override
    def description(self) -> str:
        return "LIST COLLECTIONS"

    @override
    def path(self) -> str:
        if self.exclude_system:
            return f"{COLLECTION_API_PATH}?excludeSystem=true"
        return COLLECTION_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.GET

    @override
    def generate(self) -> bytes | None:
        return None


class CreateCollection(Runnable):
    """
    Create a collection.

    Args:
        name: the name of the new collection.
        edge: whether to create an edge collection instead of a document one.
    """

    def __init__(self, name: str, edge: bool = False) -> None:
        self.name = name
        self.edge = edge

    @override
    def description(self) -> str:
        return "CREATE COLLECTION"

    @override
    def path(self) -> str:
        return COLLECTION_API_PATH

    @override
    def method(self) -> str:
        return HttpMethod.POST

    @override
    def generate(self) -> bytes | None:
        return marshal_payload(
            {
                "name": self.name,
                "type": EDGE_COLLECTION_TYPE
                if self.edge
                else DOCUMENT_COLLECTION_TYPE,
            }
        )


class DropCollection(Runnable):
    """
    Drop a collection.

    Args:
        name: the name of the collection to drop.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @override
    def description(self) -> str:
        return "DROP COLLECTION"

    @override
    def path(self) -> str:
        return _named_path(COLLECTION_API_PATH, self.name)

    @override
    def method(self) -> str:
        return HttpMethod.DELETE

    @override
    def generate(self) -> bytes | None:
        return None
