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

from arangolite.data.operations import (
    CreateCollection,
    CreateDatabase,
    DropCollection,
    DropDatabase,
    ListCollections,
    ListDatabases,
)
from arangolite.data.query import Query
from arangolite.data.runnable import Runnable
from arangolite.data.transaction import Transaction

__all__ = [
    "CreateCollection",
    "CreateDatabase",
    "DropCollection",
    "DropDatabase",
    "ListCollections",
    "ListDatabases",
    "Query",
    "Runnable",
    "Transaction",
]
