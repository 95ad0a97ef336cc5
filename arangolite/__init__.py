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

__version__: str = "0.1.0"


import arangolite.api_options  # noqa: F401, E402
import arangolite.authentication  # noqa: F401, E402
import arangolite.constants  # noqa: E402
import arangolite.cursors  # noqa: F401, E402
import arangolite.exceptions  # noqa: F401, E402
import arangolite.operations  # noqa: F401, E402
from arangolite.client import ArangoClient  # noqa: E402
from arangolite.data.query import Query  # noqa: E402
from arangolite.data.transaction import Transaction  # noqa: E402
from arangolite.database import AsyncDatabase, Database  # noqa: E402

__all__ = [
    "ArangoClient",
    "AsyncDatabase",
    "Database",
    "Query",
    "Transaction",
    "__version__",
]


__pdoc__ = {
    "constants": False,
    "data": False,
    "settings": False,
    "utils": False,
}
