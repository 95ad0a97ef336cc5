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

# ruff: noqa: F401

from __future__ import annotations

import pytest


@pytest.mark.describe("test namespace")
def test_namespace() -> None:
    import arangolite

    assert str(arangolite.api_options) != ""
    assert str(arangolite.authentication) != ""
    assert str(arangolite.client) != ""
    assert str(arangolite.constants) != ""
    assert str(arangolite.cursors) != ""
    assert str(arangolite.data) != ""
    assert str(arangolite.database) != ""
    assert str(arangolite.exceptions) != ""
    assert str(arangolite.operations) != ""
    assert str(arangolite.settings) != ""
    assert str(arangolite.utils) != ""

    assert str(arangolite.api_options.APIOptions) != ""
    assert str(arangolite.authentication.BasicAuthProvider) != ""
    assert str(arangolite.client.ArangoClient) != ""
    assert str(arangolite.cursors.ResultStream) != ""
    assert str(arangolite.data.transaction) != ""
    assert str(arangolite.database.Database) != ""
    assert str(arangolite.exceptions.DatabaseException) != ""
    assert str(arangolite.operations.ListDatabases) != ""
    assert str(arangolite.settings.defaults) != ""
    assert str(arangolite.utils.request_tools) != ""


@pytest.mark.describe("test imports")
def test_imports() -> None:
    from arangolite import (
        ArangoClient,
        AsyncDatabase,
        Database,
        Query,
        Transaction,
        __version__,
    )
    from arangolite.api_options import (
        APIOptions,
        LoggerOptions,
        TimeoutOptions,
    )
    from arangolite.authentication import (
        AuthProvider,
        BasicAuthProvider,
        JWTAuthProvider,
        NoAuthProvider,
    )
    from arangolite.constants import CallerType
    from arangolite.cursors import (
        AsyncCursorEngine,
        AsyncResultChannel,
        AsyncResultStream,
        CursorEngine,
        Envelope,
        Page,
        ResultChannel,
        ResultStream,
        StreamItem,
        decode_envelope,
    )
    from arangolite.exceptions import (
        ArangoException,
        ArangoHttpException,
        ArangoTimeoutException,
        DatabaseException,
        DecodeException,
        InvalidTransactionException,
        MarshalException,
        TransportException,
    )
    from arangolite.operations import (
        CreateCollection,
        CreateDatabase,
        DropCollection,
        DropDatabase,
        ListCollections,
        ListDatabases,
        Runnable,
    )

    assert isinstance(__version__, str)
