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

from dataclasses import dataclass
from typing import Iterable, Sequence

from arangolite.authentication import (
    AuthProvider,
    AuthType,
    NoAuthProvider,
    coerce_auth_provider,
)
from arangolite.constants import CallerType
from arangolite.settings.defaults import (
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_RESULT_CHANNEL_CAPACITY,
    FIXED_SECRET_PLACEHOLDER,
)
from arangolite.utils.unset import _UNSET, UnsetType


@dataclass
class LoggerOptions:
    """
    The group of settings for the API Options concerning what gets logged
    for each query, transaction or other runnable sent to the server.

    Logging happens through the standard `logging` module (logger names
    under `arangolite`), at INFO level: the settings below only decide
    which records are emitted.

    Attributes:
        enabled: whether to log the description of each runnable and the time
            it took to be fully executed.
        print_query: whether to also log the request body sent to the server.
        print_result: whether to also log the aggregate result received.
    """

    enabled: bool | UnsetType = _UNSET
    print_query: bool | UnsetType = _UNSET
    print_result: bool | UnsetType = _UNSET


@dataclass
class FullLoggerOptions(LoggerOptions):
    """
    The group of settings for the API Options concerning logging of runnables.

    This class is used internally once all settings are resolved; see
    `LoggerOptions` for the meaning of its attributes.
    """

    enabled: bool
    print_query: bool
    print_result: bool

    def __init__(
        self,
        *,
        enabled: bool,
        print_query: bool,
        print_result: bool,
    ) -> None:
        LoggerOptions.__init__(
            self,
            enabled=enabled,
            print_query=print_query,
            print_result=print_result,
        )

    def with_override(self, other: LoggerOptions) -> FullLoggerOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        return FullLoggerOptions(
            enabled=(
                other.enabled
                if not isinstance(other.enabled, UnsetType)
                else self.enabled
            ),
            print_query=(
                other.print_query
                if not isinstance(other.print_query, UnsetType)
                else self.print_query
            ),
            print_result=(
                other.print_result
                if not isinstance(other.print_result, UnsetType)
                else self.print_result
            ),
        )


@dataclass
class TimeoutOptions:
    """
    The group of settings for the API Options concerning timeouts.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request.
            This applies to the initial request of a cursor and to each of its
            continuation requests alike. Zero stands for "no timeout".
    """

    request_timeout_ms: int | UnsetType = _UNSET


@dataclass
class FullTimeoutOptions(TimeoutOptions):
    """
    The group of settings for the API Options concerning timeouts,
    with all values resolved. See `TimeoutOptions`.
    """

    request_timeout_ms: int

    def __init__(self, *, request_timeout_ms: int) -> None:
        TimeoutOptions.__init__(self, request_timeout_ms=request_timeout_ms)

    def with_override(self, other: TimeoutOptions) -> FullTimeoutOptions:
        return FullTimeoutOptions(
            request_timeout_ms=(
                other.request_timeout_ms
                if not isinstance(other.request_timeout_ms, UnsetType)
                else self.request_timeout_ms
            ),
        )


@dataclass
class APIOptions:
    """
    This class represents all settings that can be configured for how arangolite
    interacts with the server. Each object in the hierarchy (ArangoClient,
    Database, AsyncDatabase) has a full set of these options that determine how
    it behaves when sending requests.

    In order to customize the behavior from its preset defaults, one creates
    an `APIOptions` object, defining only the settings to change, and passes it
    as the `api_options` argument to the ArangoClient constructor, to
    `get_database` / `get_async_database`, or to the `with_options` methods.
    All settings left unspecified keep the value inherited from the parent object.

    With the exception of the "database additional headers" and the "redacted
    header names", which are merged with the inherited ones, an override
    (even if None) completely replaces the inherited value.

    Attributes:
        callers: a list of caller identities, i.e. applications, or frameworks,
            on behalf of which the requests are performed. These end up in the
            request user-agent. Each caller identity is a ("name", "version") pair.
        database_additional_headers: free-form dictionary of additional headers
            to employ when issuing requests. A value of None for a key means
            removal of that header.
        redacted_header_names: a set of (case-insensitive) header names whose
            values are masked when logging requests. The `Authorization` header
            is always redacted.
        auth: an authentication provider, or a (username, password) pair,
            or None for no authentication.
        result_channel_capacity: how many pages can be fetched ahead of the
            consumer of a cursor before the background fetching pauses.
            None means no limit. Must be at least 1 otherwise.
        timeout_options: an object of type `TimeoutOptions`.
        logger_options: an object of type `LoggerOptions`.

    Example:
        >>> from arangolite import ArangoClient
        >>> from arangolite.api_options import APIOptions, TimeoutOptions
        >>>
        >>> my_client = ArangoClient(
        ...     auth=("root", "secret"),
        ...     api_options=APIOptions(
        ...         timeout_options=TimeoutOptions(request_timeout_ms=60000),
        ...     ),
        ... )
        >>> my_database = my_client.get_database(
        ...     "http://localhost:8529",
        ...     database="shop",
        ...     api_options=APIOptions(result_channel_capacity=4),
        ... )
    """

    callers: Sequence[CallerType] | UnsetType = _UNSET
    database_additional_headers: dict[str, str | None] | UnsetType = _UNSET
    redacted_header_names: set[str] | UnsetType = _UNSET
    auth: AuthProvider | UnsetType = _UNSET
    result_channel_capacity: int | None | UnsetType = _UNSET

    timeout_options: TimeoutOptions | UnsetType = _UNSET
    logger_options: LoggerOptions | UnsetType = _UNSET

    def __init__(
        self,
        *,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        database_additional_headers: dict[str, str | None] | UnsetType = _UNSET,
        redacted_header_names: Iterable[str] | UnsetType = _UNSET,
        auth: AuthType | None | UnsetType = _UNSET,
        result_channel_capacity: int | None | UnsetType = _UNSET,
        timeout_options: TimeoutOptions | UnsetType = _UNSET,
        logger_options: LoggerOptions | UnsetType = _UNSET,
    ) -> None:
        # Special conversions and type coercions occur here
        if isinstance(result_channel_capacity, int) and result_channel_capacity < 1:
            raise ValueError(
                "The result channel capacity must be a positive integer or None."
            )
        self.callers = callers
        self.database_additional_headers = database_additional_headers
        self.redacted_header_names = (
            _UNSET
            if isinstance(redacted_header_names, UnsetType)
            else set(redacted_header_names)
        )
        self.auth = _UNSET if isinstance(auth, UnsetType) else coerce_auth_provider(auth)
        self.result_channel_capacity = result_channel_capacity
        self.timeout_options = timeout_options
        self.logger_options = logger_options

    def __repr__(self) -> str:
        _redacted_header_names = (
            set()
            if isinstance(self.redacted_header_names, UnsetType)
            else self.redacted_header_names
        )
        _database_additional_headers: dict[str, str | None] | UnsetType
        if not isinstance(self.database_additional_headers, UnsetType):
            _database_additional_headers = {
                k: v if k not in _redacted_header_names else FIXED_SECRET_PLACEHOLDER
                for k, v in self.database_additional_headers.items()
            }
        else:
            _database_additional_headers = _UNSET
        _auth_desc: str | None
        if not isinstance(self.auth, UnsetType) and self.auth:
            _auth_desc = f"auth={self.auth}"
        else:
            _auth_desc = None
        non_unset_pieces = [
            pc
            for pc in (
                None
                if isinstance(self.callers, UnsetType)
                else f"callers={self.callers}",
                None
                if isinstance(_database_additional_headers, UnsetType)
                else f"database_additional_headers={_database_additional_headers}",
                None
                if isinstance(self.redacted_header_names, UnsetType)
                else f"redacted_header_names={self.redacted_header_names}",
                _auth_desc,
                None
                if isinstance(self.result_channel_capacity, UnsetType)
                else f"result_channel_capacity={self.result_channel_capacity}",
                None
                if isinstance(self.timeout_options, UnsetType)
                else f"timeout_options={self.timeout_options}",
                None
                if isinstance(self.logger_options, UnsetType)
                else f"logger_options={self.logger_options}",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(non_unset_pieces)
        return f"{self.__class__.__name__}({inner_desc})"


@dataclass
class FullAPIOptions(APIOptions):
    """
    A complete, fully-resolved set of API Options, as held by each object
    in the hierarchy. See `APIOptions` for the meaning of the attributes.
    """

    callers: Sequence[CallerType]
    database_additional_headers: dict[str, str | None]
    redacted_header_names: set[str]
    auth: AuthProvider
    result_channel_capacity: int | None

    timeout_options: FullTimeoutOptions
    logger_options: FullLoggerOptions

    def __init__(
        self,
        *,
        callers: Sequence[CallerType],
        database_additional_headers: dict[str, str | None],
        redacted_header_names: Iterable[str],
        auth: AuthType | None,
        result_channel_capacity: int | None,
        timeout_options: FullTimeoutOptions,
        logger_options: FullLoggerOptions,
    ) -> None:
        APIOptions.__init__(
            self,
            callers=callers,
            database_additional_headers=database_additional_headers,
            redacted_header_names=redacted_header_names,
            auth=auth,
            result_channel_capacity=result_channel_capacity,
            timeout_options=timeout_options,
            logger_options=logger_options,
        )

    def with_override(self, other: APIOptions | None | UnsetType) -> FullAPIOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        if isinstance(other, UnsetType) or other is None:
            return self

        database_additional_headers: dict[str, str | None]
        redacted_header_names: set[str]
        timeout_options: FullTimeoutOptions
        logger_options: FullLoggerOptions

        if isinstance(other.database_additional_headers, UnsetType):
            database_additional_headers = self.database_additional_headers
        else:
            database_additional_headers = {
                **self.database_additional_headers,
                **other.database_additional_headers,
            }
        if isinstance(other.redacted_header_names, UnsetType):
            redacted_header_names = self.redacted_header_names
        else:
            redacted_header_names = (
                self.redacted_header_names | other.redacted_header_names
            )

        if isinstance(other.timeout_options, TimeoutOptions):
            timeout_options = self.timeout_options.with_override(other.timeout_options)
        else:
            timeout_options = self.timeout_options
        if isinstance(other.logger_options, LoggerOptions):
            logger_options = self.logger_options.with_override(other.logger_options)
        else:
            logger_options = self.logger_options

        return FullAPIOptions(
            callers=(
                other.callers
                if not isinstance(other.callers, UnsetType)
                else self.callers
            ),
            database_additional_headers=database_additional_headers,
            redacted_header_names=redacted_header_names,
            auth=other.auth if not isinstance(other.auth, UnsetType) else self.auth,
            result_channel_capacity=(
                other.result_channel_capacity
                if not isinstance(other.result_channel_capacity, UnsetType)
                else self.result_channel_capacity
            ),
            timeout_options=timeout_options,
            logger_options=logger_options,
        )


defaultTimeoutOptions = FullTimeoutOptions(
    request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
)
defaultLoggerOptions = FullLoggerOptions(
    enabled=False,
    print_query=False,
    print_result=False,
)


def defaultAPIOptions() -> FullAPIOptions:
    """
    Return the default APIOptions object, based on 'grand defaults'
    hardcoded in arangolite.
    """

    return FullAPIOptions(
        callers=[],
        database_additional_headers={},
        redacted_header_names=set(),
        auth=NoAuthProvider(),
        result_channel_capacity=DEFAULT_RESULT_CHANNEL_CAPACITY,
        timeout_options=defaultTimeoutOptions,
        logger_options=defaultLoggerOptions,
    )
