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
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from arangolite.data.envelope import Envelope


class ArangoException(Exception):
    """
    Any exception occurred while building, issuing or reading the results of
    requests to the database server, such as:
      - a network error while sending an HTTP request,
      - a response that cannot be decoded,
      - the server reporting an error for a query or transaction,
      - a transaction or payload rejected before anything is sent.
    """

    pass


@dataclass
class TransportException(ArangoException):
    """
    An HTTP request could not be completed: the connection failed, or the
    server answered with a non-2xx status code without a parseable error
    envelope.

    Attributes:
        text: a text message about the exception.
        endpoint: the URL targeted by the failing request, if known.
    """

    text: str
    endpoint: str | None

    def __init__(
        self,
        text: str,
        *,
        endpoint: str | None = None,
    ) -> None:
        ArangoException.__init__(self, text)
        self.text = text
        self.endpoint = endpoint

    def __str__(self) -> str:
        return self.text


@dataclass
class ArangoHttpException(TransportException, httpx.HTTPStatusError):
    """
    A request resulted in an HTTP 4xx or 5xx response that does not carry
    an error envelope from the database (e.g. an unauthorized access).

    This is raised as a subclass of `httpx.HTTPStatusError`, so that it can be
    caught as such by code already handling httpx errors.

    Attributes:
        text: a text message about the exception.
        endpoint: the URL targeted by the failing request.
        status_code: the HTTP status code of the response.
    """

    text: str
    endpoint: str | None
    status_code: int | None

    def __init__(
        self,
        text: str,
        *,
        httpx_error: httpx.HTTPStatusError,
        endpoint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        TransportException.__init__(self, text, endpoint=endpoint)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.status_code = status_code

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
        **kwargs: Any,
    ) -> ArangoHttpException:
        """Parse a httpx status error into this exception."""

        status_code: int | None
        endpoint: str | None
        # the attempt to inspect request/response cannot afford failure.
        try:
            status_code = httpx_error.response.status_code
        except Exception:
            status_code = None
        try:
            endpoint = str(httpx_error.request.url)
        except Exception:
            endpoint = None

        return cls(
            text=str(httpx_error),
            httpx_error=httpx_error,
            endpoint=endpoint,
            status_code=status_code,
            **kwargs,
        )


@dataclass
class ArangoTimeoutException(TransportException):
    """
    An HTTP request to the server timed out.

    Attributes:
        text: a textual description of the error
        timeout_type: this denotes the phase of the HTTP request when the event
            occurred ("connect", "read", "write", "pool") or "generic" if there is
            not a specific phase associated to the exception.
        endpoint: the URL that the request was targeting.
        raw_payload: the payload associated to the request (as a string).
    """

    text: str
    timeout_type: str
    endpoint: str | None
    raw_payload: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
    ) -> None:
        super().__init__(text, endpoint=endpoint)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint
        self.raw_payload = raw_payload


@dataclass
class DecodeException(ArangoException):
    """
    The response body from the server is not a well-formed envelope:
    not JSON, not a JSON object, or with fields of the wrong type.

    Attributes:
        text: a text message about the exception.
        raw_response: the body of the response, as a string.
    """

    text: str
    raw_response: str | None

    def __init__(
        self,
        text: str,
        raw_response: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response

    def __str__(self) -> str:
        return self.text


@dataclass
class DatabaseException(ArangoException):
    """
    The server returned an envelope marked as `"error": true`.
    This ends the lifecycle of the cursor it belongs to, whichever page
    it arrives with.

    Attributes:
        text: the error message from the server, verbatim.
        error_num: the server-side error number, if present.
        code: the HTTP code reported in the envelope, if present.
        raw_response: the full envelope as returned by the server.
    """

    text: str
    error_num: int | None
    code: int | None
    raw_response: dict[str, Any] | None

    def __init__(
        self,
        text: str,
        *,
        error_num: int | None = None,
        code: int | None = None,
        raw_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.error_num = error_num
        self.code = code
        self.raw_response = raw_response

    def __str__(self) -> str:
        return self.text

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> DatabaseException:
        """Build the exception out of an error envelope."""

        return cls(
            envelope.error_message,
            error_num=envelope.error_num,
            code=envelope.code,
            raw_response=envelope.raw_response,
        )


@dataclass
class InvalidTransactionException(ArangoException):
    """
    A transaction was found to be invalid before any request was sent,
    for instance because it declares no read nor write collections.

    Attributes:
        text: a text message about the exception.
    """

    text: str

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text


@dataclass
class MarshalException(ArangoException):
    """
    A payload supplied by the caller could not be serialized to JSON.
    Nothing is sent to the server in this case.

    Attributes:
        text: a text message about the exception.
    """

    text: str

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self.text = text
