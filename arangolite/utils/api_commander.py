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

import json
import logging
from types import TracebackType
from typing import Any, Iterable, Sequence

import httpx

from arangolite.constants import CallerType
from arangolite.exceptions import (
    ArangoHttpException,
    _TimeoutContext,
    to_arango_timeout_exception,
    to_transport_exception,
)
from arangolite.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)
from arangolite.utils.request_tools import (
    HttpMethod,
    log_request,
    log_response,
    to_httpx_timeout,
)
from arangolite.utils.user_agents import compose_user_agent

logger = logging.getLogger(__name__)


def _carries_error_envelope(raw_response: httpx.Response) -> bool:
    """
    Whether a response body is an envelope explicitly marked as an error
    by the server. Used to tell database errors reported with a non-2xx status
    apart from plain HTTP failures.
    """
    try:
        body = json.loads(raw_response.text)
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("error") is True


class APICommander:
    """
    The transport primitive: performs one HTTP call toward a fixed base
    (endpoint plus path) and returns the raw response.

    Failures to complete the call are raised as `TransportException`
    (or its subclasses `ArangoTimeoutException`, `ArangoHttpException`).
    A non-2xx response whose body is an error envelope from the database is
    returned as it is, leaving its interpretation to the envelope decoder.

    Args:
        api_endpoint: the base URL of the server.
        path: the path all requests are relative to, e.g. "_db/shop".
        headers: extra headers for all requests. None values are dropped.
        callers: caller identities, to compose the User-Agent header.
        redacted_header_names: headers (besides `Authorization`) whose
            values are masked in the logs.
    """

    client = httpx.Client()

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        callers: Sequence[CallerType] = [],
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        self.async_client = httpx.AsyncClient()
        self.api_endpoint = api_endpoint.rstrip("/")
        self.path = path.strip("/")
        self.headers = headers
        self.callers = callers
        self.redacted_header_names = set(redacted_header_names or [])

        self.base_url = f"{self.api_endpoint}/{self.path}".rstrip("/")
        self.full_headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": compose_user_agent(self.callers),
        }
        for header_name, header_value in self.headers.items():
            if header_value is not None:
                self.full_headers[header_name] = header_value
        masked_names = {
            header_name.lower()
            for header_name in self.redacted_header_names
            | DEFAULT_REDACTED_HEADER_NAMES
        }
        self._loggable_headers = {
            header_name: (
                FIXED_SECRET_PLACEHOLDER
                if header_name.lower() in masked_names
                else header_value
            )
            for header_name, header_value in self.full_headers.items()
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(api_endpoint={self.api_endpoint}, "
            f"path={self.path}, callers={self.callers})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, APICommander):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.path == other.path,
                    self.headers == other.headers,
                    self.callers == other.callers,
                    self.redacted_header_names == other.redacted_header_names,
                ]
            )
        else:
            return False

    async def __aenter__(self) -> APICommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.async_client.aclose()

    def _request_url(self, additional_path: str | None) -> str:
        if not additional_path:
            return self.base_url
        return f"{self.base_url}/{additional_path.lstrip('/')}"

    def _prepare(
        self,
        http_method: str,
        content: bytes | None,
        additional_path: str | None,
        timeout_context: _TimeoutContext | None,
    ) -> tuple[str, _TimeoutContext]:
        request_url = self._request_url(additional_path)
        _timeout_context = timeout_context or _TimeoutContext(request_ms=None)
        log_request(
            http_method,
            request_url,
            self._loggable_headers,
            content,
            _timeout_context,
        )
        return request_url, _timeout_context

    def _check_response(self, raw_response: httpx.Response) -> httpx.Response:
        log_response(raw_response)
        if raw_response.is_success:
            return raw_response
        if _carries_error_envelope(raw_response):
            logger.debug(
                f"status {raw_response.status_code} carries an error envelope"
            )
            return raw_response
        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            raise ArangoHttpException.from_httpx_error(http_exc)
        return raw_response

    def raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        content: bytes | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        """
        Issue one HTTP request, blocking until the response is received.

        Args:
            http_method: the HTTP method.
            content: the request body, if any.
            additional_path: a path relative to the base of this commander.
            timeout_context: the timeout to honour, with its setting name.

        Returns:
            the `httpx.Response`, either 2xx or carrying an error envelope.

        Raises:
            ArangoTimeoutException: if the request times out.
            ArangoHttpException: for a non-2xx response without error envelope.
            TransportException: if the request cannot be completed.
        """

        request_url, _timeout_context = self._prepare(
            http_method, content, additional_path, timeout_context
        )
        try:
            raw_response = self.client.request(
                method=http_method,
                url=request_url,
                content=content,
                timeout=to_httpx_timeout(_timeout_context),
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_arango_timeout_exception(timeout_exc, _timeout_context)
        except httpx.TransportError as transport_exc:
            raise to_transport_exception(transport_exc)
        return self._check_response(raw_response)

    async def async_raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        content: bytes | None = None,
        additional_path: str | None = None,
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        """The asyncio counterpart of `raw_request`."""

        request_url, _timeout_context = self._prepare(
            http_method, content, additional_path, timeout_context
        )
        try:
            raw_response = await self.async_client.request(
                method=http_method,
                url=request_url,
                content=content,
                timeout=to_httpx_timeout(_timeout_context),
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_arango_timeout_exception(timeout_exc, _timeout_context)
        except httpx.TransportError as transport_exc:
            raise to_transport_exception(transport_exc)
        return self._check_response(raw_response)
