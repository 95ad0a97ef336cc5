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

import httpx

from arangolite.exceptions import _TimeoutContext

logger = logging.getLogger(__name__)


class HttpMethod:
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


def log_request(
    http_method: str,
    url: str,
    loggable_headers: dict[str, str],
    content: bytes | None,
    timeout_context: _TimeoutContext,
) -> None:
    """
    Log an outgoing request at DEBUG level.

    Args:
        http_method: the HTTP verb of the request.
        url: the full URL of the request.
        loggable_headers: the request headers, with secrets already masked.
            These are logged as they are.
        content: the body of the request, if any.
        timeout_context: the timeout the request is subject to.
    """
    timeout_desc = (
        f"{timeout_context.request_ms} ms" if timeout_context.request_ms else "none"
    )
    logger.debug(f"-> {http_method} {url} (timeout: {timeout_desc})")
    logger.debug(f"-> headers: {loggable_headers}")
    if content is not None:
        logger.debug(f"-> body: {content.decode(errors='replace')}")


def log_response(response: httpx.Response) -> None:
    """Log a received response at DEBUG level."""
    logger.debug(
        f"<- {response.status_code} from {response.request.method} {response.url}"
    )
    logger.debug(f"<- body: {response.text}")


def to_httpx_timeout(timeout_context: _TimeoutContext) -> httpx.Timeout | None:
    if not timeout_context.request_ms:
        return None
    return httpx.Timeout(timeout_context.request_ms / 1000)
