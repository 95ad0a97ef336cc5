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

import asyncio
import logging
import threading

from arangolite.data.channel import AsyncResultChannel, ResultChannel
from arangolite.data.envelope import Envelope, Page, StreamItem, decode_envelope
from arangolite.exceptions import DatabaseException, _TimeoutContext
from arangolite.settings.defaults import DEFAULT_RESULT_CHANNEL_CAPACITY
from arangolite.utils.api_commander import APICommander
from arangolite.utils.request_tools import HttpMethod

logger = logging.getLogger(__name__)


def _continuation_path(path: str, cursor_id: str | None) -> str:
    return f"{path.rstrip('/')}/{cursor_id}"


def _to_stream_item(envelope: Envelope) -> StreamItem:
    if envelope.error:
        return StreamItem(error=DatabaseException.from_envelope(envelope))
    return StreamItem(
        page=Page(elements=envelope.elements, texts=envelope.element_texts)
    )


class _CursorEngineBase:
    def __init__(
        self,
        *,
        api_commander: APICommander,
        request_timeout_ms: int | None = None,
        channel_capacity: int | None = DEFAULT_RESULT_CHANNEL_CAPACITY,
    ) -> None:
        self.api_commander = api_commander
        self.request_timeout_ms = request_timeout_ms
        self.channel_capacity = channel_capacity

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(api_commander={self.api_commander}, "
            f"request_timeout_ms={self.request_timeout_ms}, "
            f"channel_capacity={self.channel_capacity})"
        )

    def _timeout_context(self) -> _TimeoutContext:
        return _TimeoutContext(
            request_ms=self.request_timeout_ms,
            label="request_timeout_ms",
        )


class CursorEngine(_CursorEngineBase):
    """
    Drives the lifecycle of a server cursor with blocking requests.

    The first page is requested on the calling thread; the continuation
    requests, if any, are issued by a background thread that feeds the
    returned `ResultChannel` until the cursor is exhausted, an error occurs
    or the channel is cancelled.

    Args:
        api_commander: the APICommander to issue the requests with.
        request_timeout_ms: the timeout for each single HTTP request.
        channel_capacity: the capacity of the result channels created.
    """

    def _fetch_page(
        self,
        *,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> Envelope:
        logger.info(f"cursor fetching a page: {http_method} {path}")
        raw_response = self.api_commander.raw_request(
            http_method=http_method,
            additional_path=path,
            content=content,
            timeout_context=self._timeout_context(),
        )
        envelope = decode_envelope(raw_response.content)
        logger.info(
            f"cursor finished fetching a page: {http_method} {path} "
            f"({len(envelope.elements)} elements, has_more={envelope.has_more})"
        )
        return envelope

    def start(
        self,
        *,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> ResultChannel:
        """
        Issue the first request of a cursor and return the channel its pages
        will be delivered through.

        Args:
            http_method: the HTTP method for the first request.
            path: the API path for the first request, relative to the database.
                Continuation requests are addressed to `<path>/<cursor id>`.
            content: the body of the first request.

        Returns:
            a `ResultChannel`, already holding the first item.

        Raises:
            TransportException: if the first request cannot be completed.
            DecodeException: if the first response cannot be decoded.
        """

        first_envelope = self._fetch_page(
            http_method=http_method,
            path=path,
            content=content,
        )
        channel = ResultChannel(capacity=self.channel_capacity)
        channel.send(_to_stream_item(first_envelope))
        if first_envelope.has_more:
            continuation = threading.Thread(
                target=self._continue,
                kwargs={
                    "channel": channel,
                    "path": path,
                    "envelope": first_envelope,
                },
                name=f"arangolite-cursor-{first_envelope.cursor_id}",
                daemon=True,
            )
            continuation.start()
        else:
            channel.close()
        return channel

    def _continue(
        self,
        *,
        channel: ResultChannel,
        path: str,
        envelope: Envelope,
    ) -> None:
        try:
            while envelope.has_more:
                if channel.cancelled:
                    logger.debug(
                        f"cursor {envelope.cursor_id} abandoned by its consumer"
                    )
                    return
                try:
                    envelope = self._fetch_page(
                        http_method=HttpMethod.PUT,
                        path=_continuation_path(path, envelope.cursor_id),
                        content=None,
                    )
                except Exception as exc:
                    logger.debug(f"cursor continuation failed: {exc}")
                    channel.send(StreamItem(error=exc))
                    return
                item = _to_stream_item(envelope)
                if not channel.send(item) or item.is_error:
                    return
        finally:
            channel.close()


class AsyncCursorEngine(_CursorEngineBase):
    """
    Drives the lifecycle of a server cursor with asyncio.

    The first page is awaited by the caller of `start`; the continuation
    requests, if any, are issued by a separate task that feeds the returned
    `AsyncResultChannel`. Cancelling the channel cancels that task.

    Args:
        api_commander: the APICommander to issue the requests with.
        request_timeout_ms: the timeout for each single HTTP request.
        channel_capacity: the capacity of the result channels created.
    """

    async def _async_fetch_page(
        self,
        *,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> Envelope:
        logger.info(f"cursor fetching a page: {http_method} {path}, async")
        raw_response = await self.api_commander.async_raw_request(
            http_method=http_method,
            additional_path=path,
            content=content,
            timeout_context=self._timeout_context(),
        )
        envelope = decode_envelope(raw_response.content)
        logger.info(
            f"cursor finished fetching a page: {http_method} {path}, async "
            f"({len(envelope.elements)} elements, has_more={envelope.has_more})"
        )
        return envelope

    async def start(
        self,
        *,
        http_method: str,
        path: str,
        content: bytes | None,
    ) -> AsyncResultChannel:
        """
        Issue the first request of a cursor and return the channel its pages
        will be delivered through.

        Args:
            http_method: the HTTP method for the first request.
            path: the API path for the first request, relative to the database.
                Continuation requests are addressed to `<path>/<cursor id>`.
            content: the body of the first request.

        Returns:
            an `AsyncResultChannel`, already holding the first item.

        Raises:
            TransportException: if the first request cannot be completed.
            DecodeException: if the first response cannot be decoded.
        """

        first_envelope = await self._async_fetch_page(
            http_method=http_method,
            path=path,
            content=content,
        )
        channel = AsyncResultChannel(capacity=self.channel_capacity)
        await channel.send(_to_stream_item(first_envelope))
        if first_envelope.has_more:
            continuation = asyncio.create_task(
                self._async_continue(
                    channel=channel,
                    path=path,
                    envelope=first_envelope,
                ),
                name=f"arangolite-cursor-{first_envelope.cursor_id}",
            )
            channel.attach_producer(continuation)
        else:
            await channel.close()
        return channel

    async def _async_continue(
        self,
        *,
        channel: AsyncResultChannel,
        path: str,
        envelope: Envelope,
    ) -> None:
        try:
            while envelope.has_more:
                if channel.cancelled:
                    logger.debug(
                        f"cursor {envelope.cursor_id} abandoned by its consumer"
                    )
                    return
                try:
                    envelope = await self._async_fetch_page(
                        http_method=HttpMethod.PUT,
                        path=_continuation_path(path, envelope.cursor_id),
                        content=None,
                    )
                except Exception as exc:
                    logger.debug(f"cursor continuation failed: {exc}")
                    await channel.send(StreamItem(error=exc))
                    return
                item = _to_stream_item(envelope)
                if not await channel.send(item) or item.is_error:
                    return
        except asyncio.CancelledError:
            logger.debug(f"cursor {envelope.cursor_id} continuation cancelled")
            raise
        finally:
            await channel.close()
