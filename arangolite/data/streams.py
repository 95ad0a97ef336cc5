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
import weakref
from types import TracebackType
from typing import AsyncIterator, Iterator

from arangolite.data.channel import AsyncResultChannel, ResultChannel
from arangolite.data.envelope import Page, StreamItem, aggregate_pages

logger = logging.getLogger(__name__)


def _collect(item: StreamItem, pages: list[Page]) -> None:
    if item.error is not None:
        raise item.error
    if item.page is not None:
        pages.append(item.page)


class ResultStream:
    """
    A handle over the pages of a cursor as they are fetched, one `StreamItem`
    at a time. This class has a synchronous interface.

    The stream is usually obtained through `Database.run_stream`. Iterating over
    it yields the items in the order the server sent them: each is either a page
    or, as the last item, the error that ended the cursor.

    Closing the stream (explicitly, by leaving a `with` block, or when the stream
    is garbage-collected) stops the fetching of further pages.

    Example:
        >>> with my_database.run_stream(Query("FOR d IN documents RETURN d")) as stream:
        ...     for item in stream:
        ...         if item.is_error:
        ...             print(f"error: {item.error}")
        ...         else:
        ...             print(item.page.elements)
    """

    def __init__(self, channel: ResultChannel | None, *, description: str = "") -> None:
        self._channel = channel
        self.description = description
        self._finalizer: weakref.finalize | None = (
            weakref.finalize(self, channel.cancel) if channel is not None else None
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(description={self.description!r}, "
            f"has_more={self.has_more()})"
        )

    def __iter__(self) -> Iterator[StreamItem]:
        return self

    def __next__(self) -> StreamItem:
        item = self.next_item()
        if item is None:
            raise StopIteration
        return item

    def __enter__(self) -> ResultStream:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def has_more(self) -> bool:
        """
        Whether at least one more item can be taken from the stream, as of now:
        either already fetched, or still being fetched.
        """
        if self._channel is None:
            return False
        return self._channel.has_pending()

    def next_item(self) -> StreamItem | None:
        """
        Take the next item, waiting for it to be fetched if necessary.

        Returns:
            a `StreamItem`, or None if the stream is exhausted or closed.
        """
        if self._channel is None:
            return None
        return self._channel.receive()

    def close(self) -> None:
        """Stop the stream, discarding any page not yet taken."""
        if self._finalizer is not None:
            self._finalizer()

    def to_bytes(self) -> bytes:
        """
        Drain the stream and concatenate all remaining pages into a JSON array.

        Raises:
            ArangoException: the error that ended the cursor, if any. The pages
                already received are discarded.
        """
        pages: list[Page] = []
        try:
            for item in self:
                _collect(item, pages)
        finally:
            self.close()
        return aggregate_pages(pages)


class AsyncResultStream:
    """
    A handle over the pages of a cursor as they are fetched, one `StreamItem`
    at a time. This class has an asynchronous interface.

    The stream is usually obtained through `AsyncDatabase.run_stream`.
    See `ResultStream` for the semantics: closing this stream also cancels the
    task fetching the pages.

    Example:
        >>> async with await my_async_database.run_stream(query) as stream:
        ...     async for item in stream:
        ...         print(item.payload)
    """

    def __init__(
        self,
        channel: AsyncResultChannel | None,
        *,
        description: str = "",
    ) -> None:
        self._channel = channel
        self.description = description
        self._finalizer: weakref.finalize | None = (
            weakref.finalize(self, channel.cancel) if channel is not None else None
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(description={self.description!r}, "
            f"has_more={self.has_more()})"
        )

    def __aiter__(self) -> AsyncIterator[StreamItem]:
        return self

    async def __anext__(self) -> StreamItem:
        item = await self.next_item()
        if item is None:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> AsyncResultStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.aclose()

    def has_more(self) -> bool:
        """
        Whether at least one more item can be taken from the stream, as of now:
        either already fetched, or still being fetched.
        """
        if self._channel is None:
            return False
        return self._channel.has_pending()

    async def next_item(self) -> StreamItem | None:
        """
        Take the next item, waiting for it to be fetched if necessary.

        Returns:
            a `StreamItem`, or None if the stream is exhausted or closed.
        """
        if self._channel is None:
            return None
        return await self._channel.receive()

    async def aclose(self) -> None:
        """Stop the stream, discarding any page not yet taken."""
        if self._finalizer is not None:
            self._finalizer()

    async def to_bytes(self) -> bytes:
        """
        Drain the stream and concatenate all remaining pages into a JSON array.

        Raises:
            ArangoException: the error that ended the cursor, if any. The pages
                already received are discarded.
        """
        pages: list[Page] = []
        try:
            async for item in self:
                _collect(item, pages)
        finally:
            await self.aclose()
        return aggregate_pages(pages)
