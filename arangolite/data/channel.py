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
from collections import deque

from arangolite.data.envelope import StreamItem
from arangolite.settings.defaults import DEFAULT_RESULT_CHANNEL_CAPACITY

logger = logging.getLogger(__name__)


def _check_capacity(capacity: int | None) -> None:
    if capacity is not None and capacity < 1:
        raise ValueError(
            "The result channel capacity must be a positive integer or None."
        )


class ResultChannel:
    """
    A first-in, first-out conduit of `StreamItem` objects between one producer
    (the thread fetching the pages of a cursor) and one consumer.

    The channel holds at most `capacity` undelivered items: a producer sending
    to a full channel waits until the consumer receives, or until the channel
    is cancelled. An error item is always the last item: sending it closes
    the channel.

    Args:
        capacity: the maximum number of undelivered items, or None for no limit.
    """

    def __init__(self, capacity: int | None = DEFAULT_RESULT_CHANNEL_CAPACITY) -> None:
        _check_capacity(capacity)
        self.capacity = capacity
        self._items: deque[StreamItem] = deque()
        self._condition = threading.Condition()
        self._closed = False
        self._cancelled = False

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(capacity={self.capacity}, "
            f"pending={len(self._items)}, closed={self._closed}, "
            f"cancelled={self._cancelled})"
        )

    def _is_full(self) -> bool:
        return self.capacity is not None and len(self._items) >= self.capacity

    @property
    def closed(self) -> bool:
        with self._condition:
            return self._closed

    @property
    def cancelled(self) -> bool:
        with self._condition:
            return self._cancelled

    def send(self, item: StreamItem) -> bool:
        """
        Append an item to the channel, waiting while the channel is full.

        Returns:
            True if the item was enqueued, False if the channel got cancelled
            meanwhile (in which case the item is discarded).
        """
        with self._condition:
            while self._is_full() and not self._cancelled:
                self._condition.wait()
            if self._cancelled:
                return False
            if self._closed:
                raise RuntimeError("Cannot send items to a closed result channel.")
            self._items.append(item)
            if item.is_error:
                self._closed = True
            self._condition.notify_all()
            return True

    def close(self) -> None:
        """Signal that no more items will be sent. Pending items stay available."""
        with self._condition:
            self._closed = True
            self._condition.notify_all()

    def receive(self) -> StreamItem | None:
        """
        Take the next item, waiting for the producer if none is available yet.

        Returns:
            the next `StreamItem`, or None once the channel is closed and drained
            (or cancelled).
        """
        with self._condition:
            while not self._items and not self._closed and not self._cancelled:
                self._condition.wait()
            if self._items:
                item = self._items.popleft()
                self._condition.notify_all()
                return item
            return None

    def cancel(self) -> None:
        """
        Abandon the channel: pending items are discarded, a producer blocked
        on `send` is released and subsequent sends are ignored.
        """
        with self._condition:
            if not self._cancelled:
                logger.debug("result channel cancelled")
            self._cancelled = True
            self._closed = True
            self._items.clear()
            self._condition.notify_all()

    def has_pending(self) -> bool:
        """
        Whether an item is ready to be received, or may still be sent by
        the producer. False once the channel is closed and drained.
        """
        with self._condition:
            return bool(self._items) or not self._closed


class AsyncResultChannel:
    """
    The asyncio counterpart of `ResultChannel`: a first-in, first-out conduit
    of `StreamItem` objects between a producer task and one consumer.

    Args:
        capacity: the maximum number of undelivered items, or None for no limit.
    """

    def __init__(self, capacity: int | None = DEFAULT_RESULT_CHANNEL_CAPACITY) -> None:
        _check_capacity(capacity)
        self.capacity = capacity
        self._items: deque[StreamItem] = deque()
        self._condition = asyncio.Condition()
        self._closed = False
        self._cancelled = False
        self._producer: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(capacity={self.capacity}, "
            f"pending={len(self._items)}, closed={self._closed}, "
            f"cancelled={self._cancelled})"
        )

    def _is_full(self) -> bool:
        return self.capacity is not None and len(self._items) >= self.capacity

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def attach_producer(self, producer: asyncio.Task[None]) -> None:
        """Register the task feeding this channel, to be cancelled with it."""
        self._producer = producer

    async def send(self, item: StreamItem) -> bool:
        """
        Append an item to the channel, waiting while the channel is full.

        Returns:
            True if the item was enqueued, False if the channel got cancelled.
        """
        async with self._condition:
            while self._is_full() and not self._cancelled:
                await self._condition.wait()
            if self._cancelled:
                return False
            if self._closed:
                raise RuntimeError("Cannot send items to a closed result channel.")
            self._items.append(item)
            if item.is_error:
                self._closed = True
            self._condition.notify_all()
            return True

    async def close(self) -> None:
        """Signal that no more items will be sent. Pending items stay available."""
        async with self._condition:
            self._closed = True
            self._condition.notify_all()

    async def receive(self) -> StreamItem | None:
        """
        Take the next item, waiting for the producer if none is available yet.

        Returns:
            the next `StreamItem`, or None once the channel is closed and drained
            (or cancelled).
        """
        async with self._condition:
            while not self._items and not self._closed and not self._cancelled:
                await self._condition.wait()
            if self._items:
                item = self._items.popleft()
                self._condition.notify_all()
                return item
            return None

    def cancel(self) -> None:
        """
        Abandon the channel: pending items are discarded and the producer task,
        if still running, is cancelled.
        """
        if not self._cancelled:
            logger.debug("async result channel cancelled")
        self._cancelled = True
        self._closed = True
        self._items.clear()
        producer = self._producer
        if producer is not None and not producer.done():
            # a stream collected after its event loop is gone
            if producer.get_loop().is_closed():
                return
            producer.cancel()

    def has_pending(self) -> bool:
        """
        Whether an item is ready to be received, or may still be sent by
        the producer. False once the channel is closed and drained.
        """
        return bool(self._items) or not self._closed
