"""Bounded FIFO channel with close semantics for pipeline stages."""

import asyncio
from typing import Any, AsyncIterator

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    """Raised when sending on, or closing, a channel that is already closed."""


class Channel:
    """
    Bounded asyncio queue that its producer closes once it is done.

    Receivers see every item sent before close() and then stop. Any number of
    receivers can drain the same channel; the close marker is handed on so
    that each of them observes it.
    """

    def __init__(self, maxsize: int, name: str = "channel"):
        """
        Initialize channel.

        Args:
            maxsize: Maximum number of buffered items
            name: Name used in error messages
        """
        if maxsize < 1:
            raise ValueError("Channel capacity must be at least 1")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._drained = False
        self.name = name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def drained(self) -> bool:
        """True once the channel is closed and every item has been received."""
        return self._drained

    def full(self) -> bool:
        """Check if channel is full (backpressure indicator)."""
        return self._queue.full()

    async def send(self, item: Any) -> None:
        """
        Send an item, waiting while the channel is full.

        Raises:
            ChannelClosedError: If the channel was closed
        """
        if self._closed:
            raise ChannelClosedError(f"send on closed {self.name}")
        await self._queue.put(item)

    async def close(self) -> None:
        """
        Close the channel once everything already sent has been queued.

        Raises:
            ChannelClosedError: If the channel was already closed
        """
        if self._closed:
            raise ChannelClosedError(f"close of closed {self.name}")
        self._closed = True
        await self._queue.put(_CLOSED)

    async def receive(self) -> Any:
        """
        Receive the next item.

        Raises:
            StopAsyncIteration: If the channel is closed and drained
        """
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            # The slot just freed guarantees room for the marker
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return item

    def __aiter__(self) -> AsyncIterator[Any]:
        return self

    async def __anext__(self) -> Any:
        return await self.receive()
