# redgreen/channel.py
"""
Channel - closable message channel between pipeline workers.

asyncio.Queue has no notion of closing, and the pipeline relies on "output
closed" to propagate shutdown downstream, so workers talk through Channels:

- capacity == 0: rendezvous. send() returns only once a receiver took the item.
- capacity > 0: bounded buffer. send() blocks while the buffer is full.
- close() is synchronous and must happen exactly once.
- Items buffered before close() can still be received.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import Generic, TypeVar

from .exceptions import ChannelClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Slot(Generic[T]):
    __slots__ = ("item", "taken")

    def __init__(self, item: T):
        self.item = item
        self.taken = False


class Channel(Generic[T]):
    def __init__(self, capacity: int = 0, name: str = "channel"):
        if capacity < 0:
            raise ValueError("capacity cannot be negative")
        self._capacity = capacity
        self._name = name
        self._buffer: deque[_Slot[T]] = deque()
        self._closed = False
        self._waiters: set[asyncio.Future[None]] = set()

    # ------------------------------------------------------------------ #
    # Wakeups
    # ------------------------------------------------------------------ #
    def _wakeup(self) -> None:
        for fut in self._waiters:
            if not fut.done():
                fut.set_result(None)
        self._waiters.clear()

    async def _changed(self) -> None:
        """Block until the channel state changes (send, receive or close)."""
        fut = asyncio.get_running_loop().create_future()
        self._waiters.add(fut)
        try:
            await fut
        finally:
            self._waiters.discard(fut)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    async def send(self, item: T) -> None:
        """
        Send an item.

        If the send is cancelled before a receiver took the item, the item is
        withdrawn and will never be delivered.

        Raises:
            ChannelClosedError: The channel is (or becomes) closed before the
                item was delivered
        """
        if self._capacity:
            while len(self._buffer) >= self._capacity:
                if self._closed:
                    break
                await self._changed()
        if self._closed:
            raise ChannelClosedError(f"send on closed channel '{self._name}'")

        slot = _Slot(item)
        self._buffer.append(slot)
        self._wakeup()
        if self._capacity:
            return

        try:
            while not slot.taken:
                if self._closed:
                    raise ChannelClosedError(f"channel '{self._name}' closed during send")
                await self._changed()
        finally:
            if not slot.taken:
                self._buffer.remove(slot)

    async def receive(self) -> T:
        """
        Receive the next item.

        Raises:
            ChannelClosedError: The channel is closed and drained
        """
        while not self._buffer:
            if self._closed:
                raise ChannelClosedError(f"receive on closed channel '{self._name}'")
            await self._changed()
        slot = self._buffer.popleft()
        slot.taken = True
        self._wakeup()
        return slot.item

    def close(self) -> None:
        """
        Close the channel. Pending and future receivers see ChannelClosedError
        once buffered items are drained.

        Raises:
            ChannelClosedError: The channel was already closed
        """
        if self._closed:
            raise ChannelClosedError(f"close of closed channel '{self._name}'")
        self._closed = True
        logger.debug(f"Channel '{self._name}' closed")
        self._wakeup()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        return len(self._buffer)

    def __aiter__(self) -> AsyncIterator[T]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        while True:
            try:
                item = await self.receive()
            except ChannelClosedError:
                return
            yield item

    def __repr__(self) -> str:
        return (
            f"Channel(name='{self._name}', capacity={self._capacity}, "
            f"pending={len(self._buffer)}, closed={self._closed})"
        )
