# redgreen/cancel.py
from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from typing import TypeVar

from .exceptions import ShutdownError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelSignal:
    """
    One-shot broadcast flag shared by every pipeline worker.

    Setting it is idempotent and permanent. Workers never block on anything
    without racing it: see guard().
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def set(self) -> None:
        if not self._event.is_set():
            logger.debug("Cancellation signal set")
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await `aw` unless the signal fires first.

        If the signal wins, the operation is cancelled and ShutdownError is
        raised. If the signal is already set, the operation is never started.
        When both complete in the same step the finished operation's result is
        returned, since it can no longer be undone.

        Raises:
            ShutdownError: The cancellation signal fired first
        """
        if self.is_set():
            if inspect.iscoroutine(aw):
                aw.close()
            raise ShutdownError("cancelled")

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if task.cancelled():
            raise ShutdownError("cancelled")
        return task.result()

    def __repr__(self) -> str:
        return f"CancelSignal(set={self.is_set()})"
