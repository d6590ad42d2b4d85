# redgreen/aggregator.py
from __future__ import annotations

import asyncio
import logging

from .cancel import CancelSignal
from .channel import Channel
from .exceptions import ChannelClosedError, ShutdownError
from .run_result import RunResult
from .state import State, StateStore

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Merges RunResults into the StateStore and publishes snapshots.

    Every append happens before the publish of the snapshot it produced.
    republish() lets other parties (initial render, display resize) push the
    current snapshot through the same channel without appending anything.
    """

    def __init__(self, cancel: CancelSignal, store: StateStore):
        self._cancel = cancel
        self._store = store
        self._out: Channel[State] = Channel(name="snapshots")
        self._task: asyncio.Task | None = None

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    @property
    def snapshots(self) -> Channel[State]:
        return self._out

    def start(self, results: Channel[RunResult]) -> Channel[State]:
        if self._task is not None:
            raise RuntimeError("Aggregator already started")
        self._task = asyncio.create_task(self._aggregate(results), name="aggregator")
        return self._out

    async def _aggregate(self, results: Channel[RunResult]) -> None:
        try:
            while True:
                try:
                    result = await self._cancel.guard(results.receive())
                except ChannelClosedError:
                    logger.debug("Result channel closed, aggregator exiting")
                    return
                snapshot = self._store.append(result)
                await self._cancel.guard(self._out.send(snapshot))
        except ShutdownError:
            logger.debug("Aggregator observed cancellation")
        finally:
            self._out.close()

    async def republish(self) -> None:
        """Send the current snapshot downstream. No-op once shut down."""
        snapshot = self._store.snapshot()
        try:
            await self._cancel.guard(self._out.send(snapshot))
        except (ShutdownError, ChannelClosedError):
            logger.debug("Republish skipped, pipeline is shutting down")
