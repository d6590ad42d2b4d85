# redgreen/orchestrator.py
"""
Orchestrator - wires Watcher → Runner → Aggregator → Renderer.

Owns the one CancelSignal of the pipeline and its shutdown protocol:
shutdown sets the signal first, then waits (bounded) for every worker to
observe it and exit.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .aggregator import Aggregator
from .cancel import CancelSignal
from .channel import Channel
from .exceptions import ChannelClosedError, ShutdownError
from .renderer import Renderer, RenderTarget
from .run_spec import RunSpec
from .runner import Runner
from .state import State, StateStore
from .watch_config import WatchConfig
from .watcher import NotificationSource, Trigger, WatchdogSource, Watcher

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        config: WatchConfig,
        target: RenderTarget,
        *,
        source_factory: Callable[[], NotificationSource] = WatchdogSource,
    ):
        self._config = config
        self._cancel = CancelSignal()
        self._spec = config.run_spec()
        self._store = StateStore(State(interactive=not config.headless))

        # Depth 1: a trigger arriving while a run is in flight queues exactly one rerun.
        self._specs: Channel[RunSpec] = Channel(capacity=1, name="specs")

        self._watcher = Watcher(
            config.path, config.debounce_secs, self._cancel, source_factory=source_factory
        )
        self._runner = Runner(self._cancel, verbose=config.verbose)
        self._aggregator = Aggregator(self._cancel, self._store)
        self._renderer = Renderer(self._cancel, target)

        self._tasks: list[asyncio.Task] = []
        self._started = False
        self._shutdown_task: asyncio.Future[None] | None = None
        self.submitted = 0

        logger.debug(f"Orchestrator created for {self._spec} (headless={config.headless})")

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def start(self) -> None:
        """
        Start every worker, render the initial state and submit the first run.

        Raises:
            PathError: The watched path cannot be subscribed to. Nothing has
                been started in that case.
        """
        if self._started:
            raise RuntimeError("Orchestrator already started")

        triggers = self._watcher.start()
        self._started = True

        results = self._runner.start(self._specs)
        snapshots = self._aggregator.start(results)
        self._renderer.start(snapshots)
        resubmit = asyncio.create_task(self._resubmit(triggers), name="resubmit")

        self._tasks = [
            self._watcher.task,
            resubmit,
            self._runner.task,
            self._aggregator.task,
            self._renderer.task,
        ]

        await self._aggregator.republish()
        try:
            await self._submit()
        except (ShutdownError, ChannelClosedError):
            logger.debug("Shutdown requested before the initial run was submitted")
            return
        logger.info(f"Pipeline started: running {self._spec} on changes in {self._config.path}")

    async def shutdown(self, timeout: float | None = None) -> None:
        """
        Stop the pipeline. Safe to call more than once and concurrently.

        Args:
            timeout: Seconds to wait for workers before cancelling them.
                Defaults to WatchConfig.shutdown_timeout_secs.
        """
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shutdown(timeout))
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self, timeout: float | None) -> None:
        self._cancel.set()
        if not self._tasks:
            return

        timeout = self._config.shutdown_timeout_secs if timeout is None else timeout
        logger.debug(f"Waiting up to {timeout}s for {len(self._tasks)} workers")
        done, pending = await asyncio.wait(self._tasks, timeout=timeout)

        for task in pending:
            logger.warning(f"Worker '{task.get_name()}' did not stop within {timeout}s, cancelling it")
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"Worker '{task.get_name()}' failed", exc_info=task.exception())

        logger.info("Pipeline stopped")

    async def __aenter__(self) -> Orchestrator:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------ #
    # Workers & hooks
    # ------------------------------------------------------------------ #
    async def _submit(self) -> None:
        await self._cancel.guard(self._specs.send(self._spec))
        self.submitted += 1

    async def _resubmit(self, triggers: Channel[Trigger]) -> None:
        """Turn every trigger into a re-submission of the configured RunSpec."""
        try:
            while True:
                try:
                    trigger = await self._cancel.guard(triggers.receive())
                except ChannelClosedError:
                    logger.debug("Trigger channel closed")
                    return
                logger.info(
                    f"Change detected ({trigger.event_count} events, last: {trigger.last_path}), "
                    f"rerunning"
                )
                await self._submit()
        except ShutdownError:
            logger.debug("Resubmit worker observed cancellation")
        finally:
            self._specs.close()

    async def republish(self) -> None:
        """Redraw the current state, e.g. after a display resize. Never starts a run."""
        await self._aggregator.republish()

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def snapshot(self) -> State:
        return self._store.snapshot()

    @property
    def cancel(self) -> CancelSignal:
        return self._cancel

    @property
    def tasks(self) -> list[asyncio.Task]:
        return list(self._tasks)

    @property
    def renderer(self) -> Renderer:
        return self._renderer

    def __repr__(self) -> str:
        return (
            f"Orchestrator(spec='{self._spec}', path={self._config.path!r}, "
            f"started={self._started}, cancelled={self._cancel.is_set()})"
        )
