# redgreen/renderer.py
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from .cancel import CancelSignal
from .channel import Channel
from .display import DEFAULT, Display
from .exceptions import ChannelClosedError, ShutdownError
from .state import State

logger = logging.getLogger(__name__)

PASS_GLYPH = "✔"
FAIL_GLYPH = "✘"


class RenderTarget(Protocol):
    """Where snapshots end up. Chosen once, when the Renderer is built."""

    def draw(self, state: State) -> None: ...


def paint(state: State, display: Display) -> None:
    """
    Draw `state` on `display`.

    Row 0 is the history strip: the most recent results first, one glyph per
    cell, as many as fit in the display width. The rest of the screen takes
    the aggregate colour. The display is cleared first, so painting the same
    snapshot twice leaves identical cells.
    """
    display.clear()
    width, height = display.size()

    for x, result in enumerate(reversed(state.results[-width:] if width else ())):
        if result.success:
            display.set_cell(x, 0, PASS_GLYPH, "green", DEFAULT)
        else:
            display.set_cell(x, 0, FAIL_GLYPH, "red", DEFAULT)

    background = state.color().paint
    for y in range(1, height):
        for x in range(width):
            display.set_cell(x, y, " ", DEFAULT, background)

    display.flush()


class InteractiveTarget:
    def __init__(self, display: Display):
        self._display = display

    def draw(self, state: State) -> None:
        paint(state, self._display)


class HeadlessTarget:
    """Logs one structured line per snapshot instead of drawing."""

    def __init__(self, log: logging.Logger | None = None):
        self._log = log or logger

    def draw(self, state: State) -> None:
        last = state.last
        self._log.info(
            f"render color={state.color()} runs={len(state)} "
            f"last={last.outcome.value if last else 'none'}"
        )
        if last is not None and last.error:
            self._log.debug(f"last error: {last.error}")


class Renderer:
    def __init__(self, cancel: CancelSignal, target: RenderTarget):
        self._cancel = cancel
        self._target = target
        self._task: asyncio.Task | None = None
        self.frames = 0

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self, snapshots: Channel[State]) -> asyncio.Task:
        if self._task is not None:
            raise RuntimeError("Renderer already started")
        self._task = asyncio.create_task(self._render(snapshots), name="renderer")
        return self._task

    async def _render(self, snapshots: Channel[State]) -> None:
        while True:
            try:
                state = await self._cancel.guard(snapshots.receive())
            except ChannelClosedError:
                logger.debug("Snapshot channel closed, renderer exiting")
                return
            except ShutdownError:
                logger.debug("Renderer observed cancellation")
                return
            try:
                self._target.draw(state)
            except Exception:
                # Keep consuming so the aggregator is never left blocked.
                logger.exception(f"Drawing snapshot of {len(state)} runs failed")
                continue
            self.frames += 1
