"""
Terminal display for interactive mode, built on textual.

CellView shows a CellBuffer; TextualDisplay implements the Display protocol
on top of it; RedGreenApp hosts the pipeline and maps keys and resizes onto
the Orchestrator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from rich.segment import Segment
from rich.style import Style
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.strip import Strip
from textual.widget import Widget

from .display import CellBuffer
from .exceptions import StartupError
from .orchestrator import Orchestrator
from .renderer import InteractiveTarget
from .watch_config import WatchConfig
from .watcher import NotificationSource, WatchdogSource

logger = logging.getLogger(__name__)


class CellView(Widget):
    """Full-screen widget painting the last flushed CellBuffer."""

    DEFAULT_CSS = """
    CellView {
        width: 100%;
        height: 100%;
    }
    """

    def __init__(self, on_resize: Callable[[], None] | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._frame = CellBuffer()
        self._resized = on_resize

    @property
    def frame(self) -> CellBuffer:
        return self._frame

    def show(self, frame: CellBuffer) -> None:
        self._frame = frame
        self.refresh()

    def render_line(self, y: int) -> Strip:
        width = self.size.width
        _, height = self._frame.size()
        if y >= height:
            return Strip.blank(width)
        segments = [
            Segment(cell.glyph, Style(color=cell.fg, bgcolor=cell.bg))
            for cell in self._frame.row(y)
        ]
        return Strip(segments).adjust_cell_length(width)

    def on_resize(self, event: events.Resize) -> None:
        if self._resized is not None:
            self._resized()


class TextualDisplay:
    """Display backed by a CellView. Drawing goes to a back buffer until flush()."""

    def __init__(self, view: CellView):
        self._view = view
        self._buffer = CellBuffer()

    def size(self) -> tuple[int, int]:
        return self._buffer.size()

    def clear(self) -> None:
        size = (self._view.size.width, self._view.size.height)
        if size != self._buffer.size():
            self._buffer.resize(*size)
        else:
            self._buffer.clear()

    def set_cell(self, x: int, y: int, glyph: str, fg: str, bg: str) -> None:
        self._buffer.set_cell(x, y, glyph, fg, bg)

    def flush(self) -> None:
        self._buffer.flush()
        self._view.show(self._buffer.copy())


class RedGreenApp(App):
    """Interactive redgreen session. Escape (or ctrl+c, ctrl+q) quits."""

    TITLE = "redgreen"

    BINDINGS = [
        Binding("escape", "quit", "Quit", show=False, priority=True),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        config: WatchConfig,
        *,
        source_factory: Callable[[], NotificationSource] = WatchdogSource,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._config = config
        self._source_factory = source_factory
        self._orchestrator: Orchestrator | None = None
        self.startup_error: StartupError | None = None
        self.cell_view = CellView(on_resize=self._request_redraw)

    @property
    def orchestrator(self) -> Orchestrator | None:
        return self._orchestrator

    def compose(self) -> ComposeResult:
        yield self.cell_view

    async def on_mount(self) -> None:
        target = InteractiveTarget(TextualDisplay(self.cell_view))
        orchestrator = Orchestrator(self._config, target, source_factory=self._source_factory)
        try:
            await orchestrator.start()
        except StartupError as e:
            logger.error(f"Startup failed: {e}")
            self.startup_error = e
            self.exit()
            return
        self._orchestrator = orchestrator
        # The first frame may have been painted before layout gave the view a size.
        self.call_after_refresh(self._request_redraw)

    def _request_redraw(self) -> None:
        if self._orchestrator is not None:
            self.run_worker(self._orchestrator.republish(), group="redraw")

    async def action_quit(self) -> None:
        await self._stop_pipeline()
        self.exit()

    async def on_unmount(self) -> None:
        await self._stop_pipeline()

    async def _stop_pipeline(self) -> None:
        if self._orchestrator is not None:
            await self._orchestrator.shutdown()
