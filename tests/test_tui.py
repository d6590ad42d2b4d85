# tests/test_tui.py
from types import SimpleNamespace

import pytest

from redgreen.exceptions import PathError
from redgreen.renderer import PASS_GLYPH
from redgreen.tui import RedGreenApp, TextualDisplay
from redgreen.watch_config import WatchConfig


class _StubView:
    def __init__(self, width, height):
        self.size = SimpleNamespace(width=width, height=height)
        self.frames = []

    def show(self, frame):
        self.frames.append(frame)


def test_textual_display_adopts_view_size_and_publishes_on_flush():
    view = _StubView(4, 2)
    display = TextualDisplay(view)

    display.clear()
    assert display.size() == (4, 2)
    display.set_cell(1, 1, "x", "red", "green")
    assert view.frames == []

    display.flush()
    assert len(view.frames) == 1
    assert view.frames[0].cell(1, 1).glyph == "x"

    # The published frame is a copy; later drawing does not leak into it.
    view.size = SimpleNamespace(width=6, height=3)
    display.clear()
    assert display.size() == (6, 3)
    assert view.frames[0].size() == (4, 2)


@pytest.mark.asyncio
async def test_app_paints_result_and_quits_on_escape(tmp_path, fake_source):
    config = WatchConfig(command=("true",), path=str(tmp_path), debounce_secs=0.02)
    app = RedGreenApp(config, source_factory=lambda: fake_source)

    async with app.run_test(size=(20, 5)) as pilot:
        for _ in range(100):
            frame = app.cell_view.frame
            if frame.size() == (20, 5) and frame.cell(0, 1).bg == "green":
                break
            await pilot.pause(0.05)
        else:
            pytest.fail("display never turned green")

        assert frame.cell(0, 0).glyph == PASS_GLYPH
        orchestrator = app.orchestrator
        assert orchestrator.snapshot().interactive

        await pilot.press("escape")
        await pilot.pause()

    assert orchestrator.cancel.is_set()
    assert fake_source.unsubscribed


@pytest.mark.asyncio
async def test_app_reports_unwatchable_path(tmp_path):
    config = WatchConfig(command=("true",), path=str(tmp_path / "missing"))
    app = RedGreenApp(config)

    async with app.run_test() as pilot:
        await pilot.pause()

    assert isinstance(app.startup_error, PathError)
    assert app.orchestrator is None
