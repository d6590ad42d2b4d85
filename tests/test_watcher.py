# tests/test_watcher.py
import asyncio
import logging
import threading

import pytest

from redgreen.cancel import CancelSignal
from redgreen.exceptions import ChannelClosedError, PathError, WatchError
from redgreen.watcher import Watcher

logging.getLogger("redgreen").setLevel(logging.DEBUG)


# ─────────────────────────────────────────────────────────────────────────────
# Real file system (watchdog)
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_bad_path_fails_without_background_work():
    threads_before = threading.active_count()
    watcher = Watcher("does/not/exist", 0.1, CancelSignal())

    with pytest.raises(PathError, match="does/not/exist"):
        watcher.start()

    assert watcher.task is None
    assert threading.active_count() == threads_before


@pytest.mark.asyncio
async def test_cancel_closes_output(tmp_path):
    cancel = CancelSignal()
    watcher = Watcher(str(tmp_path), 0.1, cancel)
    out = watcher.start()

    cancel.set()
    await asyncio.wait_for(watcher.task, 3.0)
    assert watcher.task.exception() is None
    assert out.closed
    with pytest.raises(ChannelClosedError):
        await out.receive()


@pytest.mark.asyncio
async def test_burst_produces_single_trigger(tmp_path):
    cancel = CancelSignal()
    delay = 0.3
    watcher = Watcher(str(tmp_path), delay, cancel)
    out = watcher.start()
    loop = asyncio.get_running_loop()

    try:
        target = tmp_path / "foo.txt"
        target.write_text("a")
        for i in range(3):
            await asyncio.sleep(0.02)
            with open(target, "a") as f:
                f.write(str(i))
        last_write = loop.time()

        trigger = await asyncio.wait_for(out.receive(), 3.0)
        assert loop.time() - last_write >= delay * 0.8
        assert trigger.event_count >= 1

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(out.receive(), delay * 3)
    finally:
        cancel.set()
        await asyncio.wait_for(watcher.task, 3.0)


@pytest.mark.asyncio
async def test_remove_triggers(tmp_path):
    victim = tmp_path / "foo"
    victim.write_text("x")
    cancel = CancelSignal()
    watcher = Watcher(str(tmp_path), 0.05, cancel)
    out = watcher.start()
    try:
        victim.unlink()
        await asyncio.wait_for(out.receive(), 3.0)
    finally:
        cancel.set()
        await asyncio.wait_for(watcher.task, 3.0)


# ─────────────────────────────────────────────────────────────────────────────
# Fake source (deterministic)
# ─────────────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_events_are_coalesced(fake_source):
    cancel = CancelSignal()
    watcher = Watcher("src", 0.05, cancel, source_factory=lambda: fake_source)
    out = watcher.start()
    assert fake_source.path == "src"

    for i in range(5):
        fake_source.emit(path=f"f{i}.py")

    trigger = await asyncio.wait_for(out.receive(), 1.0)
    assert trigger.event_count == 5
    assert trigger.last_path == "f4.py"

    cancel.set()
    await asyncio.wait_for(watcher.task, 1.0)
    assert fake_source.unsubscribed


@pytest.mark.asyncio
async def test_source_errors_are_logged_not_fatal(fake_source, caplog):
    cancel = CancelSignal()
    watcher = Watcher(".", 0.02, cancel, source_factory=lambda: fake_source)
    out = watcher.start()

    with caplog.at_level(logging.ERROR, logger="redgreen"):
        fake_source.fail(WatchError("inotify overflow"))
        await asyncio.sleep(0.05)
    assert "inotify overflow" in caplog.text
    assert not watcher.task.done()

    fake_source.emit()
    trigger = await asyncio.wait_for(out.receive(), 1.0)
    assert trigger.event_count == 1

    cancel.set()
    await asyncio.wait_for(watcher.task, 1.0)


@pytest.mark.asyncio
async def test_pending_timer_never_fires_after_cancel(fake_source):
    cancel = CancelSignal()
    watcher = Watcher(".", 0.1, cancel, source_factory=lambda: fake_source)
    out = watcher.start()

    fake_source.emit()
    await asyncio.sleep(0.01)
    cancel.set()
    await asyncio.wait_for(watcher.task, 1.0)

    await asyncio.sleep(0.2)
    assert watcher.task.exception() is None
    assert out.closed
    assert len(out) == 0
    assert fake_source.unsubscribed


@pytest.mark.asyncio
async def test_cancel_while_blocked_on_trigger_send(fake_source):
    cancel = CancelSignal()
    watcher = Watcher(".", 0.01, cancel, source_factory=lambda: fake_source)
    out = watcher.start()

    fake_source.emit()
    await asyncio.sleep(0.1)
    assert len(out) == 1  # nobody is receiving

    cancel.set()
    await asyncio.wait_for(watcher.task, 1.0)
    assert watcher.task.exception() is None
    with pytest.raises(ChannelClosedError):
        await out.receive()
