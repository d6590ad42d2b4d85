# tests/test_orchestrator.py
import asyncio
import logging
import time

import pytest

from redgreen.exceptions import PathError
from redgreen.orchestrator import Orchestrator
from redgreen.run_result import RunOutcome
from redgreen.state import Color
from redgreen.watch_config import WatchConfig

logging.getLogger("redgreen").setLevel(logging.DEBUG)


def _config(tmp_path, command=("true",), **kwargs):
    kwargs.setdefault("debounce_secs", 0.02)
    kwargs.setdefault("headless", True)
    return WatchConfig(command=command, path=str(tmp_path), **kwargs)


@pytest.mark.asyncio
async def test_initial_render_then_initial_run(tmp_path, fake_source, recording_target):
    orch = Orchestrator(_config(tmp_path), recording_target, source_factory=lambda: fake_source)
    await orch.start()
    try:
        state = await recording_target.wait_for(lambda s: len(s) == 1)
        assert recording_target.states[0].color() is Color.UNKNOWN
        assert state.color() is Color.GREEN
        assert state.interactive is False
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_trigger_reruns_configured_command(tmp_path, fake_source, recording_target):
    orch = Orchestrator(
        _config(tmp_path, command=("false",)), recording_target, source_factory=lambda: fake_source
    )
    await orch.start()
    try:
        await recording_target.wait_for(lambda s: len(s) == 1)

        fake_source.emit(kind="created")
        fake_source.emit(kind="modified")
        state = await recording_target.wait_for(lambda s: len(s) == 2)

        assert state.color() is Color.RED
        assert [r.outcome for r in state.results] == [RunOutcome.NON_ZERO_EXIT] * 2
        assert orch.submitted == 2
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_republish_redraws_without_running(tmp_path, fake_source, recording_target):
    orch = Orchestrator(_config(tmp_path), recording_target, source_factory=lambda: fake_source)
    await orch.start()
    try:
        await recording_target.wait_for(lambda s: len(s) == 1)
        frames = len(recording_target.states)

        await orch.republish()
        await asyncio.sleep(0.05)

        assert len(recording_target.states) == frames + 1
        assert len(orch.snapshot()) == 1
        assert orch.submitted == 1
    finally:
        await orch.shutdown()


@pytest.mark.asyncio
async def test_shutdown_is_bounded_and_idempotent(tmp_path, fake_source, recording_target):
    orch = Orchestrator(
        _config(tmp_path, command=("sleep", "30"), timeout_secs=0),
        recording_target,
        source_factory=lambda: fake_source,
    )
    await orch.start()
    await asyncio.sleep(0.1)  # the command is running now

    start = time.monotonic()
    await asyncio.wait_for(orch.shutdown(), 3.0)
    await asyncio.wait_for(orch.shutdown(), 1.0)
    assert time.monotonic() - start < 2.0

    assert orch.cancel.is_set()
    assert all(t.done() for t in orch.tasks)
    assert all(t.exception() is None for t in orch.tasks if not t.cancelled())
    assert fake_source.unsubscribed


@pytest.mark.asyncio
async def test_concurrent_shutdowns(tmp_path, fake_source, recording_target):
    orch = Orchestrator(_config(tmp_path), recording_target, source_factory=lambda: fake_source)
    await orch.start()
    await asyncio.wait_for(asyncio.gather(orch.shutdown(), orch.shutdown()), 3.0)
    assert all(t.done() for t in orch.tasks)


@pytest.mark.asyncio
async def test_bad_path_aborts_before_anything_starts(tmp_path, recording_target):
    orch = Orchestrator(_config(tmp_path / "missing"), recording_target)
    with pytest.raises(PathError):
        await orch.start()
    assert orch.tasks == []
    assert recording_target.states == []
    await orch.shutdown()


@pytest.mark.asyncio
async def test_context_manager_with_real_watcher(tmp_path, recording_target):
    async with Orchestrator(_config(tmp_path), recording_target) as orch:
        await recording_target.wait_for(lambda s: len(s) == 1)
        (tmp_path / "new.py").write_text("x = 1\n")
        await recording_target.wait_for(lambda s: len(s) >= 2)
    assert orch.cancel.is_set()
