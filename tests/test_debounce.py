# tests/test_debounce.py
import asyncio

import pytest

from redgreen.debounce import DebounceTimer


@pytest.mark.asyncio
async def test_rearming_supersedes_pending_firing():
    fired = []
    timer = DebounceTimer(0.05, fired.append)

    timer.arm()
    timer.arm()
    last = timer.arm()
    await asyncio.sleep(0.15)

    assert fired == [last]
    assert not timer.armed


@pytest.mark.asyncio
async def test_consume_rejects_stale_and_repeated_generations():
    timer = DebounceTimer(10, lambda gen: None)
    first = timer.arm()
    second = timer.arm()

    assert not timer.consume(first)
    assert timer.consume(second)
    assert not timer.consume(second)
    timer.cancel()


@pytest.mark.asyncio
async def test_cancel_discards_pending_firing():
    fired = []
    timer = DebounceTimer(0.02, fired.append)
    gen = timer.arm()
    timer.cancel()
    timer.cancel()
    await asyncio.sleep(0.08)

    assert fired == []
    assert not timer.consume(gen)
    with pytest.raises(RuntimeError):
        timer.arm()
