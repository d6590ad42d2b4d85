# tests/conftest.py
import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

import asyncio
import logging

import pytest
from redgreen.run_result import RunOutcome, RunResult
from redgreen.watcher import FsEvent


class FakeSource:
    """NotificationSource driven by the test instead of the file system."""

    def __init__(self):
        self.path = None
        self.subscribed = False
        self.unsubscribed = False
        self._on_event = None
        self._on_error = None

    def subscribe(self, path, on_event, on_error):
        self.path = path
        self.subscribed = True
        self._on_event = on_event
        self._on_error = on_error

    def unsubscribe(self):
        self.unsubscribed = True

    def emit(self, kind="modified", path="foo.py"):
        self._on_event(FsEvent(kind=kind, path=path))

    def fail(self, error):
        self._on_error(error)


class RecordingTarget:
    """RenderTarget that keeps every snapshot it was asked to draw."""

    def __init__(self):
        self.states = []
        self._changed = asyncio.Event()

    def draw(self, state):
        self.states.append(state)
        self._changed.set()

    async def wait_for(self, predicate, timeout=3.0):
        async def _wait():
            while not (self.states and predicate(self.states[-1])):
                self._changed.clear()
                await self._changed.wait()
            return self.states[-1]

        return await asyncio.wait_for(_wait(), timeout)


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def recording_target():
    return RecordingTarget()


@pytest.fixture
def ok_result():
    return RunResult(outcome=RunOutcome.SUCCESS, command=("true",), returncode=0)


@pytest.fixture
def failed_result():
    return RunResult(
        outcome=RunOutcome.NON_ZERO_EXIT,
        command=("false",),
        returncode=1,
        error="command exited with code 1",
    )


@pytest.fixture
def restore_logging():
    """Undo setup_logging()/disable_logging() so caplog keeps working elsewhere."""
    logger = logging.getLogger("redgreen")
    saved = (list(logger.handlers), logger.level, logger.propagate, logger.disabled)
    yield logger
    for handler in list(logger.handlers):
        if handler not in saved[0]:
            logger.removeHandler(handler)
            handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate, logger.disabled = saved[2:]
