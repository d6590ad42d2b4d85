# redgreen/state.py
from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from .run_result import RunResult

logger = logging.getLogger(__name__)


class Color(Enum):
    """
    Aggregate status of the program.

    - UNKNOWN → nothing has finished yet
    - GREEN   → the last run succeeded
    - RED     → the last run failed
    """
    UNKNOWN = "unknown"
    GREEN = "green"
    RED = "red"

    @property
    def paint(self) -> str:
        """Display colour used for this status. Unknown is shown as yellow."""
        return _PAINT[self]

    def __str__(self) -> str:
        return self.value


_PAINT = {
    Color.UNKNOWN: "yellow",
    Color.GREEN: "green",
    Color.RED: "red",
}


@dataclass(frozen=True)
class State:
    """
    Immutable snapshot of everything the renderer needs.

    `results` only ever grows: appended() returns a new State and leaves this
    one untouched, so a published snapshot can be read without locking.
    """

    results: tuple[RunResult, ...] = ()
    """Run history in completion order (oldest first)."""

    interactive: bool = True
    """Draw on a display (True) or log (False)."""

    def color(self) -> Color:
        if not self.results:
            return Color.UNKNOWN
        return Color.GREEN if self.results[-1].success else Color.RED

    def appended(self, result: RunResult) -> State:
        return State(results=self.results + (result,), interactive=self.interactive)

    @property
    def last(self) -> RunResult | None:
        return self.results[-1] if self.results else None

    def __len__(self) -> int:
        return len(self.results)


class ReadWriteLock:
    """
    Many readers or one writer.

    Meant to be held for one read or one append only, never across an await.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class StateStore:
    """The single shared mutable value of the pipeline: the current State."""

    def __init__(self, initial: State | None = None):
        self._state = initial if initial is not None else State()
        self._lock = ReadWriteLock()

    def append(self, result: RunResult) -> State:
        """Append a result and return the resulting snapshot."""
        with self._lock.write_locked():
            self._state = self._state.appended(result)
            state = self._state
        logger.debug(f"Appended {result.outcome.value}, history={len(state)}, color={state.color()}")
        return state

    def snapshot(self) -> State:
        with self._lock.read_locked():
            return self._state
