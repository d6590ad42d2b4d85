# redgreen/debounce.py
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class DebounceTimer:
    """
    Single pending timer that each arm() supersedes.

    Every arm() cancels the previously scheduled callback and bumps a
    generation counter. `on_fire` receives the generation it was armed with;
    the owner passes it back to consume(), which only succeeds for the current,
    unconsumed generation. A firing that was already queued when a newer event
    re-armed the timer is therefore recognised as stale and dropped.

    Owned by one task; not thread-safe.
    """

    def __init__(self, delay_secs: float, on_fire: Callable[[int], None]):
        self._delay = delay_secs
        self._on_fire = on_fire
        self._handle: asyncio.TimerHandle | None = None
        self._generation = 0
        self._consumed = True
        self._stopped = False

    def arm(self) -> int:
        """Schedule a firing `delay_secs` from now, replacing any pending one."""
        if self._stopped:
            raise RuntimeError("DebounceTimer has been cancelled")
        if self._handle is not None:
            self._handle.cancel()
        self._generation += 1
        self._consumed = False
        self._handle = asyncio.get_running_loop().call_later(
            self._delay, self._fire, self._generation
        )
        return self._generation

    def _fire(self, generation: int) -> None:
        if self._stopped or generation != self._generation:
            return
        self._handle = None
        self._on_fire(generation)

    def consume(self, generation: int) -> bool:
        """Claim a firing. False if it is stale, already claimed, or cancelled."""
        if self._stopped or self._consumed or generation != self._generation:
            return False
        self._consumed = True
        return True

    def cancel(self) -> None:
        """Discard any pending firing for good. Idempotent."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._stopped = True

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def generation(self) -> int:
        return self._generation
