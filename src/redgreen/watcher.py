# redgreen/watcher.py
"""
Watcher - turns raw file system notifications into debounced triggers.

Notifications come from a NotificationSource (watchdog by default) running on
its own thread. They are forwarded onto the event loop, where one worker task
owns the DebounceTimer and emits exactly one Trigger per quiescent burst of
create/modify/delete events.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .cancel import CancelSignal
from .channel import Channel
from .debounce import DebounceTimer
from .exceptions import PathError, ShutdownError, WatchError

logger = logging.getLogger(__name__)

QUALIFYING_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED})


@dataclass(frozen=True)
class FsEvent:
    """A qualifying file system change."""

    kind: str
    path: str


@dataclass(frozen=True)
class Trigger:
    """Request to run the configured command again."""

    event_count: int
    """Number of file system events coalesced into this trigger."""

    last_path: str | None = None


@dataclass(frozen=True)
class _Fired:
    generation: int


class NotificationSource(Protocol):
    """
    A subscription to non-recursive change notifications for one directory.

    Callbacks may be invoked from any thread.
    """

    def subscribe(
        self,
        path: str,
        on_event: Callable[[FsEvent], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...

    def unsubscribe(self) -> None: ...


# ─────────────────────────────────────────────────────────────────────────────
# watchdog-backed source
# ─────────────────────────────────────────────────────────────────────────────
class _ForwardingHandler(FileSystemEventHandler):
    """Forward qualifying watchdog events; report anything odd as an error."""

    def __init__(
        self,
        root: str,
        on_event: Callable[[FsEvent], None],
        on_error: Callable[[Exception], None],
    ):
        self._root = os.path.abspath(root)
        self._on_event = on_event
        self._on_error = on_error

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in QUALIFYING_EVENTS:
            return
        try:
            path = os.fsdecode(event.src_path)
            if (
                event.is_directory
                and event.event_type == EVENT_TYPE_DELETED
                and os.path.abspath(path) == self._root
            ):
                self._on_error(WatchError(f"watched directory {self._root} was removed"))
                return
            self._on_event(FsEvent(kind=event.event_type, path=path))
        except Exception as e:
            self._on_error(WatchError(f"cannot handle {event!r}: {e}"))


class WatchdogSource:
    """NotificationSource backed by a watchdog Observer."""

    def __init__(self, join_timeout: float = 2.0):
        self._observer = None
        self._join_timeout = join_timeout

    def subscribe(
        self,
        path: str,
        on_event: Callable[[FsEvent], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        if not os.path.isdir(path):
            raise PathError(path, "no such directory")

        observer = Observer()
        try:
            observer.schedule(_ForwardingHandler(path, on_event, on_error), path, recursive=False)
            observer.start()
        except OSError as e:
            observer.stop()
            raise PathError(path, e.strerror or str(e)) from e
        self._observer = observer
        logger.debug(f"Subscribed to notifications for {path}")

    def unsubscribe(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        observer.join(self._join_timeout)
        if observer.is_alive():
            logger.warning("watchdog observer did not stop in time")
        else:
            logger.debug("Unsubscribed from notifications")


# ─────────────────────────────────────────────────────────────────────────────
# Watcher worker
# ─────────────────────────────────────────────────────────────────────────────
class Watcher:
    def __init__(
        self,
        path: str,
        debounce_secs: float,
        cancel: CancelSignal,
        *,
        source_factory: Callable[[], NotificationSource] = WatchdogSource,
    ):
        self._path = str(path)
        self._debounce_secs = debounce_secs
        self._cancel = cancel
        self._source_factory = source_factory
        self._task: asyncio.Task | None = None
        self._unsubscribed = False

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self) -> Channel[Trigger]:
        """
        Subscribe to `path` and start debouncing.

        Subscription happens synchronously: if it fails, PathError is raised
        and no worker task exists.

        Returns:
            Channel of Triggers, closed exactly once on cancellation

        Raises:
            PathError: The path cannot be watched
        """
        if self._task is not None:
            raise RuntimeError("Watcher already started")

        loop = asyncio.get_running_loop()
        inbox: asyncio.Queue[FsEvent | Exception | _Fired] = asyncio.Queue()

        def post(message: FsEvent | Exception) -> None:
            # Called from the notification thread.
            if not self._unsubscribed:
                loop.call_soon_threadsafe(inbox.put_nowait, message)

        source = self._source_factory()
        source.subscribe(self._path, on_event=post, on_error=post)
        logger.info(f"Watching {self._path} (debounce={self._debounce_secs}s)")

        out: Channel[Trigger] = Channel(name="triggers")
        self._task = asyncio.create_task(self._watch(source, inbox, out), name="watcher")
        return out

    async def _watch(
        self,
        source: NotificationSource,
        inbox: asyncio.Queue,
        out: Channel[Trigger],
    ) -> None:
        timer = DebounceTimer(self._debounce_secs, lambda gen: inbox.put_nowait(_Fired(gen)))
        burst = 0
        last_path: str | None = None
        try:
            while True:
                message = await self._cancel.guard(inbox.get())

                if isinstance(message, FsEvent):
                    burst += 1
                    last_path = message.path
                    timer.arm()

                elif isinstance(message, _Fired):
                    if not timer.consume(message.generation):
                        continue
                    trigger = Trigger(event_count=burst, last_path=last_path)
                    burst, last_path = 0, None
                    logger.debug(f"Debounced {trigger.event_count} events into one trigger")
                    await self._cancel.guard(out.send(trigger))

                else:
                    logger.error(f"Watch error on {self._path}: {message}")

        except ShutdownError:
            logger.debug("Watcher observed cancellation")
        finally:
            self._unsubscribed = True
            timer.cancel()
            try:
                await asyncio.to_thread(source.unsubscribe)
            finally:
                out.close()

    def __repr__(self) -> str:
        return f"Watcher(path={self._path!r}, debounce_secs={self._debounce_secs})"
