# redgreen/runner.py
"""
Runner - serialized command execution with an enforced timeout.

Executes commands as local subprocesses with:
- One process at a time, results in request order
- Timeout enforcement (scheduled SIGKILL, cancelled on natural exit)
- Output capture (stdout + stderr merged) in verbose mode only
- Prompt shutdown: a running process is killed when cancellation fires
"""

from __future__ import annotations

import asyncio
import datetime
import logging

from .cancel import CancelSignal
from .channel import Channel
from .exceptions import ChannelClosedError, ShutdownError
from .run_result import RunOutcome, RunResult
from .run_spec import RunSpec

logger = logging.getLogger(__name__)


class Runner:
    """
    Consumes RunSpecs from a channel and produces one RunResult per spec.

    The result channel is a rendezvous: the next spec is only taken once the
    previous result has been handed to the consumer.
    """

    def __init__(self, cancel: CancelSignal, *, verbose: bool = False):
        """
        Initialize the runner.

        Args:
            cancel: Shared cancellation signal
            verbose: Capture combined output and log it instead of discarding it
        """
        self._cancel = cancel
        self._verbose = verbose
        self._task: asyncio.Task | None = None

        logger.debug(f"Initialized Runner (verbose={verbose})")

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    def start(self, specs: Channel[RunSpec]) -> Channel[RunResult]:
        """Start the worker task and return its result channel."""
        if self._task is not None:
            raise RuntimeError("Runner already started")
        out: Channel[RunResult] = Channel(name="results")
        self._task = asyncio.create_task(self._serve(specs, out), name="runner")
        return out

    async def _serve(self, specs: Channel[RunSpec], out: Channel[RunResult]) -> None:
        count = 0
        try:
            while not self._cancel.is_set():
                try:
                    spec = await self._cancel.guard(specs.receive())
                except ChannelClosedError:
                    logger.debug("Spec channel closed, runner exiting")
                    return

                result = await self._cancel.guard(self.execute(spec))
                count += 1
                await self._cancel.guard(out.send(result))
        except ShutdownError:
            logger.debug(f"Runner observed cancellation after {count} runs")
        finally:
            out.close()

    # ------------------------------------------------------------------ #
    # Single execution
    # ------------------------------------------------------------------ #
    async def execute(self, spec: RunSpec) -> RunResult:
        """
        Run one command to completion and classify the outcome.

        Never raises for command failures: they are reported through
        RunResult.outcome. If this coroutine is cancelled while the process
        runs, the process is killed before the cancellation propagates.
        """
        if spec.is_empty:
            logger.debug("Refusing to run empty command")
            return RunResult.empty_command()

        command = spec.command
        start_time = datetime.datetime.now()
        if self._verbose:
            logger.info(f"running: {spec}")

        spawn = asyncio.ensure_future(
            asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE if self._verbose else asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.STDOUT if self._verbose else asyncio.subprocess.DEVNULL,
            )
        )
        try:
            process = await asyncio.shield(spawn)
        except asyncio.CancelledError:
            # The child may come into existence after we were cancelled.
            spawn.add_done_callback(_kill_orphan)
            raise
        except (OSError, ValueError) as e:
            # ValueError: e.g. an argument with an embedded NUL byte
            logger.debug(f"Could not start {command[0]!r}: {e}")
            return self._finish(
                spec,
                RunOutcome.SPAWN_FAILURE,
                start_time,
                error=f"exec {command[0]!r}: {getattr(e, 'strerror', None) or e}",
            )

        killed_by_timeout = False

        def kill_on_timeout() -> None:
            nonlocal killed_by_timeout
            if process.returncode is not None:
                return
            killed_by_timeout = True
            logger.warning(f"Command {spec} timed out after {spec.timeout_secs}s, killing it")
            try:
                process.kill()  # SIGKILL
            except ProcessLookupError:
                pass

        kill_handle = None
        if spec.timeout_secs > 0:
            kill_handle = asyncio.get_running_loop().call_later(spec.timeout_secs, kill_on_timeout)

        try:
            stdout, _ = await process.communicate()
        except asyncio.CancelledError:
            logger.debug(f"Execution of {spec} cancelled, killing process")
            await self._kill_process(process)
            raise
        finally:
            if kill_handle is not None:
                kill_handle.cancel()

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        returncode = process.returncode

        if killed_by_timeout:
            outcome = RunOutcome.TIMEOUT_KILL
            error = f"command timed out after {spec.timeout_secs}s"
        elif returncode != 0:
            outcome = RunOutcome.NON_ZERO_EXIT
            error = f"command exited with code {returncode}"
        else:
            outcome = RunOutcome.SUCCESS
            error = None

        result = self._finish(
            spec, outcome, start_time, returncode=returncode, error=error, output=output
        )
        if self._verbose:
            logger.info(f"output:\n{output}")
            if error:
                logger.info(f"error: {error}")
        return result

    def _finish(
        self,
        spec: RunSpec,
        outcome: RunOutcome,
        start_time: datetime.datetime,
        *,
        returncode: int | None = None,
        error: str | None = None,
        output: str = "",
    ) -> RunResult:
        result = RunResult(
            outcome=outcome,
            command=spec.command,
            returncode=returncode,
            error=error,
            output=output,
            start_time=start_time,
            end_time=datetime.datetime.now(),
        )
        logger.debug(f"Run finished: {result!r}")
        return result

    async def _kill_process(self, process: asyncio.subprocess.Process) -> None:
        """
        Forcefully kill a process with SIGKILL.

        Args:
            process: The process to kill
        """
        try:
            process.kill()  # SIGKILL
            await process.wait()  # Ensure it's dead
        except ProcessLookupError:
            # Already dead
            pass

    def __repr__(self) -> str:
        running = self._task is not None and not self._task.done()
        return f"Runner(verbose={self._verbose}, running={running})"


def _kill_orphan(spawn: asyncio.Future) -> None:
    """Kill a process whose spawn finished after its run was cancelled."""
    if spawn.cancelled() or spawn.exception() is not None:
        return
    process = spawn.result()
    if process.returncode is None:
        logger.debug(f"Killing process {process.pid} spawned after cancellation")
        try:
            process.kill()  # SIGKILL
        except ProcessLookupError:
            pass
