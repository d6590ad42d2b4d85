# redgreen/run_result.py
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .utils import format_duration

logger = logging.getLogger(__name__)


class RunOutcome(Enum):
    """Classified outcome of one command execution."""
    SUCCESS = "success"
    EMPTY_COMMAND = "empty_command"
    SPAWN_FAILURE = "spawn_failure"
    NON_ZERO_EXIT = "non_zero_exit"
    TIMEOUT_KILL = "timeout_kill"


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of a single execution of a RunSpec.

    Created exactly once per consumed RunSpec by the Runner and never mutated
    afterwards. Failures are data: `outcome` says which kind.
    """

    # ------------------------------------------------------------------ #
    # Outcome
    # ------------------------------------------------------------------ #
    outcome: RunOutcome

    command: tuple[str, ...] = ()
    """The argument vector that was (or would have been) executed."""

    returncode: int | None = None
    """Exit status, or None when no process ran. Negative = killed by signal."""

    error: str | None = None
    """Human-readable failure description, None on success."""

    output: str = ""
    """Combined stdout + stderr. Only captured in verbose mode."""

    # ------------------------------------------------------------------ #
    # Timing
    # ------------------------------------------------------------------ #
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None

    # ------------------------------------------------------------------ #
    # Constructors
    # ------------------------------------------------------------------ #
    @classmethod
    def empty_command(cls) -> RunResult:
        now = datetime.datetime.now()
        return cls(
            outcome=RunOutcome.EMPTY_COMMAND,
            error="command must not be empty",
            start_time=now,
            end_time=now,
        )

    # ------------------------------------------------------------------ #
    # Derived properties
    # ------------------------------------------------------------------ #
    @property
    def success(self) -> bool:
        return self.outcome is RunOutcome.SUCCESS

    @property
    def duration(self) -> datetime.timedelta | None:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def duration_secs(self) -> float | None:
        return self.duration.total_seconds() if self.duration is not None else None

    @property
    def duration_str(self) -> str:
        """Human-readable duration (e.g. '452ms', '2.4s', '1m 23s')."""
        secs = self.duration_secs
        if secs is None:
            return "—"
        return format_duration(secs)

    # ------------------------------------------------------------------ #
    # Representation & serialization
    # ------------------------------------------------------------------ #
    def __repr__(self) -> str:
        return (
            f"RunResult(outcome={self.outcome.value}, cmd={list(self.command)!r}, "
            f"rc={self.returncode}, dur={self.duration_str})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "outcome": self.outcome.value,
            "success": self.success,
            "command": list(self.command),
            "returncode": self.returncode,
            "error": self.error,
            "output": self.output,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_secs": self.duration_secs,
            "duration_str": self.duration_str,
        }
