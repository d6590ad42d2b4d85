from __future__ import annotations

import logging
from dataclasses import dataclass

from .exceptions import ConfigValidationError
from .run_spec import RunSpec

logger = logging.getLogger(__name__)

DEFAULT_COMMAND: tuple[str, ...] = ("pytest",)


@dataclass(frozen=True)
class WatchConfig:
    """
    Immutable configuration for one redgreen session.
    Used both when loading from TOML and when built from command-line flags.
    Every component gets the values it needs from here at construction time.
    """

    command: tuple[str, ...] = DEFAULT_COMMAND
    """Program and arguments to run on every trigger."""

    path: str = "."
    """Directory to watch (non-recursively)."""

    debounce_secs: float = 0.1
    """Quiet period after the last file system event before a run is triggered."""

    timeout_secs: float = 5.0
    """
    Hard timeout per run in seconds. The process is killed if exceeded.
    0 = unbounded.
    """

    headless: bool = False
    """Log state changes instead of drawing on the terminal (debug mode)."""

    verbose: bool = False
    """Capture command output and log it."""

    shutdown_timeout_secs: float = 2.0
    """How long shutdown waits for workers before cancelling them outright."""

    def __post_init__(self) -> None:
        if isinstance(self.command, str):
            raise ConfigValidationError("command must be a list of strings, not a string")
        object.__setattr__(self, "command", tuple(self.command))

        if not self.command:
            logger.warning("Invalid config: command cannot be empty")
            raise ConfigValidationError("command cannot be empty")
        if not all(isinstance(arg, str) for arg in self.command):
            logger.warning(f"Invalid config: non-string argument in {self.command!r}")
            raise ConfigValidationError("command arguments must be strings")
        if not str(self.path).strip():
            logger.warning("Invalid config: path cannot be empty")
            raise ConfigValidationError("path cannot be empty")
        if self.debounce_secs < 0:
            logger.warning(f"Invalid config: debounce_secs={self.debounce_secs}")
            raise ConfigValidationError("debounce_secs cannot be negative")
        if self.timeout_secs < 0:
            logger.warning(f"Invalid config: timeout_secs={self.timeout_secs}")
            raise ConfigValidationError("timeout_secs cannot be negative")
        if self.shutdown_timeout_secs <= 0:
            logger.warning(f"Invalid config: shutdown_timeout_secs={self.shutdown_timeout_secs}")
            raise ConfigValidationError("shutdown_timeout_secs must be positive")

    def run_spec(self) -> RunSpec:
        return RunSpec(command=self.command, timeout_secs=self.timeout_secs)
