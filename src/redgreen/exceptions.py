# redgreen/exceptions.py
"""
Custom exception hierarchy for redgreen.

All redgreen-specific exceptions inherit from RedGreenError to enable
catch-all error handling while still providing specific exception types
for different error conditions.

Failed command runs are NOT exceptions: they are reported as data through
RunResult.outcome.
"""

from __future__ import annotations


class RedGreenError(Exception):
    """
    Base exception for all redgreen errors.

    Catch this to handle any redgreen-specific error.
    """

    pass


class StartupError(RedGreenError):
    """
    Raised when the pipeline cannot be started.

    Startup errors are fatal: they surface to the user and abort before any
    pipeline worker is running.
    """

    pass


class PathError(StartupError):
    """
    Raised when a path cannot be subscribed to for file system notifications.

    Attributes:
        path: The path that could not be watched
        reason: Why the subscription failed

    Example:
        >>> Watcher("does/not/exist", 0.1, cancel).start()
        PathError: cannot watch 'does/not/exist': no such directory
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot watch {path!r}: {reason}")


class DisplayError(StartupError):
    """Raised when the interactive display backend cannot be initialized."""

    pass


class ConfigValidationError(RedGreenError):
    """
    Raised when WatchConfig or RunSpec validation fails.

    This is raised during __post_init__ when validation constraints are
    violated (e.g., negative timeout, empty command).

    Example:
        >>> WatchConfig(command=())
        ConfigValidationError: command cannot be empty
    """

    pass


class ChannelClosedError(RedGreenError):
    """
    Raised when operating on a closed Channel.

    - send() on a closed channel
    - receive() on a closed and drained channel
    - close() on an already closed channel
    """

    pass


class ShutdownError(RedGreenError):
    """
    Raised by CancelSignal.guard() when the cancellation signal wins the race
    against the guarded operation.

    Workers catch it to leave their loop; it never escapes a worker task.
    """

    pass


class WatchError(RedGreenError):
    """
    A malfunction reported by the file system notification source.

    Watch errors are logged and never stop watching.
    """

    pass
