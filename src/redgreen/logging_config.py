# redgreen/logging_config.py
"""
Logging setup for redgreen.

All modules log through `logging.getLogger(__name__)`, i.e. below the
"redgreen" namespace. Nothing is configured on import; applications call
setup_logging() once.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOGGER_NAME = "redgreen"
DEFAULT_LOG_DIR = ".redgreen"
DEFAULT_LOG_FILE = "redgreen.log"

FORMATS = {
    "simple": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)s %(name)s [%(filename)s:%(lineno)d]: %(message)s",
}

_handlers: list[logging.Handler] = []
_log_file_path: Path | None = None


def setup_logging(
    level: str | int = "INFO",
    *,
    console: bool = True,
    file: bool = False,
    log_dir: str | Path = DEFAULT_LOG_DIR,
    format: str = "simple",
    format_string: str | None = None,
    propagate: bool = True,
) -> logging.Logger:
    """
    Configure the redgreen logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Log level name or number
        console: Log to stderr
        file: Also log to <log_dir>/redgreen.log
        log_dir: Directory for the log file
        format: "simple", "detailed", or a custom format string
        format_string: Custom format string (overrides `format`)
        propagate: Let records reach the root logger too

    Returns:
        The configured "redgreen" logger
    """
    global _log_file_path

    logger = logging.getLogger(LOGGER_NAME)
    _remove_handlers(logger)

    fmt = format_string or FORMATS.get(format, format)
    formatter = logging.Formatter(fmt)

    if console:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        _add_handler(logger, handler)

    if file:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        _log_file_path = (directory / DEFAULT_LOG_FILE).resolve()
        handler = logging.FileHandler(_log_file_path, encoding="utf-8")
        handler.setFormatter(formatter)
        _add_handler(logger, handler)
    else:
        _log_file_path = None

    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = propagate
    logger.disabled = False
    return logger


def disable_logging() -> None:
    """Silence everything below the redgreen namespace (useful for tests)."""
    logger = logging.getLogger(LOGGER_NAME)
    _remove_handlers(logger)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def get_log_file_path() -> Path | None:
    """Path of the active log file, or None when file logging is off."""
    return _log_file_path


def _add_handler(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.addHandler(handler)
    _handlers.append(handler)


def _remove_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if handler in _handlers or isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()
    _handlers.clear()
