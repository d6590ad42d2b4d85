# redgreen/cli.py
"""
Command-line entry point.

    redgreen [options] [--] [COMMAND [ARGS...]]

Interactive mode paints the terminal green/red and quits on Escape.
--debug runs headless: state changes are logged and SIGINT/SIGTERM stop it.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from . import __version__
from .exceptions import DisplayError, RedGreenError
from .load_config import find_config, load_config
from .logging_config import disable_logging, setup_logging
from .orchestrator import Orchestrator
from .renderer import HeadlessTarget
from .utils import parse_duration
from .watch_config import WatchConfig

logger = logging.getLogger(__name__)


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redgreen",
        description="Rerun a command whenever files in a directory change and show pass/fail.",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="command to run (default: pytest)",
    )
    parser.add_argument("--path", help="directory to watch (default: .)")
    parser.add_argument(
        "--delay",
        type=_duration,
        dest="debounce_secs",
        help="quiet period before rerunning, e.g. 100ms (default: 100ms)",
    )
    parser.add_argument(
        "--timeout",
        type=_duration,
        dest="timeout_secs",
        help="maximum time to wait for command to finish, 0 = none (default: 5s)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug mode: no terminal display, log state and command output",
    )
    parser.add_argument("--verbose", action="store_true", help="capture and log command output")
    parser.add_argument("--config", help="TOML file with a [redgreen] table")
    parser.add_argument("--log-level", help="log level (default: INFO, DEBUG with --verbose)")
    parser.add_argument(
        "--log-file", action="store_true", help="also write logs to .redgreen/redgreen.log"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> WatchConfig:
    """Merge the config file (if any) with command-line flags. Flags win."""
    command = list(args.command or [])
    if command and command[0] == "--":
        command = command[1:]

    overrides = {
        "command": tuple(command) if command else None,
        "path": args.path,
        "debounce_secs": args.debounce_secs,
        "timeout_secs": args.timeout_secs,
        "headless": True if args.debug else None,
        "verbose": True if (args.verbose or args.debug) else None,
    }

    config_file = args.config or find_config()
    if config_file:
        return load_config(config_file, **overrides)
    return WatchConfig(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(config: WatchConfig, args: argparse.Namespace) -> None:
    level = args.log_level or ("DEBUG" if config.verbose else "INFO")
    if config.headless:
        setup_logging(level, console=True, file=args.log_file)
    elif args.log_file:
        # Console output would garble the display.
        setup_logging(level, console=False, file=True)
    else:
        disable_logging()


async def run_headless(config: WatchConfig, stop: asyncio.Event | None = None) -> int:
    """Run until SIGINT/SIGTERM (or until `stop` is set)."""
    orchestrator = Orchestrator(config, HeadlessTarget())
    await orchestrator.start()

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM)
    for sig in signals:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)
    try:
        await stop.wait()
        logger.info("Interrupted, shutting down")
    finally:
        for sig in signals:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)
        await orchestrator.shutdown()
    return 0


def run_interactive(config: WatchConfig) -> int:
    from .tui import RedGreenApp

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise DisplayError("interactive mode needs a terminal; use --debug to run headless")

    app = RedGreenApp(config)
    try:
        app.run()
    except OSError as e:
        raise DisplayError(f"cannot initialize terminal: {e}") from e
    if app.startup_error is not None:
        raise app.startup_error
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = build_config(args)
        configure_logging(config, args)
        if config.headless:
            return asyncio.run(run_headless(config))
        return run_interactive(config)
    except RedGreenError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
