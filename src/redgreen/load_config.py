from __future__ import annotations

import logging
import shlex
from dataclasses import fields
from pathlib import Path
from typing import Any, BinaryIO

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # <3.11

from .exceptions import ConfigValidationError
from .utils import parse_duration
from .watch_config import WatchConfig

logger = logging.getLogger(__name__)

SECTION = "redgreen"
DEFAULT_CONFIG_FILE = "redgreen.toml"

_DURATION_KEYS = ("debounce_secs", "timeout_secs", "shutdown_timeout_secs")


# =====================================================================
#   Main loader
# =====================================================================
def load_config(source: str | Path | BinaryIO, **overrides: Any) -> WatchConfig:
    """
    Load and validate the [redgreen] table of a TOML file into a WatchConfig.

    Resolves a relative `path` relative to the config file location.
    Keyword overrides (e.g. from command-line flags) win over file values.

    Example file:

        [redgreen]
        command = ["pytest", "-x"]
        path = "src"
        debounce_secs = "250ms"
        timeout_secs = 30
    """
    config_path: Path | None = None
    try:
        if not hasattr(source, "read"):
            config_path = Path(source).resolve()
            with open(config_path, "rb") as f:
                data = tomli.load(f)
        else:
            data = tomli.load(source)  # type: ignore
    except tomli.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {config_path or '<stream>'}: {e}") from None
    except OSError as e:
        raise ConfigValidationError(f"Cannot read config file {source}: {e}") from None

    base_dir = config_path.parent if config_path else Path.cwd()

    section = data.get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigValidationError(f"[{SECTION}] must be a table")

    values = _normalize(section.copy(), base_dir)
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = WatchConfig(**values)
    except TypeError as e:
        raise ConfigValidationError(f"Invalid config in [{SECTION}]: {e}") from None

    logger.debug(f"Loaded config from {config_path or '<stream>'}: {config}")
    return config


def find_config(directory: str | Path = ".") -> Path | None:
    """Return the default config file in `directory`, if there is one."""
    candidate = Path(directory) / DEFAULT_CONFIG_FILE
    return candidate if candidate.is_file() else None


def _normalize(values: dict[str, Any], base_dir: Path) -> dict[str, Any]:
    known = {f.name for f in fields(WatchConfig)}
    unknown = set(values) - known
    if unknown:
        raise ConfigValidationError(
            f"Unknown keys in [{SECTION}]: {sorted(unknown)}. Valid keys: {sorted(known)}"
        )

    # ────── command: list or shell-style string ──────
    if isinstance(values.get("command"), str):
        values["command"] = shlex.split(values["command"])

    # ────── durations: number of seconds or "250ms" ──────
    for key in _DURATION_KEYS:
        if key in values:
            try:
                values[key] = parse_duration(values[key])
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(f"Invalid {key}: {e}") from None

    # ────── path relative to the config file ──────
    if "path" in values and values["path"] is not None:
        watch_path = Path(values["path"])
        if not watch_path.is_absolute():
            values["path"] = str(base_dir / watch_path)

    return values
