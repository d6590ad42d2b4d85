__version__ = "0.1.0"

from .aggregator import Aggregator
from .cancel import CancelSignal
from .channel import Channel
from .debounce import DebounceTimer
from .display import Cell, CellBuffer, Display
from .exceptions import (
    ChannelClosedError,
    ConfigValidationError,
    DisplayError,
    PathError,
    RedGreenError,
    ShutdownError,
    StartupError,
    WatchError,
)
from .load_config import load_config
from .logging_config import disable_logging, get_log_file_path, setup_logging
from .orchestrator import Orchestrator
from .renderer import HeadlessTarget, InteractiveTarget, Renderer, RenderTarget, paint
from .run_result import RunOutcome, RunResult
from .run_spec import RunSpec
from .runner import Runner
from .state import Color, State, StateStore
from .utils import format_duration, parse_duration
from .watch_config import WatchConfig
from .watcher import FsEvent, Trigger, WatchdogSource, Watcher

__all__ = [
    # Version
    "__version__",
    # Core Components
    "Aggregator",
    "Orchestrator",
    "Renderer",
    "Runner",
    "Watcher",
    # Data model
    "Color",
    "FsEvent",
    "RunOutcome",
    "RunResult",
    "RunSpec",
    "State",
    "StateStore",
    "Trigger",
    # Concurrency primitives
    "CancelSignal",
    "Channel",
    "DebounceTimer",
    # Rendering
    "Cell",
    "CellBuffer",
    "Display",
    "HeadlessTarget",
    "InteractiveTarget",
    "RenderTarget",
    "paint",
    # Sources
    "WatchdogSource",
    # Configuration
    "WatchConfig",
    "load_config",
    # Logging
    "disable_logging",
    "get_log_file_path",
    "setup_logging",
    # Utilities
    "format_duration",
    "parse_duration",
    # Exceptions
    "ChannelClosedError",
    "ConfigValidationError",
    "DisplayError",
    "PathError",
    "RedGreenError",
    "ShutdownError",
    "StartupError",
    "WatchError",
]
