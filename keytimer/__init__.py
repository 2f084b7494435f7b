from .core import PersistentTimerState, TimerFormatError, format_elapsed, parse_elapsed
from .hotkeys import HotkeyBackend, HotkeyCommand
from .timer import TimerController, TimerStatus

__all__ = [
    "HotkeyBackend",
    "HotkeyCommand",
    "PersistentTimerState",
    "TimerController",
    "TimerFormatError",
    "TimerStatus",
    "format_elapsed",
    "parse_elapsed",
]
