from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable
import logging
import threading

from .core import PersistentTimerState, format_elapsed
from .hotkeys import HotkeyCommand


Dispatcher = Callable[[Callable[[], None]], None]


class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


def run_inline(callback: Callable[[], None]) -> None:
    callback()


class ElapsedCounter:
    """Elapsed seconds shared between the tick thread and the UI thread."""

    def __init__(self, value: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = max(int(value), 0)

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0


@dataclass
class TimerRun:
    stop_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None

    @property
    def cancelled(self) -> bool:
        return self.stop_event.is_set()


class TimerController:
    def __init__(
        self,
        state: PersistentTimerState,
        tick_seconds: float = 1.0,
        dispatch: Dispatcher | None = None,
        on_display: Callable[[str], None] | None = None,
        on_status: Callable[[TimerStatus], None] | None = None,
        initial_elapsed: int = 0,
    ) -> None:
        self.state = state
        self.tick_seconds = float(tick_seconds)
        self.dispatch = dispatch or run_inline
        self.on_display = on_display
        self.on_status = on_status
        self.counter = ElapsedCounter(initial_elapsed)
        self.log = logging.getLogger("keytimer.timer")
        self._run: TimerRun | None = None
        self._run_lock = threading.Lock()

    @property
    def elapsed(self) -> int:
        return self.counter.value

    @property
    def formatted(self) -> str:
        return format_elapsed(self.counter.value)

    @property
    def status(self) -> TimerStatus:
        return TimerStatus.RUNNING if self._run is not None else TimerStatus.IDLE

    @property
    def is_running(self) -> bool:
        return self._run is not None

    def start(self) -> None:
        with self._run_lock:
            if self._run is not None:
                return
            run = TimerRun()
            run.thread = threading.Thread(target=self._loop, args=(run,), name="keytimer-tick", daemon=True)
            self._run = run
        run.thread.start()
        self.log.info("timer_started elapsed=%s tick_seconds=%s", self.elapsed, self.tick_seconds)
        self._emit_status()

    def stop(self) -> None:
        with self._run_lock:
            run = self._run
            if run is None:
                return
            self._run = None
        run.stop_event.set()
        if run.thread is not None and run.thread is not threading.current_thread():
            run.thread.join(timeout=max(self.tick_seconds, 1.0))
        self.log.info("timer_stopped elapsed=%s", self.elapsed)
        self.state.save(self.elapsed)
        self._emit_display()
        self._emit_status()

    def reset(self) -> None:
        self.counter.reset()
        self.log.info("timer_reset running=%s", self.is_running)
        self._emit_display()
        self.state.save(0)

    def tick(self) -> None:
        run = self._run
        if run is None or run.cancelled:
            return
        self._tick(run)

    def handle_command(self, command: HotkeyCommand | str) -> None:
        command = HotkeyCommand(command)
        if command is HotkeyCommand.START:
            self.start()
        elif command is HotkeyCommand.STOP:
            self.stop()
        elif command is HotkeyCommand.RESET:
            self.reset()

    def set_output_path(self, new_path: str | Path) -> None:
        self.state.set_output_path(new_path, self.elapsed)

    def shutdown(self) -> None:
        self.stop()
        self.state.save(self.elapsed)
        self.state.save_settings()
        self.log.info("timer_shutdown elapsed=%s", self.elapsed)

    def _loop(self, run: TimerRun) -> None:
        # Wait first, then count: cancellation during the wait ends the run
        # without a partial tick.
        while not run.stop_event.wait(self.tick_seconds):
            self._tick(run)

    def _tick(self, run: TimerRun) -> None:
        self.counter.increment()

        def _apply() -> None:
            if run.cancelled:
                return
            self._emit_display()
            self.state.save(self.elapsed)

        self.dispatch(_apply)

    def _emit_display(self) -> None:
        if self.on_display is not None:
            self.on_display(self.formatted)

    def _emit_status(self) -> None:
        if self.on_status is not None:
            self.on_status(self.status)
