from __future__ import annotations

from pathlib import Path, PurePath
from typing import Callable
import logging
import re

from .paths import OUTPUT_FILE_NAME, SETTINGS_FILE_NAME


WarningHandler = Callable[[str, bool], None]

_ELAPSED_RE = re.compile(r"^\s*(\d+):([0-5]?\d):([0-5]?\d)\s*$")


class TimerFormatError(ValueError):
    pass


def format_elapsed(seconds: int) -> str:
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError(f"elapsed seconds must be non-negative, got {seconds}")
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    # Hours are a flat count, 25 hours stays "25:00:00".
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def parse_elapsed(text: str) -> int:
    match = _ELAPSED_RE.match(text or "")
    if match is None:
        raise TimerFormatError(f"not an HH:MM:SS value: {text!r}")
    hours, minutes, secs = (int(part) for part in match.groups())
    return hours * 3600 + minutes * 60 + secs


def is_fully_qualified(path: str | PurePath | None) -> bool:
    if path is None:
        return False
    text = str(path).strip()
    if not text or "\x00" in text:
        return False
    return PurePath(text).is_absolute()


class PersistentTimerState:
    """Output path and plain-text persistence of the elapsed counter.

    Every file-system failure is logged and reported through
    ``on_warning(message, repeated)``. ``repeated`` is True while the same
    operation keeps failing; a success clears it. None of the public methods
    raise on I/O or decoding errors.
    """

    def __init__(self, data_dir: Path, on_warning: WarningHandler | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.settings_path = self.data_dir / SETTINGS_FILE_NAME
        self.default_output_path = self.data_dir / OUTPUT_FILE_NAME
        self.output_path = self.default_output_path
        self.on_warning = on_warning
        self._failing: set[str] = set()
        self.log = logging.getLogger("keytimer.state")

    def load(self) -> int:
        self.output_path = self._load_output_path()
        try:
            if not self.output_path.exists():
                self.log.info("output_file_missing path=%s", self.output_path)
                self.save(0)
                return 0
            content = self.output_path.read_text(encoding="utf-8")
        except (OSError, ValueError) as exc:
            self._warn("load_state", f"Error loading timer state: {exc}", exc)
            return 0
        self._failing.discard("load_state")

        try:
            elapsed = parse_elapsed(content)
        except TimerFormatError:
            self.log.warning("output_file_unparsable path=%s content=%r", self.output_path, content[:40])
            return 0
        self.log.info("state_loaded path=%s elapsed=%s", self.output_path, elapsed)
        return elapsed

    def _load_output_path(self) -> Path:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if self.settings_path.exists():
                saved = self.settings_path.read_text(encoding="utf-8").strip()
                if is_fully_qualified(saved):
                    self.log.info("settings_loaded path=%s output=%s", self.settings_path, saved)
                    return Path(saved)
                self.log.warning("settings_path_not_qualified value=%r fallback=%s", saved, self.default_output_path)
        except (OSError, ValueError) as exc:
            # Undecodable settings count as absent.
            self._warn("load_settings", f"Error loading settings: {exc}", exc)
        return self.default_output_path

    def save(self, elapsed_seconds: int) -> bool:
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_text(format_elapsed(elapsed_seconds), encoding="utf-8")
        except (OSError, ValueError) as exc:
            self._warn("save_state", f"Error saving timer state: {exc}", exc)
            return False
        if "save_state" in self._failing:
            self._failing.discard("save_state")
            self.log.info("persistence_recovered path=%s", self.output_path)
        return True

    def save_settings(self) -> bool:
        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            self.settings_path.write_text(str(self.output_path), encoding="utf-8")
        except (OSError, ValueError) as exc:
            self._warn("save_settings", f"Error saving settings: {exc}", exc)
            return False
        self._failing.discard("save_settings")
        self.log.info("settings_saved path=%s output=%s", self.settings_path, self.output_path)
        return True

    def set_output_path(self, new_path: str | Path, elapsed_seconds: int) -> None:
        if not is_fully_qualified(new_path):
            raise ValueError(f"output path must be fully qualified: {new_path!r}")
        self.output_path = Path(str(new_path).strip())
        # Failures at the new path are reported as new.
        self._failing.discard("save_state")
        self.log.info("output_path_changed path=%s", self.output_path)
        self.save_settings()
        self.save(elapsed_seconds)

    def _warn(self, operation: str, message: str, exc: BaseException) -> None:
        repeated = operation in self._failing
        self._failing.add(operation)
        if repeated:
            self.log.debug("persistence_still_failing operation=%s %s", operation, message)
        else:
            self.log.warning("persistence_failed operation=%s %s", operation, message, exc_info=exc)
        if self.on_warning is not None:
            self.on_warning(message, repeated)
