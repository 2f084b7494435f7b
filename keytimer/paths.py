from __future__ import annotations

from pathlib import Path
import os
import sys


APP_FOLDER_NAME = "TimerWithKeyBindings"
SETTINGS_FILE_NAME = "settings.txt"
OUTPUT_FILE_NAME = "TimerOutput.txt"
CONFIG_FILE_NAME = "hotkeys.json"
LOG_FILE_NAME = "keytimer.log"


def user_data_root() -> Path:
    if sys.platform.startswith("win"):
        local = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA")
        if local:
            return Path(local)
        return Path.home() / "AppData" / "Local"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    xdg = os.getenv("XDG_DATA_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return Path.home() / ".local" / "share"


def default_data_dir() -> Path:
    return user_data_root() / APP_FOLDER_NAME

