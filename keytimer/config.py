from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import json
import logging
import math


COMMAND_ORDER = ("start", "stop", "reset")

COMMAND_TITLES = {
    "start": "Start",
    "stop": "Stop",
    "reset": "Reset",
}


def default_keyboard_map() -> dict[str, str]:
    return {
        "start": "shift+1",
        "stop": "shift+2",
        "reset": "shift+3",
    }


@dataclass
class AppConfig:
    enabled: bool = True
    keyboard_map: dict[str, str] = field(default_factory=default_keyboard_map)
    tick_seconds: float = 1.0


def default_config_data() -> dict[str, object]:
    return {
        "enabled": True,
        "tick_seconds": 1.0,
        "keyboard_map": default_keyboard_map(),
    }


def load_config(config_path: Path, log: logging.Logger | None = None) -> AppConfig:
    config_path = Path(config_path)
    logger = log or logging.getLogger("keytimer.config")

    try:
        if not config_path.exists():
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(json.dumps(default_config_data(), indent=2), encoding="utf-8")
            logger.info("config_created path=%s", config_path)
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors.
        logger.warning("config_unreadable path=%s error=%s fallback=defaults", config_path, exc)
        return AppConfig()
    if not isinstance(raw, dict):
        logger.warning("config_invalid path=%s fallback=defaults", config_path)
        return AppConfig()

    keyboard_map_raw = raw.get("keyboard_map", {})
    if not isinstance(keyboard_map_raw, dict):
        keyboard_map_raw = {}
    defaults = default_keyboard_map()
    keyboard_map = {command: str(keyboard_map_raw.get(command, defaults[command])) for command in COMMAND_ORDER}

    try:
        tick_seconds = float(raw.get("tick_seconds", 1.0))
    except (TypeError, ValueError):
        tick_seconds = 1.0
    if not math.isfinite(tick_seconds) or tick_seconds <= 0:
        logger.warning("config_invalid_tick tick_seconds=%s fallback=1.0 path=%s", tick_seconds, config_path)
        tick_seconds = 1.0

    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        logger.warning("config_invalid_enabled enabled=%r fallback=true path=%s", enabled, config_path)
        enabled = True

    cfg = AppConfig(
        enabled=enabled,
        keyboard_map=keyboard_map,
        tick_seconds=tick_seconds,
    )
    logger.info(
        "config_loaded path=%s enabled=%s tick_seconds=%s keyboard_map=%s",
        config_path,
        cfg.enabled,
        cfg.tick_seconds,
        cfg.keyboard_map,
    )
    return cfg

