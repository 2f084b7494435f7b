from __future__ import annotations

from enum import Enum
import logging
from typing import Callable, Protocol
import sys

from .config import COMMAND_ORDER, COMMAND_TITLES


ParsedCombo = tuple[frozenset[str], str]


class HotkeyCommand(str, Enum):
    START = "start"
    STOP = "stop"
    RESET = "reset"


HotkeyHandler = Callable[[HotkeyCommand], None]


class HotkeyListener(Protocol):
    available: bool
    error: str | None

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def subscribe(self, callback: HotkeyHandler) -> None: ...

    def unsubscribe(self, callback: HotkeyHandler) -> None: ...


# Virtual-key codes of the top-row digit keys. They identify the physical key
# whatever the layout or Shift state reports as the character.
_WIN_DIGIT_VKS = {0x30 + n: str(n) for n in range(10)}
_MAC_DIGIT_VKS = {
    0x1D: "0",
    0x12: "1",
    0x13: "2",
    0x14: "3",
    0x15: "4",
    0x17: "5",
    0x16: "6",
    0x1A: "7",
    0x1C: "8",
    0x19: "9",
}

# X11 only reports the shifted keysym, so without a physical code the
# US-layout Shift+digit symbols are the best available signal.
_US_SHIFTED_DIGITS = {"!": "1", "@": "2", "#": "3"}


def _physical_vk_table() -> dict[int, str] | None:
    if sys.platform.startswith("win"):
        return _WIN_DIGIT_VKS
    if sys.platform == "darwin":
        return _MAC_DIGIT_VKS
    return None


def normalize_combo_string(combo: str) -> str:
    parts = [p.strip().lower() for p in combo.split("+") if p.strip()]
    if not parts:
        return ""
    mods: list[str] = []
    key = ""
    for part in parts:
        p = {"command": "cmd", "option": "alt", "control": "ctrl"}.get(part, part)
        if p in {"cmd", "alt", "ctrl", "shift"}:
            if p not in mods:
                mods.append(p)
        else:
            key = p
    if not key:
        return "+".join(mods)
    return "+".join([*mods, key])


def parse_combo_string(combo: str) -> ParsedCombo | None:
    norm = normalize_combo_string(combo)
    if not norm:
        return None
    parts = norm.split("+")
    mods = [p for p in parts[:-1] if p]
    key = parts[-1]
    if not key or key in {"cmd", "alt", "ctrl", "shift"}:
        return None
    return frozenset(mods), key


def human_combo_label(combo: str) -> str:
    norm = normalize_combo_string(combo)
    if not norm:
        return ""
    out: list[str] = []
    for p in norm.split("+"):
        if sys.platform == "darwin":
            out.append({"cmd": "⌘", "alt": "⌥", "ctrl": "⌃", "shift": "⇧"}.get(p, p.upper()))
        else:
            out.append({"cmd": "Win", "alt": "Alt", "ctrl": "Ctrl", "shift": "Shift"}.get(p, p.upper()))
    return "".join(out) if sys.platform == "darwin" else "+".join(out)


def command_label(command: str, keyboard_map: dict[str, str]) -> str:
    human = human_combo_label(keyboard_map.get(command, ""))
    title = COMMAND_TITLES.get(command, command)
    return f"{title} ({human})" if human else title


class HotkeyBackend:
    """System-wide keyboard listener built on pynput.

    The pynput listener runs on its own thread and is never created with
    ``suppress=True``: every key event continues to the focused application
    whether or not it matched a binding.
    """

    def __init__(self, keyboard_map: dict[str, str], enabled: bool = True) -> None:
        self._listener = None
        self._subscribers: list[HotkeyHandler] = []
        self.available = False
        self.error: str | None = None
        self.log = logging.getLogger("keytimer.hotkeys")
        self._pressed_mods: set[str] = set()
        self._fired_keys: set[str] = set()
        self.enabled = bool(enabled)
        self.keyboard_map = dict(keyboard_map)
        self._parsed_bindings: dict[HotkeyCommand, ParsedCombo] = {}
        self._reload_parsed_bindings()

    def subscribe(self, callback: HotkeyHandler) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: HotkeyHandler) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def start(self) -> None:
        if self._listener is not None:
            return
        if not self.enabled:
            self.available = False
            self.error = "keyboard hotkeys disabled in config"
            self.log.info("hotkeys_disabled")
            return
        try:
            from pynput import keyboard
        except Exception as exc:  # pragma: no cover
            self.error = f"pynput unavailable: {exc}"
            self.log.warning("hotkeys_backend_unavailable error=%s", exc)
            self.available = False
            return

        self.log.info("hotkeys_backend_start platform=%s bindings=%s", sys.platform, self.keyboard_map)
        try:
            self._listener = keyboard.Listener(
                on_press=self._make_on_press(keyboard),
                on_release=self._make_on_release(keyboard),
            )
            self._listener.start()
            self.available = True
            self.error = None
        except Exception as exc:  # pragma: no cover
            self._listener = None
            self.error = f"global hotkeys unavailable: {exc}"
            self.log.exception("hotkeys_backend_failed")
            self.available = False

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
            self.log.info("hotkeys_backend_stopped")
        self.available = False
        self._pressed_mods.clear()
        self._fired_keys.clear()

    def _reload_parsed_bindings(self) -> None:
        parsed: dict[HotkeyCommand, ParsedCombo] = {}
        for command in COMMAND_ORDER:
            combo = self.keyboard_map.get(command, "")
            p = parse_combo_string(combo)
            if p is None:
                self.log.warning("hotkey_binding_invalid command=%s combo=%r", command, combo)
                continue
            parsed[HotkeyCommand(command)] = p
        self._parsed_bindings = parsed

    def _modifier_name(self, key: object, keyboard_module: object) -> str | None:
        Key = getattr(keyboard_module, "Key")
        if key in {Key.cmd, Key.cmd_l, Key.cmd_r}:
            return "cmd"
        if key in {Key.alt, Key.alt_l, Key.alt_r, getattr(Key, "alt_gr", None)}:
            return "alt"
        if key in {Key.ctrl, Key.ctrl_l, Key.ctrl_r}:
            return "ctrl"
        if key in {Key.shift, Key.shift_l, Key.shift_r}:
            return "shift"
        return None

    def _key_token(self, key: object, keyboard_module: object) -> str | None:
        KeyCode = getattr(keyboard_module, "KeyCode")
        if isinstance(key, KeyCode):
            ch = getattr(key, "char", None)
            vk = getattr(key, "vk", None)
            vk_table = _physical_vk_table()
            if vk_table is not None and vk is not None:
                # The physical key decides; a non-digit key never maps to one.
                digit = vk_table.get(vk)
                if digit is not None:
                    return digit
                if ch and not ch.isdigit():
                    return str(ch).lower()
                return None
            if ch in {"0", "1", "2", "3", "4", "5", "6", "7", "8", "9"}:
                return ch
            if ch in _US_SHIFTED_DIGITS:
                return _US_SHIFTED_DIGITS[ch]
            if ch:
                return str(ch).lower()
            return None

        key_name = getattr(key, "name", None)
        if key_name:
            return str(key_name).lower()
        return None

    def _notify(self, command: HotkeyCommand) -> None:
        for callback in list(self._subscribers):
            try:
                callback(command)
            except Exception:
                self.log.exception("hotkey_subscriber_failed command=%s", command.value)

    def _make_on_press(self, keyboard_module: object):
        def _on_press(key: object) -> None:
            mod = self._modifier_name(key, keyboard_module)
            if mod:
                self._pressed_mods.add(mod)
                return

            token = self._key_token(key, keyboard_module)
            if not token or token in self._fired_keys:
                return
            for command, (req_mods, req_key) in self._parsed_bindings.items():
                if req_key == token and req_mods.issubset(self._pressed_mods):
                    self.log.info(
                        "hotkey_matched key=%s mods=%s command=%s",
                        token,
                        sorted(self._pressed_mods),
                        command.value,
                    )
                    self._fired_keys.add(token)
                    self._notify(command)
                    return

        return _on_press

    def _make_on_release(self, keyboard_module: object):
        def _on_release(key: object) -> None:
            mod = self._modifier_name(key, keyboard_module)
            if mod:
                self._pressed_mods.discard(mod)
                if not self._pressed_mods:
                    self._fired_keys.clear()
                return

            token = self._key_token(key, keyboard_module)
            if token:
                self._fired_keys.discard(token)

        return _on_release
