from __future__ import annotations

import logging
from pathlib import Path
from queue import Empty, Queue
import sys
import tkinter as tk
from tkinter import filedialog, messagebox

from .config import load_config
from .core import PersistentTimerState
from .hotkeys import HotkeyBackend, HotkeyCommand, HotkeyListener, command_label
from .paths import OUTPUT_FILE_NAME
from .timer import TimerController, TimerStatus


class KeyTimerApp:
    def __init__(self, data_dir: Path, config_path: Path) -> None:
        self.root = tk.Tk()
        self.root.title("Timer With Key Bindings")
        self.root.attributes("-topmost", True)
        self.root.resizable(False, False)
        self.ui = self._build_platform_ui_theme()
        self.root.configure(bg=self.ui["bg_app"])

        self.log = logging.getLogger("keytimer")
        self.command_queue: Queue[tuple[str, object]] = Queue()
        self.config = load_config(Path(config_path), self.log)
        self.state = PersistentTimerState(Path(data_dir), on_warning=self._show_error)
        self.controller = TimerController(
            self.state,
            tick_seconds=self.config.tick_seconds,
            dispatch=lambda fn: self.command_queue.put(("tick", fn)),
            on_display=self._on_display,
            on_status=self._on_status,
            initial_elapsed=self.state.load(),
        )
        self.hotkeys: HotkeyListener = HotkeyBackend(self.config.keyboard_map, enabled=self.config.enabled)
        self.hotkeys.subscribe(self._on_hotkey)

        self.timer_var = tk.StringVar(value=self.controller.formatted)
        self.state_var = tk.StringVar(value="Idle")
        self.path_var = tk.StringVar(value=str(self.state.output_path))
        self.status_var = tk.StringVar(value="Ready")

        self._build_ui()
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _build_platform_ui_theme(self) -> dict[str, object]:
        if sys.platform == "darwin":
            return {
                "font_small": ("Inter", 13),
                "font_timer": ("SF Mono", 40, "bold"),
                "bg_app": "#f6f6f6",
                "bg_card": "#ffffff",
                "fg_primary": "#1d1d1f",
                "fg_secondary": "#86868b",
                "accent": "#34c759",
                "danger": "#ff3b30",
                "running_fg": "#248a3d",
            }
        if sys.platform.startswith("win"):
            return {
                "font_small": ("Segoe UI", 9),
                "font_timer": ("Consolas", 28, "bold"),
                "bg_app": "#F3F3F3",
                "bg_card": "#FFFFFF",
                "fg_primary": "#1F1F1F",
                "fg_secondary": "#5F5F5F",
                "accent": "#0078D4",
                "danger": "#C42B1C",
                "running_fg": "#107C41",
            }
        return {
            "font_small": ("TkDefaultFont", 9),
            "font_timer": ("Courier", 26, "bold"),
            "bg_app": "#EFEFEF",
            "bg_card": "#FFFFFF",
            "fg_primary": "#222222",
            "fg_secondary": "#555555",
            "accent": "#1E88E5",
            "danger": "#C62828",
            "running_fg": "#2E7D32",
        }

    def _tk_button_colors(self, role: str = "neutral") -> dict[str, object]:
        if role == "accent":
            bg, fg = self.ui["accent"], "#FFFFFF"
        elif role == "danger":
            bg, fg = self.ui["danger"], "#FFFFFF"
        else:
            bg, fg = self.ui["bg_app"], self.ui["fg_primary"]
        return {
            "bg": bg,
            "fg": fg,
            "activebackground": bg,
            "activeforeground": fg,
            "relief": tk.FLAT,
            "bd": 0,
            "highlightthickness": 0,
            "font": self.ui["font_small"],
            "padx": 10,
            "pady": 6,
            "cursor": "hand2",
        }

    def _build_ui(self) -> None:
        self.frame = tk.Frame(self.root, bg=self.ui["bg_card"], padx=10, pady=10)
        self.frame.pack(padx=12, pady=12)

        self.timer_label = tk.Label(
            self.frame,
            textvariable=self.timer_var,
            font=self.ui["font_timer"],
            bg=self.ui["bg_card"],
            fg=self.ui["fg_primary"],
        )
        self.timer_label.grid(row=0, column=0, columnspan=3, pady=(0, 2))
        self.state_label = tk.Label(
            self.frame,
            textvariable=self.state_var,
            font=self.ui["font_small"],
            bg=self.ui["bg_card"],
            fg=self.ui["fg_secondary"],
        )
        self.state_label.grid(row=1, column=0, columnspan=3, pady=(0, 8))

        keyboard_map = self.config.keyboard_map
        self.btn_start = tk.Button(
            self.frame,
            text=command_label("start", keyboard_map),
            command=lambda: self.handle_command(HotkeyCommand.START, source="button"),
            **self._tk_button_colors("accent"),
        )
        self.btn_start.grid(row=2, column=0, padx=2, sticky="we")
        self.btn_stop = tk.Button(
            self.frame,
            text=command_label("stop", keyboard_map),
            command=lambda: self.handle_command(HotkeyCommand.STOP, source="button"),
            **self._tk_button_colors("neutral"),
        )
        self.btn_stop.grid(row=2, column=1, padx=2, sticky="we")
        self.btn_reset = tk.Button(
            self.frame,
            text=command_label("reset", keyboard_map),
            command=lambda: self.handle_command(HotkeyCommand.RESET, source="button"),
            **self._tk_button_colors("danger"),
        )
        self.btn_reset.grid(row=2, column=2, padx=2, sticky="we")

        self.path_entry = tk.Entry(self.frame, textvariable=self.path_var, width=48, state="readonly")
        self.path_entry.grid(row=3, column=0, columnspan=3, sticky="we", pady=(10, 4))

        path_buttons = tk.Frame(self.frame, bg=self.ui["bg_card"])
        path_buttons.grid(row=4, column=0, columnspan=3, sticky="we")
        tk.Button(
            path_buttons,
            text="Choose File",
            command=self._choose_output_file,
            **self._tk_button_colors("neutral"),
        ).pack(side="left")
        tk.Button(
            path_buttons,
            text="Copy Path",
            command=self._copy_path,
            **self._tk_button_colors("neutral"),
        ).pack(side="left", padx=(4, 0))

        self.status_label = tk.Label(
            self.frame,
            textvariable=self.status_var,
            anchor="w",
            justify="left",
            wraplength=360,
            font=self.ui["font_small"],
            bg=self.ui["bg_card"],
            fg=self.ui["fg_secondary"],
        )
        self.status_label.grid(row=5, column=0, columnspan=3, sticky="we", pady=(8, 0))

    def _on_display(self, text: str) -> None:
        self.timer_var.set(text)

    def _on_status(self, status: TimerStatus) -> None:
        running = status is TimerStatus.RUNNING
        self.state_var.set("Running" if running else "Idle")
        self.timer_label.configure(fg=self.ui["running_fg"] if running else self.ui["fg_primary"])

    def _on_hotkey(self, command: HotkeyCommand) -> None:
        # Runs on the pynput thread.
        self.command_queue.put(("global_hotkey", command))

    def handle_command(self, command: HotkeyCommand, source: str = "unknown") -> None:
        self.log.info("command_received source=%s command=%s", source, command.value)
        self.controller.handle_command(command)
        self.status_var.set(
            {
                HotkeyCommand.START: "Timer started",
                HotkeyCommand.STOP: "Timer stopped",
                HotkeyCommand.RESET: "Timer reset",
            }[command]
        )

    def _choose_output_file(self) -> None:
        current = self.state.output_path
        chosen = filedialog.asksaveasfilename(
            parent=self.root,
            title="Select or Specify File",
            initialfile=OUTPUT_FILE_NAME,
            initialdir=str(current.parent),
            defaultextension=".txt",
            filetypes=[("Text Files", "*.txt"), ("All Files", "*.*")],
        )
        if not chosen:
            return
        try:
            self.controller.set_output_path(Path(chosen).resolve())
        except ValueError as exc:
            self.log.warning("output_path_rejected path=%s error=%s", chosen, exc)
            self.status_var.set(f"Output path rejected: {exc}")
            return
        self.path_var.set(str(self.state.output_path))
        self.status_var.set(f"Output file: {self.state.output_path.name}")

    def _copy_path(self) -> None:
        self.root.clipboard_clear()
        self.root.clipboard_append(str(self.state.output_path))
        messagebox.showinfo("Info", "Path copied to clipboard!", parent=self.root)

    def _show_error(self, message: str, repeated: bool = False) -> None:
        if hasattr(self, "status_var"):
            self.status_var.set(message)
        if repeated:
            return
        messagebox.showerror("Error", message, parent=self.root)

    def _drain_queue(self) -> None:
        while True:
            try:
                source, item = self.command_queue.get_nowait()
            except Empty:
                break
            if source == "tick":
                item()
            else:
                self.handle_command(item, source=source)

    def _poll(self) -> None:
        self._drain_queue()
        self.root.after(100, self._poll)

    def _on_close(self) -> None:
        self.hotkeys.unsubscribe(self._on_hotkey)
        self.hotkeys.stop()
        self.controller.shutdown()
        self.root.destroy()

    def run(self) -> None:
        self.hotkeys.start()
        if self.hotkeys.available:
            self.status_var.set("Global hotkeys active")
        elif self.hotkeys.error:
            self.status_var.set(f"{self.hotkeys.error} (buttons still work)")
            self.log.warning("global_hotkeys_unavailable error=%s", self.hotkeys.error)
        self._poll()
        self.root.mainloop()
