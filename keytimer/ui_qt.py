from __future__ import annotations

import logging
from pathlib import Path
from queue import Empty, Queue
import sys

from .config import load_config
from .core import PersistentTimerState
from .hotkeys import HotkeyBackend, HotkeyCommand, HotkeyListener, command_label
from .paths import OUTPUT_FILE_NAME
from .timer import TimerController, TimerStatus


def _qt_imports():
    from PySide6.QtCore import QTimer, Qt
    from PySide6.QtWidgets import (
        QApplication,
        QFileDialog,
        QFrame,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QMessageBox,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )

    return {
        "QApplication": QApplication,
        "QFileDialog": QFileDialog,
        "QFrame": QFrame,
        "QHBoxLayout": QHBoxLayout,
        "QLabel": QLabel,
        "QLineEdit": QLineEdit,
        "QMessageBox": QMessageBox,
        "QPushButton": QPushButton,
        "QTimer": QTimer,
        "Qt": Qt,
        "QVBoxLayout": QVBoxLayout,
        "QWidget": QWidget,
    }


STYLESHEET = """
QWidget#MainWindow { background: #f3f3f3; }
QFrame#Card { background: #ffffff; border: 1px solid #e1e1e1; border-radius: 10px; }
QLabel#Timer { font-family: Consolas, "SF Mono", monospace; font-size: 40px; font-weight: 700; color: #1f1f1f; }
QLabel#Timer[running="true"] { color: #107c41; }
QLabel#Meta { color: #5f5f5f; font-size: 12px; }
QPushButton { padding: 6px 12px; border-radius: 6px; border: 1px solid #d4d4d4; background: #fafafa; }
QPushButton#Primary { background: #0078d4; color: #ffffff; border: none; }
QPushButton#Danger { background: #c42b1c; color: #ffffff; border: none; }
"""


class KeyTimerQtApp:
    def __init__(self, data_dir: Path, config_path: Path) -> None:
        self.qt = _qt_imports()
        self.QTimer = self.qt["QTimer"]
        self.Qt = self.qt["Qt"]
        self.QApplication = self.qt["QApplication"]
        self.QWidget = self.qt["QWidget"]
        self.QVBoxLayout = self.qt["QVBoxLayout"]
        self.QHBoxLayout = self.qt["QHBoxLayout"]
        self.QFrame = self.qt["QFrame"]
        self.QLabel = self.qt["QLabel"]
        self.QLineEdit = self.qt["QLineEdit"]
        self.QPushButton = self.qt["QPushButton"]
        self.QFileDialog = self.qt["QFileDialog"]
        self.QMessageBox = self.qt["QMessageBox"]

        self.log = logging.getLogger("keytimer")
        self.command_queue: Queue[tuple[str, object]] = Queue()
        self.config = load_config(Path(config_path), self.log)

        self.qt_app = self.QApplication.instance() or self.QApplication(sys.argv)
        self.window = self.QWidget()
        self.window.setWindowTitle("Timer With Key Bindings")
        self.window.setWindowFlag(self.Qt.WindowStaysOnTopHint, True)
        self.window.setObjectName("MainWindow")
        self.window.setStyleSheet(STYLESHEET)

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

        self._build_ui()
        self._on_display(self.controller.formatted)
        self.qt_app.aboutToQuit.connect(self._on_quit)  # type: ignore[attr-defined]

        self.ui_timer = self.QTimer(self.window)
        self.ui_timer.timeout.connect(self._drain_queue)  # type: ignore[attr-defined]
        self.ui_timer.start(100)

    def _build_ui(self) -> None:
        vbox = self.QVBoxLayout(self.window)
        vbox.setContentsMargins(12, 12, 12, 12)

        self.card = self.QFrame()
        self.card.setObjectName("Card")
        card_layout = self.QVBoxLayout(self.card)
        card_layout.setContentsMargins(16, 16, 16, 16)
        card_layout.setSpacing(10)
        vbox.addWidget(self.card)

        self.timer_label = self.QLabel()
        self.timer_label.setObjectName("Timer")
        self.timer_label.setAlignment(self.Qt.AlignCenter)
        card_layout.addWidget(self.timer_label)
        self.state_label = self.QLabel("Idle")
        self.state_label.setObjectName("Meta")
        self.state_label.setAlignment(self.Qt.AlignCenter)
        card_layout.addWidget(self.state_label)

        keyboard_map = self.config.keyboard_map
        buttons = self.QHBoxLayout()
        self.btn_start = self.QPushButton(command_label("start", keyboard_map))
        self.btn_start.setObjectName("Primary")
        self.btn_start.clicked.connect(lambda: self.handle_command(HotkeyCommand.START, "button"))  # type: ignore[attr-defined]
        buttons.addWidget(self.btn_start)
        self.btn_stop = self.QPushButton(command_label("stop", keyboard_map))
        self.btn_stop.clicked.connect(lambda: self.handle_command(HotkeyCommand.STOP, "button"))  # type: ignore[attr-defined]
        buttons.addWidget(self.btn_stop)
        self.btn_reset = self.QPushButton(command_label("reset", keyboard_map))
        self.btn_reset.setObjectName("Danger")
        self.btn_reset.clicked.connect(lambda: self.handle_command(HotkeyCommand.RESET, "button"))  # type: ignore[attr-defined]
        buttons.addWidget(self.btn_reset)
        card_layout.addLayout(buttons)

        self.path_edit = self.QLineEdit(str(self.state.output_path))
        self.path_edit.setReadOnly(True)
        self.path_edit.setMinimumWidth(360)
        card_layout.addWidget(self.path_edit)

        path_row = self.QHBoxLayout()
        self.btn_choose = self.QPushButton("Choose File")
        self.btn_choose.clicked.connect(self._choose_output_file)  # type: ignore[attr-defined]
        path_row.addWidget(self.btn_choose)
        self.btn_copy = self.QPushButton("Copy Path")
        self.btn_copy.clicked.connect(self._copy_path)  # type: ignore[attr-defined]
        path_row.addWidget(self.btn_copy)
        path_row.addStretch(1)
        card_layout.addLayout(path_row)

        self.status_label = self.QLabel("Ready")
        self.status_label.setObjectName("Meta")
        self.status_label.setWordWrap(True)
        card_layout.addWidget(self.status_label)

    def _on_display(self, text: str) -> None:
        self.timer_label.setText(text)

    def _on_status(self, status: TimerStatus) -> None:
        running = status is TimerStatus.RUNNING
        self.state_label.setText("Running" if running else "Idle")
        self.timer_label.setProperty("running", "true" if running else "false")
        self.timer_label.style().unpolish(self.timer_label)
        self.timer_label.style().polish(self.timer_label)

    def _on_hotkey(self, command: HotkeyCommand) -> None:
        # Runs on the pynput thread.
        self.command_queue.put(("global_hotkey", command))

    def handle_command(self, command: HotkeyCommand, source: str = "unknown") -> None:
        self.log.info("command_received source=%s command=%s", source, command.value)
        self.controller.handle_command(command)
        self.status_label.setText(
            {
                HotkeyCommand.START: "Timer started",
                HotkeyCommand.STOP: "Timer stopped",
                HotkeyCommand.RESET: "Timer reset",
            }[command]
        )

    def _choose_output_file(self) -> None:
        initial = str(self.state.output_path.parent / OUTPUT_FILE_NAME)
        chosen, _ = self.QFileDialog.getSaveFileName(
            self.window,
            "Select or Specify File",
            initial,
            "Text Files (*.txt);;All Files (*.*)",
        )
        if not chosen:
            return
        try:
            self.controller.set_output_path(Path(chosen).resolve())
        except ValueError as exc:
            self.log.warning("output_path_rejected path=%s error=%s", chosen, exc)
            self.status_label.setText(f"Output path rejected: {exc}")
            return
        self.path_edit.setText(str(self.state.output_path))
        self.status_label.setText(f"Output file: {self.state.output_path.name}")

    def _copy_path(self) -> None:
        self.QApplication.clipboard().setText(str(self.state.output_path))
        self.QMessageBox.information(self.window, "Info", "Path copied to clipboard!")

    def _show_error(self, message: str, repeated: bool = False) -> None:
        if hasattr(self, "status_label"):
            self.status_label.setText(message)
        if repeated:
            return
        self.QMessageBox.critical(self.window, "Error", message)

    def _drain_queue(self) -> None:
        while True:
            try:
                source, item = self.command_queue.get_nowait()
            except Empty:
                break
            if source == "tick":
                item()
            else:
                self.handle_command(item, source)

    def _on_quit(self) -> None:
        self.ui_timer.stop()
        self.hotkeys.unsubscribe(self._on_hotkey)
        self.hotkeys.stop()
        self.controller.shutdown()

    def run(self) -> None:
        self.hotkeys.start()
        if self.hotkeys.available:
            self.status_label.setText("Global hotkeys active")
        elif self.hotkeys.error:
            self.status_label.setText(f"{self.hotkeys.error} (buttons still work)")
            self.log.warning("global_hotkeys_unavailable error=%s", self.hotkeys.error)
        self.window.show()
        self.qt_app.exec()
