from __future__ import annotations

from pathlib import Path
import argparse
import logging

from keytimer.paths import CONFIG_FILE_NAME, LOG_FILE_NAME, default_data_dir


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Elapsed-time tracker with global Shift+1/2/3 hotkeys")
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Folder for settings, default output file, config and log (default: per-user app data folder)",
    )
    parser.add_argument(
        "--log",
        default=None,
        help=f"Path to app log file (default: {LOG_FILE_NAME} in the data folder)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to hotkey config JSON (default: {CONFIG_FILE_NAME} in the data folder)",
    )
    parser.add_argument(
        "--ui",
        default="auto",
        choices=["auto", "qt", "tk"],
        help="UI backend: auto (prefer Qt), qt, or tk",
    )
    return parser.parse_args(argv)


def setup_logging(log_path: Path) -> None:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger()
    root.setLevel(logging.INFO)
    root.handlers.clear()

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    data_dir = Path(args.data_dir) if args.data_dir else default_data_dir()
    log_path = Path(args.log) if args.log else data_dir / LOG_FILE_NAME
    config_path = Path(args.config) if args.config else data_dir / CONFIG_FILE_NAME
    setup_logging(log_path)
    logging.getLogger("keytimer").info(
        "app_start data_dir=%s log=%s config=%s ui=%s",
        data_dir,
        log_path,
        config_path,
        args.ui,
    )
    app = _build_ui_app(args.ui, data_dir, config_path)
    app.run()


def _build_ui_app(ui_mode: str, data_dir: Path, config_path: Path):
    log = logging.getLogger("keytimer")
    if ui_mode in {"auto", "qt"}:
        try:
            from keytimer.ui_qt import KeyTimerQtApp

            return KeyTimerQtApp(data_dir, config_path)
        except Exception as exc:
            if ui_mode == "qt":
                raise
            log.warning("qt_ui_unavailable fallback=tk error=%s", exc)
    from keytimer.ui import KeyTimerApp

    return KeyTimerApp(data_dir, config_path)


if __name__ == "__main__":
    main()
