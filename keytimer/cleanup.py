from __future__ import annotations

from pathlib import Path
import logging
import shutil
import sys

from .paths import default_data_dir


def remove_data_dir(data_dir: Path, log: logging.Logger | None = None) -> bool:
    logger = log or logging.getLogger("keytimer.cleanup")
    data_dir = Path(data_dir)
    if not data_dir.exists():
        logger.info("data_folder_absent path=%s", data_dir)
        return True
    try:
        shutil.rmtree(data_dir)
    except OSError as exc:
        logger.error("data_folder_remove_failed path=%s error=%s", data_dir, exc)
        return False
    logger.info("data_folder_removed path=%s", data_dir)
    return True


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    ok = remove_data_dir(default_data_dir())
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
