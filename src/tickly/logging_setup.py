# src/tickly/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "tickly.log"

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _PromptFriendlyFilter(logging.Filter):
    """
    Decide what reaches stderr while the `tickly>` prompt is active.

    Save timers log from their own threads, so storage records only show up
    once they matter (WARNING+). Anything outside the tickly package, captured
    warnings included, has to be an ERROR to be shown.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("tickly.storage."):
            return record.levelno >= logging.WARNING
        if record.name.startswith("tickly."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/tickly",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to `<log_dir>/tickly.log`.

    Replaces whatever handlers the root logger had, so calling it again
    reconfigures instead of duplicating output. Returns the log file path.
    """
    log_path = Path(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_PromptFriendlyFilter())

    # The file keeps every thread's records, including save timers.
    log_file = logging.FileHandler(log_path, encoding="utf-8")
    log_file.setLevel(file_level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.DEBUG)
    for handler in (console, log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.captureWarnings(True)
    return log_path
