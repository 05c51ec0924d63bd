# src/dodue/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "dodue.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Live-query and event plumbing logs every emission at DEBUG/INFO.
_PLUMBING_LOGGERS = ("dodue.core.task_list", "dodue.core.events", "dodue.core.scope")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable while tasks are being typed in.

    dodue records pass, except plumbing below WARNING. Anything else
    (libraries, captured warnings) needs ERROR to show up. The log file
    is not filtered.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.name.startswith("dodue."):
            return record.levelno >= logging.ERROR
        if record.name.startswith(_PLUMBING_LOGGERS):
            return record.levelno >= logging.WARNING
        return True


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    *,
    log_dir: str | Path = ".local/dodue",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all records to stderr (filtered) and to <log_dir>/dodue.log (full).

    Replaces whatever handlers the root logger had; call once at startup.
    Returns the log file path.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / LOG_FILE_NAME

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = _handler(logging.StreamHandler(sys.stderr), console_level, formatter)
    console.addFilter(_ConsoleNoiseFilter())
    to_file = _handler(logging.FileHandler(str(log_file), encoding="utf-8"), file_level, formatter)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(console)
    root.addHandler(to_file)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file
