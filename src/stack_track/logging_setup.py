# src/stack_track/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Libraries that log every request at INFO; only their warnings are interesting here.
_CHATTY_LIBRARIES = ("httpx", "httpcore", "asyncio")

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console focused on what the tracker is doing:
    - cache/scheduler/bootstrap logs pass through at the handler level
    - the HTTP fetcher logs one line per tag per tick, so only WARNING+ on console
    - captured Python warnings ('py.warnings') only at ERROR+
    - any other third-party logger only at ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("stack_track."):
            # Per-fetch debug lines still reach the file handler.
            if name.startswith("stack_track.fetch."):
                return record.levelno >= logging.WARNING
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/stack_track",
    log_file_name: str = "stack_track.log",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Configure root logging for the tracker process:
    - console handler on stderr, filtered by _ConsoleNoiseFilter
    - file handler under log_dir with everything at file_level

    Call this ONCE, before building the tracker. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_file_name

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # A second call (tests, embedding hosts) must not double every line.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    # Console (interactive)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # File (everything, including per-fetch details)
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)

    for lib in _CHATTY_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    return log_file
