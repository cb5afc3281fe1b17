"""Logging configuration.

The terminal belongs to the UI, so log records go to a file.
"""

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: str) -> int:
    """Map a level name to a logging level; unknown names mean INFO."""
    return _LEVELS.get((name or "").strip().lower(), logging.INFO)


def default_log_file() -> Path:
    xdg = os.getenv("XDG_STATE_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "state"
    return base / "depman" / "depman.log"


def setup_logging(level: str = "info", log_file: Optional[Path] = None) -> Path:
    """
    Configure the root "depman" logger to write to a file.

    Returns:
        Path of the log file in use
    """
    path = log_file if log_file is not None else default_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger("depman")
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    root.addHandler(handler)
    root.setLevel(parse_level(level))
    # Keep records away from the terminal the UI is drawing on
    root.propagate = False
    return path
