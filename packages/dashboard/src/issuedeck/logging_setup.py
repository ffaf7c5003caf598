"""
Log file setup.

The terminal belongs to the UI, so logs only ever go to
``<log dir>/issuedeck.log`` (rotated by size).
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from .config import LOG_LEVELS

LOG_FILE_NAME = "issuedeck.log"
MAX_BYTES = 2 * 1024 * 1024
BACKUP_COUNT = 3

_LEVELS = {
    # no TRACE in stdlib logging; it is debug plus engine internals
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# loggers owned by this application; third-party loggers stay at WARNING
_APP_LOGGERS = ("issuedeck", "issuedeck_tui")


def configure_logging(log_dir: str, level: str = "info") -> str | None:
    """
    Install the rotating file handler. Returns the log file path, or None
    when logging is disabled (level "none").
    """
    if level not in LOG_LEVELS:
        raise ValueError(f"unknown log level: {level!r}")

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_issuedeck", False):
            root.removeHandler(handler)
            handler.close()

    if level == "none":
        for name in _APP_LOGGERS:
            logging.getLogger(name).disabled = True
        return None

    os.makedirs(log_dir, exist_ok=True)
    path = os.path.join(log_dir, LOG_FILE_NAME)
    handler = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._issuedeck = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    app_level = _LEVELS[level]
    for name in _APP_LOGGERS:
        app_logger = logging.getLogger(name)
        app_logger.disabled = False
        app_logger.setLevel(app_level)
    if level != "trace":
        # per-keystroke engine chatter is only wanted at trace
        logging.getLogger("issuedeck_tui").setLevel(max(app_level, logging.INFO))
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == "trace" else logging.WARNING)
    return path
