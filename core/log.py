"""
Logging setup: console logging for the app and OpenCV native log verbosity.
"""

from __future__ import annotations

import logging

import cv2

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger once. Later calls only adjust the level."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)


def set_backend_logging(verbose: bool) -> None:
    """Verbose keeps OpenCV/FFmpeg messages on stderr; otherwise only errors."""
    utils = getattr(cv2, "utils", None)
    cv_logging = getattr(utils, "logging", None) if utils else None
    if cv_logging is None or not hasattr(cv_logging, "setLogLevel"):
        logging.getLogger(__name__).debug("OpenCV log level control unavailable")
        return
    level_name = "LOG_LEVEL_INFO" if verbose else "LOG_LEVEL_ERROR"
    cv_logging.setLogLevel(getattr(cv_logging, level_name))
