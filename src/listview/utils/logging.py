"""Logging helpers shared by every listview module."""

import logging
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """
    Install a single stream handler on the package logger.

    Safe to call more than once; only the level changes on later calls.
    """
    global _configured
    root = logging.getLogger("listview")
    root.setLevel(level)
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
