"""Application logging.

All loggers live under the ``worktrack`` namespace and share one console handler.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER_NAME = "worktrack"

_formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def configure_logging(level: str | int | None = None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    root.setLevel(level.upper() if isinstance(level, str) else level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_formatter)
        root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the application namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
