"""
Logging bootstrap for Sheet Mapper.

Modules obtain their logger with ``get_logger("<module>")``; the loggers all
live under the ``sheet_mapper`` namespace.  Property maps call
``configure_logging`` on construction: the first call installs the handlers,
later calls leave them alone and only change the level when one is given.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, Optional


_ROOT_NAME = "sheet_mapper"
_CONFIGURED = False

LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: Optional[int] = None,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the ``sheet_mapper`` namespace logger and return it.

    Parameters
    ----------
    level:
        Minimum severity to emit.  ``None`` means ``INFO`` on the first call
        and "keep the current level" afterwards.
    log_file:
        If provided, a ``FileHandler`` is added alongside the console handler.
        Only honoured on the first call.
    stream:
        Console stream, ``sys.stdout`` by default.  Only honoured on the
        first call.
    """
    global _CONFIGURED  # noqa: PLW0603
    root = logging.getLogger(_ROOT_NAME)
    if _CONFIGURED:
        if level is not None:
            _set_level(root, level)
        return root

    root.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        root.addHandler(fh)

    _set_level(root, logging.INFO if level is None else level)
    _CONFIGURED = True
    return root


def _set_level(root: logging.Logger, level: int) -> None:
    root.setLevel(level)
    for handler in root.handlers:
        handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``sheet_mapper`` namespace."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")
