"""
Logging utilities for depgauge.

All diagnostic output goes through loggers in the ``depgauge`` namespace.
Library use stays silent (a ``NullHandler`` is attached lazily); the CLI
calls :func:`setup_logging` once with a level derived from ``-v`` flags.
User-facing status lines belong in :mod:`depgauge.utils.console`.
"""

from __future__ import annotations

import os
import sys
import copy
import logging
import threading
from typing import IO, Optional

from depgauge.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "depgauge"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Logging formatter that colors the level name with ANSI codes."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
        stream: Optional[IO[str]] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color
        self._stream = stream

    def format(self, record: logging.LogRecord) -> str:
        if not (self.use_color and self._is_tty()):
            return super().format(record)

        color = self.COLORS.get(record.levelname)
        if not color:
            return super().format(record)

        # Other handlers may share the record; color a copy only.
        colored = copy.copy(record)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)

    def _is_tty(self) -> bool:
        if os.environ.get("NO_COLOR") or os.environ.get("CI"):
            return False
        stream = self._stream or sys.stderr
        try:
            return stream.isatty()
        except (AttributeError, OSError):
            return False


def level_for_verbosity(verbose: int) -> int:
    """Map a ``-v`` count to a logging level (0=WARNING, 1=INFO, 2+=DEBUG)."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the ``depgauge`` logger hierarchy.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        level: Logging level (e.g. ``logging.INFO``).
        verbose: Include timestamps and logger names in each line.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        target = stream or sys.stderr
        handler = logging.StreamHandler(target)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
                stream=target,
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the ``depgauge`` namespace.

    ``get_logger("registry")`` and ``get_logger("depgauge.registry")``
    return the same logger.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(f"{ROOT_LOGGER_NAME}."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if :func:`setup_logging` has run."""
    return _logging_configured


def disable_logging() -> None:
    """Remove depgauge handlers and fall back to a ``NullHandler``."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
