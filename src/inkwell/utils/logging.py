"""Log handlers for the ``inkwell`` command line.

Handlers hang off the ``inkwell`` package logger rather than the root logger,
so a host application embedding the editor keeps its own logging setup.
Calling :func:`setup_logging` again swaps the previous handlers out.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["setup_logging", "log_directory", "PACKAGE_LOGGER", "LOG_FORMAT"]

PACKAGE_LOGGER = "inkwell"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_LOG_FILE = "inkwell.log"
_ROTATE_AT_BYTES = 512_000
_KEPT_FILES = 2
_LIBRARY_LOGGERS: tuple[str, ...] = ("markdown_it", "bs4")
_installed: list[logging.Handler] = []


def log_directory() -> Path:
    """Return ``$INKWELL_LOG_DIR`` or ``~/.inkwell/logs``."""

    configured = os.environ.get("INKWELL_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".inkwell" / "logs"


def setup_logging(level: int = logging.INFO, *, console: bool = False, log_dir: Path | None = None) -> Path:
    """Attach a rotating file handler (and optionally stderr) to the package logger."""

    package = logging.getLogger(PACKAGE_LOGGER)
    while _installed:
        handler = _installed.pop()
        package.removeHandler(handler)
        handler.close()

    directory = log_dir or log_directory()
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / _LOG_FILE

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            path, maxBytes=_ROTATE_AT_BYTES, backupCount=_KEPT_FILES, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        package.addHandler(handler)
        _installed.append(handler)
    package.setLevel(level)

    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return path
