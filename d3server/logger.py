"""Process-wide logger setup for the server."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

TRACE = 5
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "err": logging.ERROR,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}

_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
    logging.CRITICAL + 10: "off",
}

_FORMAT = "[%(asctime)s.%(msecs)03d] [%(name)s] [%(levelname)s] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class _State:
    logger: Optional[logging.Logger] = None
    initialized: bool = False


_state = _State()


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    try:
        return _LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"unknown log level: {level!r}") from None


def init_logger(
    name: str = "d3server",
    log_file_path: Union[str, Path] = "logs/d3server.log",
    level: Union[int, str] = logging.DEBUG,
    console_output: bool = True,
    file_output: bool = True,
) -> Optional[logging.Logger]:
    """Set up the shared logger once; later calls return the existing one.

    Returns None when the log outputs cannot be opened.
    """
    if _state.initialized:
        return _state.logger

    numeric = _resolve_level(level)
    handlers: list[logging.Handler] = []
    try:
        if console_output:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(numeric)
            handlers.append(console)

        if file_output and str(log_file_path):
            path = Path(log_file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path,
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(numeric)
            handlers.append(file_handler)

        if not handlers:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(logging.WARNING)
            handlers.append(console)
            print(
                f"[Logger Warning] No sinks configured for logger '{name}'. "
                "Defaulting to console warning output.",
                file=sys.stderr,
            )
    except OSError as exc:
        for handler in handlers:
            handler.close()
        print(f"Log initialization failed: {exc}", file=sys.stderr)
        _state.logger = None
        _state.initialized = False
        return None

    logger = logging.getLogger(name)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    formatter = logging.Formatter(_FORMAT, _DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False

    _state.logger = logger
    _state.initialized = True
    logger.info(
        "Logger '%s' initialized. Log level: %s. Console: %s, File: %s",
        name,
        _LEVEL_NAMES.get(numeric, logging.getLevelName(numeric).lower()),
        str(console_output).lower(),
        str(file_output).lower(),
    )
    return logger


def get_logger() -> Optional[logging.Logger]:
    """Return the shared logger, or None before a successful init_logger()."""
    if not _state.initialized:
        return None
    return _state.logger


def is_initialized() -> bool:
    """Whether init_logger() has succeeded."""
    return _state.initialized


def reset_logger() -> None:
    """Close the shared logger's outputs and forget it."""
    logger = _state.logger
    if logger is not None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    _state.logger = None
    _state.initialized = False