"""
ScenePrompt Logging Configuration

Logging for the ``sceneprompt`` package. Library modules only create
namespaced loggers; handlers are attached by :func:`setup_logging`, which the
CLI calls once at startup. Console output goes to stderr so that stdout stays
reserved for the JSON results.
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Sequence


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "sceneprompt"

# httpx logs every request at INFO
NOISY_LIBRARY_LOGGERS = ("httpx", "httpcore")

_loggers: Dict[str, logging.Logger] = {}
_initialized: bool = False


def _make_handler(handler: logging.Handler, level: LogLevel, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level.value)
    handler.setFormatter(formatter)
    return handler


def quiet_library_loggers(names: Sequence[str] = NOISY_LIBRARY_LOGGERS, level: LogLevel = LogLevel.WARNING) -> None:
    """Raise the threshold of third-party loggers that are chatty at INFO."""
    for name in names:
        logging.getLogger(name).setLevel(level.value)


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True
) -> None:
    """
    Configure the ``sceneprompt`` logger tree.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Minimum log level to capture
        log_file: Also append records to this file (parent dirs are created)
        verbose: Include line numbers and function names; also leaves
                 httpx request logging at its default level
        console_output: Write records to stderr
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()

    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT, datefmt=DATE_FORMAT)

    if console_output:
        root_logger.addHandler(_make_handler(logging.StreamHandler(sys.stderr), level, formatter))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(
            _make_handler(logging.FileHandler(log_path, encoding='utf-8'), level, formatter)
        )

    if not verbose:
        quiet_library_loggers()

    _initialized = True
    root_logger.debug(f"Logging initialized - Level: {level.name}, Verbose: {verbose}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a namespaced logger, e.g. ``get_logger("safety.validator")`` returns
    ``sceneprompt.safety.validator``.
    """
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


def is_initialized() -> bool:
    return _initialized


class LogContext:
    """Temporarily change a logger's level inside a ``with`` block."""

    def __init__(self, logger: logging.Logger, level: LogLevel):
        self.logger = logger
        self.level = level.value
        self._previous = logger.level

    def __enter__(self):
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self._previous)
        return False
