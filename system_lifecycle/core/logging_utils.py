from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, TextIO

ROOT_LOGGER_NAME = "system_lifecycle"

SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

_COLORS = {
    "INFO": "\033[0;34m",
    "SUCCESS": "\033[0;32m",
    "WARNING": "\033[1;33m",
    "ERROR": "\033[0;31m",
}
_RESET = "\033[0m"
_HANDLER_TAG = "_system_lifecycle_handler"
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class EventLogger(Protocol):
    """Leveled logger consumed by the retry and rollback components."""

    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "ts": time.time(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in getattr(record, "__dict__", {}).items():
            if key.startswith("_") or key in _STANDARD_ATTRS:
                continue
            if key in payload:
                continue
            try:
                json.dumps(value)
            except TypeError:
                continue
            payload[key] = value
        return json.dumps(payload, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Render ``[LEVEL] message``, coloured when the stream is a terminal."""

    def __init__(self, *, color: bool) -> None:
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        message = record.getMessage()
        if self._color and level in _COLORS:
            return f"{_COLORS[level]}[{level}]{_RESET} {message}"
        return f"[{level}] {message}"


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self._max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._max_level


class LifecycleLogger:
    """The four-level logger used throughout the package."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(ROOT_LOGGER_NAME)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def info(self, message: str) -> None:
        self._logger.info(message)

    def success(self, message: str) -> None:
        self._logger.log(SUCCESS, message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


def get_logger(component: str) -> LifecycleLogger:
    return LifecycleLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}"))


def _is_tty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _console_handler(stream: TextIO, *, min_level: int, max_level: Optional[int]) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(min_level)
    if max_level is not None:
        handler.addFilter(_MaxLevelFilter(max_level))
    handler.setFormatter(ConsoleFormatter(color=_is_tty(stream)))
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(
    script_name: str = "system-lifecycle",
    *,
    log_dir: Optional[Path] = None,
    quiet: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> Optional[Path]:
    """Attach console and JSONL file handlers to the package logger.

    INFO and SUCCESS go to stdout, WARNING and ERROR to stderr. When *log_dir*
    is given every record is also appended to
    ``<log_dir>/<script_name>-YYYYMMDD-HHMMSS.log.jsonl``. Calling this again
    replaces the handlers installed by the previous call.

    Returns the log file path, or None when file logging is disabled.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            logger.removeHandler(handler)
            handler.close()

    if quiet:
        null_handler = logging.NullHandler()
        setattr(null_handler, _HANDLER_TAG, True)
        logger.addHandler(null_handler)
    else:
        logger.addHandler(
            _console_handler(stdout or sys.stdout, min_level=logging.INFO, max_level=logging.WARNING)
        )
        logger.addHandler(_console_handler(stderr or sys.stderr, min_level=logging.WARNING, max_level=None))

    log_path: Optional[Path] = None
    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        log_path = log_dir / f"{script_name}-{stamp}.log.jsonl"
        log_path.touch(exist_ok=True)
        os.chmod(log_path, 0o640)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(JsonLogFormatter())
        setattr(file_handler, _HANDLER_TAG, True)
        logger.addHandler(file_handler)

    logger.propagate = False
    if log_path is not None:
        logger.info("Log file: %s", log_path)
    return log_path


__all__ = [
    "ConsoleFormatter",
    "EventLogger",
    "JsonLogFormatter",
    "LifecycleLogger",
    "ROOT_LOGGER_NAME",
    "SUCCESS",
    "configure_logging",
    "get_logger",
]
