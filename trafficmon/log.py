"""Minimal thread-safe leveled logger writing to standard error."""

from __future__ import annotations

import sys
import threading
from enum import IntEnum


class LogLevel(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    NONE = 4


_LABELS = {
    LogLevel.DEBUG: "D",
    LogLevel.INFO: "I",
    LogLevel.WARN: "W",
    LogLevel.ERROR: "E",
}


class _State:
    lock = threading.Lock()
    level = LogLevel.INFO


def set_level(level: LogLevel) -> None:
    """Set the minimum level that gets printed."""
    with _State.lock:
        _State.level = LogLevel(level)


def get_level() -> LogLevel:
    with _State.lock:
        return _State.level


def log(level: LogLevel, fmt: str, *args: object) -> None:
    """Print a printf-style message prefixed with the level letter."""
    level = LogLevel(level)
    with _State.lock:
        if level < _State.level:
            return
        message = fmt % args if args else fmt
        stream = sys.stderr
        stream.write(f"[{_LABELS.get(level, '-')}] {message}\n")
        stream.flush()


def debug(fmt: str, *args: object) -> None:
    log(LogLevel.DEBUG, fmt, *args)


def info(fmt: str, *args: object) -> None:
    log(LogLevel.INFO, fmt, *args)


def warn(fmt: str, *args: object) -> None:
    log(LogLevel.WARN, fmt, *args)


def error(fmt: str, *args: object) -> None:
    log(LogLevel.ERROR, fmt, *args)