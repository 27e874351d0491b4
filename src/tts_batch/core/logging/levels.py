"""
Log Level Definitions.

tts-batch uses four numeric verbosity levels instead of Python's five
named ones, which maps directly onto CLI flags and a single config value:

    1 = MINIMAL  - startup, fatal errors, batch failures
    2 = NORMAL   - batch lifecycle and per-chunk progress (default)
    3 = VERBOSE  - per-stage timing
    4 = DEBUG    - internal state, request payload previews

Mapping to Python levels:
    MINIMAL -> WARNING, NORMAL -> INFO, VERBOSE -> DEBUG, DEBUG -> 5 (TRACE)
"""
from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any


class LogLevel(IntEnum):
    """Numeric log levels, increasing verbosity."""
    MINIMAL = 1
    NORMAL = 2
    VERBOSE = 3
    DEBUG = 4


LEVEL_MAP = {
    LogLevel.MINIMAL: logging.WARNING,
    LogLevel.NORMAL: logging.INFO,
    LogLevel.VERBOSE: logging.DEBUG,
    LogLevel.DEBUG: logging.DEBUG - 5,
}

LEVEL_NAMES = {
    1: "MINIMAL",
    2: "NORMAL",
    3: "VERBOSE",
    4: "DEBUG",
}

_NAME_TO_LEVEL = {
    "MINIMAL": LogLevel.MINIMAL,
    "NORMAL": LogLevel.NORMAL,
    "VERBOSE": LogLevel.VERBOSE,
    "DEBUG": LogLevel.DEBUG,
    "TRACE": LogLevel.DEBUG,
    # Python level names
    "CRITICAL": LogLevel.MINIMAL,
    "ERROR": LogLevel.MINIMAL,
    "WARNING": LogLevel.MINIMAL,
    "WARN": LogLevel.MINIMAL,
    "INFO": LogLevel.NORMAL,
    "1": LogLevel.MINIMAL,
    "2": LogLevel.NORMAL,
    "3": LogLevel.VERBOSE,
    "4": LogLevel.DEBUG,
}


def coerce_level(value: Any) -> LogLevel:
    """
    Convert a config or CLI value to a LogLevel.

    Accepts a LogLevel, an int 1-4, a Python logging level int
    (WARNING and above -> MINIMAL, INFO -> NORMAL, lower -> DEBUG),
    or a level name / numeric string. Anything else yields NORMAL.

    Examples:
        >>> coerce_level(3)
        <LogLevel.VERBOSE: 3>
        >>> coerce_level("info")
        <LogLevel.NORMAL: 2>
        >>> coerce_level(logging.WARNING)
        <LogLevel.MINIMAL: 1>
    """
    if isinstance(value, LogLevel):
        return value

    # bool is an int subclass; a stray True must not become MINIMAL
    if isinstance(value, int) and not isinstance(value, bool):
        if 1 <= value <= 4:
            return LogLevel(value)
        if value >= logging.WARNING:
            return LogLevel.MINIMAL
        if value >= logging.INFO:
            return LogLevel.NORMAL
        return LogLevel.DEBUG

    if isinstance(value, str):
        return _NAME_TO_LEVEL.get(value.upper().strip(), LogLevel.NORMAL)

    return LogLevel.NORMAL
