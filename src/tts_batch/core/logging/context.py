"""
Request Context and Logging State.

The request ID lives in a ContextVar so it follows a CLI run or an HTTP
request into every asyncio task the orchestrator spawns (tasks copy the
current context when they are created).

Environment Variables:
    - TTS_BATCH_SETTINGS: settings file read for the `logging` section
    - TTS_BATCH_LOG_LEVEL: level override (1-4 or name)
    - TTS_BATCH_LOG_DIR: directory for the JSONL log file
    - TTS_BATCH_JSONL_FILE: JSONL filename
    - TTS_BATCH_LOG_ROTATE_BYTES: max file size before rotation
    - TTS_BATCH_LOG_ROTATE_BACKUP: rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Current request ID, or "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request ID to the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    """Current level as "MINIMAL", "NORMAL", "VERBOSE" or "DEBUG"."""
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _int_env(name: str) -> int | None:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve logging configuration.

    Priority (highest first): environment variables, the `logging`
    section of the settings file, built-in defaults.

    Returns:
        Dictionary with any of: level, log_dir, jsonl_file,
        rotate_max_bytes, rotate_backup_count.
    """
    cfg: Dict[str, Any] = {}

    settings_path = os.getenv("TTS_BATCH_SETTINGS", "config/settings.yaml")
    from tts_batch.core.config import ConfigValidationError, load_settings
    try:
        settings = load_settings(settings_path, missing_ok=True)
        cfg.update(settings.raw.get("logging", {}) or {})
    except (OSError, yaml.YAMLError, ConfigValidationError):
        # Unreadable settings must not prevent logging from starting
        pass

    if os.getenv("TTS_BATCH_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_BATCH_LOG_LEVEL"]
    if os.getenv("TTS_BATCH_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_BATCH_LOG_DIR"]
    if os.getenv("TTS_BATCH_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_BATCH_JSONL_FILE"]

    rotate_bytes = _int_env("TTS_BATCH_LOG_ROTATE_BYTES")
    if rotate_bytes is not None:
        cfg["rotate_max_bytes"] = rotate_bytes
    rotate_backup = _int_env("TTS_BATCH_LOG_ROTATE_BACKUP")
    if rotate_backup is not None:
        cfg["rotate_backup_count"] = rotate_backup

    return cfg
