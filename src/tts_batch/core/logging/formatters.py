"""
Log Formatters.

    JsonlFormatter: one JSON object per line, for the rotating log file.
        {"ts": "...", "level": 2, "tag": "SUCCESS", "message": "chunk_synthesized",
         "request_id": "3f2a9c1b7d40", "seconds": 0.84, "extra": {"index": 3, "bytes": 51200}}

    ColoredConsoleFormatter: compact human-readable line for stderr.
        14:30:05 [SUCCESS] (3f2a9c1b7d40) chunk_synthesized 0.840s index=3 bytes=51200
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_tag_color


def _paint(text: str, color: str) -> str:
    # Read the flag at call time; configure_logging() and tests reassign it.
    if not colors.USE_COLORS:
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            payload["extra"] = extra_data

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Format records as colored console lines.

    Layout:
        HH:MM:SS [ TAG ] (rid) message event=... 0.123s key=value ...

    Durations are green under 1s, yellow under 5s and red above; a
    synthesis call of a 4500-character chunk routinely takes a few
    seconds, so the thresholds are wider than for local work.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [
            _paint(ts, Colors.DIM),
            _paint(f"[{tag:^7}]", get_tag_color(tag)),
        ]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            parts.append(_paint(f"{seconds:.3f}s", self._duration_color(seconds)))

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            for key, value in extra_data.items():
                parts.append(_paint(f"{key}={value}", self._field_color(key)))

        if record.exc_info:
            parts.append("\n" + self.formatException(record.exc_info))

        return " ".join(parts)

    @staticmethod
    def _duration_color(seconds: float) -> str:
        if seconds < 1.0:
            return Colors.GREEN
        if seconds < 5.0:
            return Colors.YELLOW
        return Colors.RED

    @staticmethod
    def _field_color(key: str) -> str:
        if key in ("error", "error_type"):
            return Colors.RED
        if key in ("index", "done", "total", "chunks"):
            return Colors.CYAN
        if key in ("voice", "language_code"):
            return Colors.MAGENTA
        return Colors.DIM
