"""
Logging for the trading-state service.

  - stderr: one colored line per record, with the request context when present
  - file (optional): ndjson, one object per record

Request context travels on the record through `extra=` (see REQUEST_FIELDS):

    logger.warning("bad body", extra={"resource": "trades", "method": "POST", "status": 400})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Optional record attributes set by the API layer.
REQUEST_FIELDS = ("resource", "method", "scope", "status")

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_RESET = "\033[0m"
_DIM = "\033[2m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_MAGENTA = "\033[35m"

_LEVEL_COLORS = {
    logging.DEBUG: _DIM,
    logging.WARNING: _YELLOW,
    logging.ERROR: _RED,
    logging.CRITICAL: _RED,
}


def request_context(record: logging.LogRecord) -> dict:
    """REQUEST_FIELDS present on `record`, in declaration order."""
    return {name: getattr(record, name) for name in REQUEST_FIELDS if getattr(record, name, None) is not None}


class ConsoleFormatter(logging.Formatter):
    """`12:00:01 WARNING state.positions [positions POST 400] message`"""

    def __init__(self, use_color: bool = True):
        super().__init__(datefmt="%H:%M:%S")
        self._use_color = use_color and _supports_color()

    def format(self, record: logging.LogRecord) -> str:
        ctx = request_context(record)
        tag = f"[{' '.join(str(v) for v in ctx.values())}] " if ctx else ""
        head = f"{self.formatTime(record, self.datefmt)} {record.levelname:<7} {record.name}"
        body = f"{tag}{record.getMessage()}"

        color = _LEVEL_COLORS.get(record.levelno)
        if self._use_color:
            head = f"{_DIM}{head}{_RESET}"
            if ctx:
                body = f"{_MAGENTA}{tag}{_RESET}{record.getMessage()}"
            if color:
                body = f"{color}{body}{_RESET}"
        line = f"{head} {body}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JSONFormatter(logging.Formatter):
    """Single-line JSON. Request context fields are top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(request_context(record))
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = f"{type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return json.dumps(entry, separators=(",", ":"), default=str)


def setup_logging(level: str = "INFO", json_log_file: str | None = None) -> None:
    """Install the console (and optional ndjson) handlers on the root logger, replacing any present."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)

    if json_log_file:
        fh = logging.FileHandler(json_log_file, mode="a", encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _supports_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
