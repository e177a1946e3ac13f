"""
move_abi.logging
----------------

Log setup for processes embedding the encoder (the library itself only
creates module loggers and emits DEBUG records):

- JSON or concise text formats
- Structured extras (``log.debug("msg", extra={...})``) rendered inline
- Safe JSON serialization (bytes → hex)

Usage
-----
    from move_abi import logging as mlog

    mlog.configure(json=False, level="DEBUG")  # once at process start
    log = mlog.get_logger(__name__)
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
from typing import Any, Dict, Optional

__all__ = ["JSONFormatter", "TextFormatter", "configure", "get_logger"]

# LogRecord attributes that are not user extras.
_RESERVED = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    )
)

_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    return str(v)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | DEBUG | move_abi.args | function=transfer arg_count=2 | encoding arguments
    """

    def format(self, record: logging.LogRecord) -> str:
        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        extras = " ".join(f"{k}={v}" for k, v in _extras(record).items())
        if extras:
            line += f" | {extras}"
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int | None = None,
    stream: io.TextIOBase = sys.stderr,
) -> None:
    """
    Configure the root logger with a single console handler.

    json:  None → MOVE_ABI_LOG_FORMAT=(json|text), else JSON when not a TTY.
    level: None → MOVE_ABI_LOG_LEVEL, default WARNING.
    """
    lvl = _coerce_level(level if level is not None else os.environ.get("MOVE_ABI_LOG_LEVEL", "WARNING"))
    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if _decide_json(json, stream) else TextFormatter())
    root.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "move_abi")


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.strip().upper(), logging.WARNING)


def _decide_json(json_flag: Optional[bool], stream: io.TextIOBase) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("MOVE_ABI_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    try:
        return not stream.isatty()
    except (AttributeError, ValueError):
        return True
