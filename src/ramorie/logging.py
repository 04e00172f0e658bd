"""JSONL request log for the ramorie MCP server.

Stdout carries the JSON-RPC stream, so diagnostics go to
``<config dir>/ramorie.log`` instead, one JSON object per line. Each line
can carry the JSON-RPC ``method`` and request ``id`` it belongs to, the
tool name, its (clipped) arguments, timing and the error text.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILENAME = "ramorie.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

# Memory and note bodies arrive as tool arguments; keep log lines short.
MAX_LOGGED_STRING = 200

# record attribute -> key in the JSON line, in output order
_RECORD_FIELDS = (
    ("rpc_method", "method"),
    ("rpc_id", "id"),
    ("tool", "tool"),
    ("args_data", "args"),
    ("duration_ms", "duration_ms"),
    ("error", "error"),
)

_lock = threading.Lock()


def clip(value: Any, limit: int = MAX_LOGGED_STRING) -> Any:
    """Shorten long strings inside *value*, recursing into dicts and lists."""
    if isinstance(value, str):
        if len(value) <= limit:
            return value
        return f"{value[:limit]}... ({len(value)} chars)"
    if isinstance(value, dict):
        return {k: clip(v, limit) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [clip(v, limit) for v in value]
    return value


class RpcJsonFormatter(logging.Formatter):
    """One JSON object per record, with the request fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "ts": stamp.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for attr, key in _RECORD_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                entry[key] = clip(value)
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["exception"] = f"{type(exc).__name__}: {exc}"
        return json.dumps(entry, default=str, ensure_ascii=False)


def _request_log_handler(logger: logging.Logger) -> RotatingFileHandler | None:
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and isinstance(handler.formatter, RpcJsonFormatter):
            return handler
    return None


def setup_logging(log_dir: Path, level: int | str = logging.INFO) -> logging.Logger:
    """Attach the request log under *log_dir* to the ``ramorie`` logger.

    Repeated calls for the same directory keep the existing handler; a
    call for another directory moves the log there.
    """
    logger = logging.getLogger("ramorie")
    log_path = os.path.abspath(log_dir / LOG_FILENAME)

    with _lock:
        current = _request_log_handler(logger)
        if current is not None:
            if current.baseFilename == log_path:
                logger.setLevel(level)
                return logger
            logger.removeHandler(current)
            current.close()

        log_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
        handler.setFormatter(RpcJsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
