"""
Structured logging for the royalty splitter.

Log lines carry the context of the operation or request being served
(request_id, operation, caller) plus any ``extra`` fields passed at the call
site, such as work_id or status_code.

Output formats:
- JSON, one object per line (LOG_FORMAT=json), for log aggregation
- Colored single-line console output for development
"""

import json
import logging
import os
import sys
import threading
from datetime import UTC, datetime
from typing import Any

# LogRecord attributes that are not user-supplied extras
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info", "exc_info", "exc_text",
    "thread", "threadName", "message", "taskName",
})

# Per-thread context: request_id/method/path from the HTTP middleware,
# operation/caller from RoyaltySplitter._execute
_context = threading.local()


def set_request_context(**kwargs) -> None:
    """Add values to the current thread's log context."""
    if not hasattr(_context, "data"):
        _context.data = {}
    _context.data.update(kwargs)


def clear_request_context() -> None:
    _context.data = {}


def get_request_context() -> dict[str, Any]:
    return getattr(_context, "data", {})


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Example:
        {"timestamp": "...", "level": "INFO", "logger": "royalty_splitter.distribution",
         "message": "Distributed 10000 of 10000 for work 1 ...",
         "context": {"operation": "distribute", "caller": "ST1CALLER"}}

    Warnings and above also carry the source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        context = get_request_context()
        if context:
            entry["context"] = dict(context)
        entry.update(_extra_fields(record))

        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Single-line colored output: time, level initial, logger, message, context."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        parts = [f"{color}{stamp} {record.levelname[0]} [{record.name}]{self.RESET} {record.getMessage()}"]

        fields = {**get_request_context(), **_extra_fields(record)}
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))

        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    log_file: str | None = None,
) -> None:
    """
    Install a root handler.

    Args:
        level: Log level name
        json_output: JSON to stdout (defaults to LOG_FORMAT=json)
        log_file: Optional path that additionally receives JSON lines
    """
    if json_output is None:
        json_output = os.getenv("LOG_FORMAT", "").lower() == "json"

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ConsoleFormatter())
    root.addHandler(handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LoggingContext:
    """
    Temporarily add fields to the log context, restoring the previous
    context on exit.

    Usage:
        with LoggingContext(operation="distribute", caller="ST1CALLER"):
            logger.info("Distributing")
    """

    def __init__(self, **kwargs):
        self.context = kwargs
        self.previous_context: dict[str, Any] = {}

    def __enter__(self):
        self.previous_context = dict(get_request_context())
        set_request_context(**self.context)
        return self

    def __exit__(self, _exc_type, _exc_val, _exc_tb):
        clear_request_context()
        if self.previous_context:
            set_request_context(**self.previous_context)
        return False
