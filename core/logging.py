# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - SCHEMA COMPILER
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across compiler and runtime
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Every log line emitted while compiling or migrating carries the schema
coordinates it concerns: which database class, which table, which column
and which operation. Coordinates are pushed with log_context() and popped
when the block exits; nested blocks inherit the outer coordinates.

LOG_FORMAT=json switches configure_logging() to one JSON object per line.

Usage:
    from core.logging import get_logger, log_context

    logger = get_logger("compiler.conditions")

    with log_context(database="AppDatabase", table="users"):
        logger.info("Compiled conditions", extra={"operations": 7})
"""

import json
import logging
import os
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


# Context field -> label used by the human formatter
CONTEXT_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("database", "db"),
    ("table", "table"),
    ("column", "column"),
    ("operation", "op"),
    ("correlation_id", "cid"),
)


@dataclass(frozen=True)
class LogContext:
    """Schema coordinates attached to log records on the current thread."""
    database: Optional[str] = None
    table: Optional[str] = None
    column: Optional[str] = None
    operation: Optional[str] = None
    correlation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def merged(self, **kwargs: Any) -> "LogContext":
        """Child context: given fields override, extras accumulate."""
        extra = {**self.extra, **kwargs.pop("extra", {})}
        return replace(self, extra=extra, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            name: getattr(self, name)
            for name, _ in CONTEXT_FIELDS
            if getattr(self, name) is not None
        }
        result.update(self.extra)
        return result

    def labels(self) -> List[str]:
        return [
            f"{label}={getattr(self, name)}"
            for name, label in CONTEXT_FIELDS
            if getattr(self, name) is not None
        ]


_EMPTY = LogContext()
_local = threading.local()


def _stack() -> List[LogContext]:
    if not hasattr(_local, "stack"):
        _local.stack = []
    return _local.stack


def get_current_context() -> LogContext:
    stack = _stack()
    return stack[-1] if stack else _EMPTY


@contextmanager
def log_context(**kwargs: Any) -> Iterator[LogContext]:
    """
    Push schema coordinates for the duration of a block.

    Example:
        with log_context(table="users", operation="migrate"):
            logger.info("Creating table")
    """
    context = get_current_context().merged(**kwargs)
    stack = _stack()
    stack.append(context)
    try:
        yield context
    finally:
        stack.pop()


@contextmanager
def log_elapsed(logger: Union[logging.Logger, logging.LoggerAdapter], what: str) -> Iterator[None]:
    """Log at DEBUG how long a block took."""
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"{what} took {elapsed_ms:.1f} ms")


def _record_data(record: logging.LogRecord) -> Optional[Dict[str, Any]]:
    return getattr(record, "extra", None) or None


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_current_context().to_dict()
        if context:
            payload["context"] = context
        data = _record_data(record)
        if data:
            payload["data"] = data
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        payload["source"] = f"{record.filename}:{record.lineno}"
        return json.dumps(payload, default=str)


class HumanFormatter(logging.Formatter):
    """Single-line development format with coordinates in brackets."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        labels = get_current_context().labels()
        where = f" [{', '.join(labels)}]" if labels else ""
        data = _record_data(record)
        # context fields already shown in brackets
        shown = {name for name, _ in CONTEXT_FIELDS}
        data = {k: v for k, v in (data or {}).items() if k not in shown}
        suffix = f" {data}" if data else ""

        line = f"{timestamp} {record.levelname:<8} {record.name}{where}: {record.getMessage()}{suffix}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Attaches the current log context to every record as record.extra."""

    def process(self, msg, kwargs):
        data = dict(kwargs.get("extra") or {})
        data.update(get_current_context().to_dict())
        kwargs["extra"] = {"extra": data}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name), {})


def configure_logging(level: Union[str, int] = "INFO", json_output: bool = False) -> None:
    """
    Install one stdout handler on the root logger.

    Args:
        level: Level name or number
        json_output: Force JSON output (also enabled by LOG_FORMAT=json)
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    use_json = json_output or os.getenv("LOG_FORMAT", "").lower() == "json"
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter() if use_json else HumanFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "ContextLogger",
    "get_logger",
    "configure_logging",
    "log_context",
    "log_elapsed",
    "get_current_context",
]
