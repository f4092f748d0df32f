# ============================================================================
# STRUCTURED LOGGING
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - Structured logging with context
# PURPOSE: Consistent, queryable logging across table, sweeper and API
# CREATED: 19 OCT 2026
# ============================================================================
"""
Structured Logging

Provides JSON or human-readable logging for the port lease daemon.

Features:
- Contextual fields (port, service_name, operation) carried per asyncio task
- JSON output for log aggregation
- Human output for local development

Usage:
    from core.logging import configure_logging, log_context

    configure_logging(level="INFO")
    logger = logging.getLogger(__name__)

    with log_context(port=8001, operation="release"):
        logger.info("Releasing port")
"""

import contextvars
import json
import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class LogContext:
    """
    Context for structured logging.

    Stored in a ContextVar, so each request task sees its own fields.
    """
    port: Optional[int] = None
    service_name: Optional[str] = None
    operation: Optional[str] = None
    component: Optional[str] = None
    correlation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        result = {
            key: value
            for key, value in asdict(self).items()
            if value is not None and key != "extra"
        }
        if self.extra:
            result.update(self.extra)
        return result


_current_context: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "portmgr_log_context", default=LogContext()
)


def get_current_context() -> LogContext:
    """Get current logging context."""
    return _current_context.get()


@contextmanager
def log_context(**kwargs):
    """
    Context manager for adding logging context.

    Unknown keyword arguments are merged into `extra`.

    Example:
        with log_context(service_name="api", operation="allocate"):
            logger.info("Allocating")
    """
    parent = get_current_context()
    known = {k: v for k, v in kwargs.items() if k in LogContext.__dataclass_fields__ and k != "extra"}
    unknown = {k: v for k, v in kwargs.items() if k not in known and k != "extra"}
    new_context = replace(
        parent,
        **known,
        extra={**parent.extra, **kwargs.get("extra", {}), **unknown},
    )

    token = _current_context.set(new_context)
    try:
        yield new_context
    finally:
        _current_context.reset(token)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregators.
    """

    def __init__(self, include_context: bool = True, include_source: bool = True):
        super().__init__()
        self.include_context = include_context
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_context:
            context_dict = get_current_context().to_dict()
            if context_dict:
                log_data["context"] = context_dict

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.include_source:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class HumanFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

    Includes context fields inline for easy reading.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human reading."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        level = record.levelname.ljust(8)

        context = get_current_context()
        context_parts = []
        if context.operation:
            context_parts.append(f"op={context.operation}")
        if context.service_name:
            context_parts.append(f"service={context.service_name}")
        if context.port is not None:
            context_parts.append(f"port={context.port}")

        context_str = f" [{', '.join(context_parts)}]" if context_parts else ""

        result = f"{timestamp} {level} {record.name}{context_str}: {record.getMessage()}"

        if record.exc_info:
            result += f"\n{self.formatException(record.exc_info)}"

        return result


def configure_logging(
    level: Union[str, int] = "INFO",
    json_output: bool = False,
    include_source: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Use JSON format (for production)
        include_source: Include source file/line info in JSON output
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_output or os.getenv("LOG_FORMAT", "").lower() == "json":
        formatter = StructuredFormatter(include_source=include_source)
    else:
        formatter = HumanFormatter()

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "LogContext",
    "StructuredFormatter",
    "HumanFormatter",
    "configure_logging",
    "log_context",
    "get_current_context",
]
