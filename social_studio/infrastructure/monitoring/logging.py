"""
Structured logging for Social Studio.

Every record carries the request's correlation id, the signed-in account
and, when a span is active, the OpenTelemetry trace ids. The JSON output
never contains credentials: values keyed like a password, token, TOTP
secret or backup code are replaced before serialization.
"""

import json
import logging
import re
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)

MASK = "***MASKED***"

_CREDENTIAL_KEY = r"(?:password|passwd|secret|authorization|bearer|\w*token|backup[_-]?codes?|otp)"
# key=value, key: value and "key": "value" inside free text
_CREDENTIAL_PAIR = re.compile(
    rf'(?P<key>"{_CREDENTIAL_KEY}"\s*:\s*|\b{_CREDENTIAL_KEY}\s*[=:]\s*)(?P<value>"[^"]*"|\S+)',
    re.IGNORECASE,
)
_CREDENTIAL_FIELD = re.compile(_CREDENTIAL_KEY, re.IGNORECASE)

# Dropped outright instead of masked
_DROPPED_FIELDS = {"password", "new_password", "current_password", "password_hash"}

_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {
    "message",
    "correlation_id",
    "user_id",
    "trace_id",
    "span_id",
}


def _mask_text(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        quoted = match.group("value").startswith('"')
        return match.group("key") + (f'"{MASK}"' if quoted else MASK)

    return _CREDENTIAL_PAIR.sub(replace, text)


def _mask_fields(fields: dict[str, Any]) -> dict[str, Any]:
    masked: dict[str, Any] = {}
    for key, value in fields.items():
        if key.lower() in _DROPPED_FIELDS:
            continue
        if _CREDENTIAL_FIELD.search(key):
            masked[key] = MASK
        elif isinstance(value, str):
            masked[key] = _mask_text(value)
        elif isinstance(value, dict):
            masked[key] = _mask_fields(value)
        else:
            masked[key] = value
    return masked


class ContextFilter(logging.Filter):
    """Attaches correlation, account and tracing context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        record.user_id = user_id_var.get()

        span = trace.get_current_span()
        if span.is_recording():
            span_context = span.get_span_context()
            record.trace_id = format(span_context.trace_id, "032x")
            record.span_id = format(span_context.span_id, "016x")
        else:
            record.trace_id = None
            record.span_id = None
        return True


class StructuredJSONFormatter(logging.Formatter):
    """One JSON object per record, with credentials masked."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": _mask_text(record.getMessage()),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for attr in ("correlation_id", "user_id", "trace_id", "span_id"):
            value = getattr(record, attr, None)
            if value:
                entry[attr] = value

        if record.exc_info:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc) if exc else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra = {
            key: list(value) if isinstance(value, (set, frozenset)) else value
            for key, value in vars(record).items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = _mask_fields(extra)

        return json.dumps(entry, sort_keys=True, default=str)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str, None, None]:
    """Scope a correlation id (generated when not given) to the enclosed block."""
    correlation_id = correlation_id or str(uuid.uuid4())
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)


def set_user_context(user_id: str | None) -> None:
    """Set the authenticated account for the current request."""
    user_id_var.set(user_id)


def setup_structured_logging(level: str = "INFO", format_type: str = "json") -> None:
    """
    Route the root logger to stdout.

    Args:
        level: Logging level name
        format_type: 'json' for structured output, anything else for text
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter: logging.Formatter
    if format_type == "json":
        formatter = StructuredJSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
