"""Structured logging configuration with OpenTelemetry integration."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, cast

import structlog
from opentelemetry import trace

from src.infrastructure.config import Settings


REDACTED = "***REDACTED***"

# Matched against lowercased keys with "-" normalized to "_"
SENSITIVE_KEYS = frozenset(
    {
        "password",
        "passwd",
        "pwd",
        "secret",
        "secret_key",
        "api_key",
        "apikey",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "proxy_authorization",
        "cookie",
        "set_cookie",
        "credentials",
        "credit_card",
        "card_number",
        "cvv",
    }
)

# Event keys owned by structlog itself, never redacted
_RESERVED_KEYS = frozenset({"event", "level", "logger", "timestamp"})


def _is_sensitive(key: str) -> bool:
    normalized = key.lower().replace("-", "_")
    if normalized in SENSITIVE_KEYS:
        return True
    return any(normalized.endswith(f"_{suffix}") for suffix in ("password", "token", "secret"))


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive mapping keys redacted.

    Walks nested dicts and lists so captured request/response bodies are
    covered as well as top-level event fields.
    """
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and _is_sensitive(k) else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


def sanitize_sensitive_data(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Redact sensitive fields from log events before rendering."""
    sanitized: dict[str, Any] = {}
    for key, value in event_dict.items():
        if key in _RESERVED_KEYS:
            sanitized[key] = value
        elif _is_sensitive(key):
            sanitized[key] = REDACTED
        else:
            sanitized[key] = redact(value)
    return sanitized


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add OpenTelemetry trace context to log events when a span is active."""
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        span_context = span.get_span_context()
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def build_log_handler(settings: Settings) -> logging.Handler:
    """Create the stdlib handler for the configured LOG_OUTPUT sink.

    File sinks rotate at midnight and keep a week of history.
    """
    if settings.log_output == "discard":
        return logging.NullHandler()
    if settings.log_output == "stderr":
        return logging.StreamHandler(sys.stderr)

    file_path = settings.log_file_path
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return TimedRotatingFileHandler(
            path, when="midnight", backupCount=7, encoding="utf-8", delay=True
        )

    return logging.StreamHandler(sys.stdout)


def configure_logging(settings: Settings) -> None:
    """Configure structured logging with trace context."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        handlers=[build_log_handler(settings)],
        level=log_level,
        force=True,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        add_trace_context,
        sanitize_sensitive_data,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "console":
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=settings.log_output == "stdout"),
        ]
    else:
        # One JSON object per line
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=cast("Any", processors),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
