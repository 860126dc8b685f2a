"""
Logging for the Okta test data seeder.

Provides:
- A per-run correlation ID (run_id) kept in a context variable
- Structured JSON logging, or plain text logging for interactive use
- Redaction of secrets in logged payloads

Logs go to stderr; stdout is reserved for the settings summary.

Usage:
    from okta_test_data.core.observability import configure_logging, set_run_id
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_run_id_ctx: ContextVar[str] = ContextVar("run_id", default="")

# Body fields that must never reach a log line
SENSITIVE_FIELDS = {
    "password",
    "token",
    "api_token",
    "client_secret",
    "authorization",
}

_STANDARD_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
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
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
    "asctime",
    "run_id",
}


def generate_run_id() -> str:
    return str(uuid.uuid4())


def get_run_id() -> str:
    """Get the current run ID from context."""
    return _run_id_ctx.get()


def set_run_id(run_id: str) -> None:
    """Set the run ID for the current context."""
    _run_id_ctx.set(run_id)


def extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed to the log call through `extra`."""
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_ATTRS}


def redact(payload: Any) -> Any:
    """Return a copy of payload with sensitive fields masked."""
    if isinstance(payload, dict):
        return {
            k: "***REDACTED***" if k.lower() in SENSITIVE_FIELDS else redact(v)
            for k, v in payload.items()
        }
    if isinstance(payload, list):
        return [redact(item) for item in payload]
    return payload


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per record with:
    - timestamp: ISO 8601 format
    - level, logger, message
    - run_id: correlation ID (if set)
    - exception: type and message (if present)
    - extra: any fields passed via logging extra
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = get_run_id()
        if run_id:
            log_entry["run_id"] = run_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        extra_keys = extra_fields(record)
        if extra_keys:
            log_entry["extra"] = redact(extra_keys)

        return json.dumps(log_entry, default=str)


class RunIdFilter(logging.Filter):
    """Attach the current run ID to every record for plain text output."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = get_run_id() or "-"
        return True


PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(run_id)s] %(name)s: %(message)s"


class PlainFormatter(logging.Formatter):
    """Plain text formatter that appends redacted extras as key=value pairs."""

    def __init__(self) -> None:
        super().__init__(PLAIN_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = redact(extra_fields(record))
        if not extras:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return f"{line} {pairs}"


def configure_logging(level: str = "INFO", structured: bool = False) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Emit JSON lines instead of plain text
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.addFilter(RunIdFilter())
        handler.setFormatter(PlainFormatter())

    root_logger.addHandler(handler)

    # httpx logs every request at INFO; keep it for DEBUG runs only
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if root_logger.level <= logging.DEBUG else logging.WARNING
    )
