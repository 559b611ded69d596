"""Structured Logging — JSON lines in production, readable text locally.

Invariants:
    - Every record carries timestamp, level, logger and message
    - Known `extra=` fields (project, user, AI feature, billing ids) are emitted only when set
    - setup_logging is idempotent: a second call swaps the handler instead of stacking one

Design Decisions:
    - Hand-written JSONFormatter over a logging library: the stdlib covers it (ADR: simplicity)
    - SQLAlchemy engine and httpx chatter capped at WARNING so request logs stay readable
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "project_id", "user_id", "feature", "model", "attempt",
    "input_tokens", "output_tokens", "cost_usd",
    "error_code", "field", "path", "invoice_id", "event_type", "driver",
)

_NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "stripe")
_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s%(context)s"


def record_context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Plain lines with the context fields appended as key=value pairs."""

    def __init__(self):
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        context = record_context(record)
        record.context = (
            " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]" if context else ""
        )
        return super().format(record)


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    global _handler
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _handler = handler

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
