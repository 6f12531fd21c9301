"""Structured Logging — one JSON object per line, order and payment ids as fields.

Invariants:
    - Every record carries timestamp, level, logger, message and service name
    - Order/payment correlation fields (order_id, provider_txn_id, ...) appear only when set
    - setup_logging is idempotent: a second call replaces its handler, never stacks one
    - Stripe's own request logging and SQLAlchemy echo stay at WARNING

Design Decisions:
    - Hand-written formatter on stdlib logging; no logging dependency
    - "text" format keeps the correlation fields visible for local runs
"""

import json
import logging
from datetime import datetime, timezone

SERVICE_NAME = "book-porter-api"

CORRELATION_FIELDS = (
    "order_id", "book_id", "provider_txn_id", "event_type",
    "actor_role", "error_code", "path",
)

_QUIET_LOGGERS = ("stripe", "sqlalchemy.engine", "httpx")

_HANDLER_NAME = "book-porter"


def _correlation(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CORRELATION_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
            **_correlation(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with correlation fields appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = _correlation(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
