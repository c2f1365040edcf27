"""Structured JSON logging for the FitMatch suggestion engine.

Every record is rendered as one JSON object carrying the event name and the
correlation id of the operation that produced it. Account identifiers are
replaced by a short stable digest so ledger activity for one account can be
followed across log lines without exposing the id itself; idempotency keys,
credentials, emails and URLs are masked outright.
"""

from __future__ import annotations

import contextlib
import contextvars
import hashlib
import json
import logging
import os
import re
import uuid
from typing import Any, Dict, Iterator, Mapping, Optional, TextIO

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("correlation_id", default=None)

# Attributes every LogRecord carries; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

_HASHED_KEYS = frozenset({"account_id"})
_MASKED_KEYS = frozenset({"idempotency_key", "api_key", "apikey", "authorization", "email", "session_id"})
_EMAIL = re.compile(r"[\w.\-+]+@[\w\-]+(\.[\w\-]+)+")
_URL = re.compile(r"^https?://", re.IGNORECASE)

MASK = "[redacted]"


def account_digest(account_id: str) -> str:
    return "acct:" + hashlib.sha256(account_id.encode("utf-8")).hexdigest()[:10]


def _scrub_text(value: str) -> str:
    if _URL.match(value):
        return "[redacted-url]"
    return _EMAIL.sub("[redacted-email]", value)


def redact_for_log(payload: Any, key: Optional[str] = None) -> Any:
    """Return a JSON-safe copy of ``payload`` with sensitive values masked."""

    if key is not None and payload is not None:
        lowered = key.lower()
        if lowered in _HASHED_KEYS:
            return account_digest(str(payload))
        if lowered in _MASKED_KEYS:
            return MASK
    if payload is None or isinstance(payload, (bool, int, float)):
        return payload
    if isinstance(payload, str):
        return _scrub_text(payload)
    if isinstance(payload, Mapping):
        return {str(name): redact_for_log(value, str(name)) for name, value in payload.items()}
    if isinstance(payload, (list, tuple, set, frozenset)):
        return [redact_for_log(value) for value in payload]
    return _scrub_text(str(payload))


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON with correlation metadata."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", message),
            "message": message,
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        for name, value in record.__dict__.items():
            if name in _RECORD_ATTRS or name in payload:
                continue
            payload[name] = redact_for_log(value, name)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: int | str | None = None, stream: TextIO | None = None) -> None:
    """Install a single JSON handler on the root logger.

    ``LOG_LEVEL`` sets the default level; ``LOG_FORMAT=text`` switches to a
    plain formatter for local debugging.
    """

    handler = logging.StreamHandler(stream)
    if os.getenv("LOG_FORMAT", "json").lower() == "text":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing.formatter, JsonFormatter) or getattr(existing, "_fitmatch", False):
            root.removeHandler(existing)
    handler._fitmatch = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO"))


def get_logger(name: str) -> logging.Logger:
    """Module logger; configures logging on first use if nothing else has."""

    if not logging.getLogger().handlers:
        configure_logging()
    return logging.getLogger(name)


def ensure_correlation_id(correlation_id: str | None = None) -> str:
    """Adopt ``correlation_id`` if given, else keep or mint the current one."""

    if correlation_id:
        CORRELATION_ID.set(correlation_id)
        return correlation_id
    current = CORRELATION_ID.get()
    if current:
        return current
    minted = uuid.uuid4().hex
    CORRELATION_ID.set(minted)
    return minted


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    token = CORRELATION_ID.set(correlation_id or uuid.uuid4().hex)
    try:
        yield CORRELATION_ID.get()  # type: ignore[misc]
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with structured fields.

    Field names that clash with LogRecord attributes are prefixed with
    ``field_`` rather than rejected by the logging module.
    """

    correlation_id = ensure_correlation_id(fields.pop("correlation_id", None))
    exc_info = fields.pop("exc_info", None)
    extra: Dict[str, Any] = {"event": event, "correlation_id": correlation_id}
    for name, value in fields.items():
        safe_name = f"field_{name}" if name in _RECORD_ATTRS else name
        extra[safe_name] = redact_for_log(value, name)
    logger.log(level, event, exc_info=exc_info, extra=extra)


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None) -> Iterator[str]:
    """Run one named operation under its own correlation id."""

    with correlation_context(correlation_id) as scoped_id:
        log_event(logging.getLogger(__name__), logging.DEBUG, "operation_started", operation=name)
        yield scoped_id


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "account_digest",
    "configure_logging",
    "correlation_context",
    "ensure_correlation_id",
    "get_logger",
    "log_event",
    "operation_context",
    "redact_for_log",
]
