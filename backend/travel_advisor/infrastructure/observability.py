"""Structured Logging — one JSON object per line, carrying the sync context.

Invariants:
    - Every line has timestamp (from the record, UTC), level, logger and message
    - Sync context passed via `extra=` (city, country, audit, upstream, batch, ...)
      is copied to top-level keys; None values are left out
    - setup_logging() is idempotent: calling it again replaces its own handler

Design Decisions:
    - Stdlib formatter, no logging framework: the only consumers are log shippers
      reading JSON lines from stdout
    - "text" format for local runs keeps the city in the line when it is present
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "city", "country", "audit", "error_code", "attempt", "upstream",
    "status_code", "duration_ms", "batch", "count", "scope", "path",
)

_HANDLER_NAME = "travel_advisor"


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """Render a record and its sync context as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines with the sync context appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the service's root handler, replacing one from an earlier call."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # httpx logs every request at INFO; the upstream clients log their own calls
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return handler
