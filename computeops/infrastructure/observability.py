"""Structured Logging — one JSON object per log line for the operation engine.

Invariants:
    - Every line carries timestamp, level, logger name, and message
    - Engine fields (project, zone, operation, attempt, delay_ms, ...) appear only when set
    - Only the `computeops` logger tree is configured; the host's root logger is left alone
    - Calling setup_logging again replaces its previous handler instead of stacking a second one

Design Decisions:
    - Plain logging.Formatter subclass: the engine logs through the stdlib `logging` API,
      so any host that already configures logging keeps full control
    - Field names match ErrorContext.log_fields(): retry and poll logs join on them
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any


LOGGER_NAME = "computeops"

EXTRA_FIELDS: tuple[str, ...] = (
    "project", "zone", "region", "operation", "scope", "resource",
    "attempt", "delay_ms", "status_code", "error_code", "error_class",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Render a record and its engine fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_engine_fields(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _engine_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = {key: getattr(record, key, None) for key in EXTRA_FIELDS}
    return {key: value for key, value in fields.items() if value is not None}


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Attach a stream handler to the `computeops` logger. Returns the handler."""
    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if getattr(existing, "_computeops_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    handler._computeops_handler = True
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
