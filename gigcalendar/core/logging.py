# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Structured JSON logging — one JSON line per record on stdout.

Every module logger lives under the ``gigcalendar`` logger, which owns the
single handler; children propagate to it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from gigcalendar.core.config import settings

ROOT_LOGGER = "gigcalendar"

# ``extra=`` keys copied into the JSON line when present.
EXTRA_FIELDS: tuple[str, ...] = ("request_id", "collection")


class JSONFormatter(logging.Formatter):
    """Emit every log record as a single JSON line for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        return json.dumps(entry, default=str)


def configure_logging(level: str | None = None) -> logging.Logger:
    """Install the JSON handler on the ``gigcalendar`` logger and set its level."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.propagate = False
    root.setLevel(getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO))
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under ``gigcalendar``, configuring the handler on first use."""
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    name = name or ROOT_LOGGER
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
