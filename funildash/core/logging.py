"""FunilDash — Structured JSON Logging.

One JSON object per line on stdout. Request and entity context travels in
``extra=`` and is copied onto the line under its own key.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from funildash.config import settings

# Context keys lifted from ``extra=`` onto the JSON line
EXTRA_FIELDS = (
    "endpoint",
    "company_id",
    "entity_type",
    "entity_id",
    "duration_ms",
    "status_code",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def get_logger(area: str) -> logging.Logger:
    """Return the ``funildash.<area>`` logger, writing JSON lines to stdout.

    The handler is attached once per logger and lines do not propagate to the
    root logger, so a server that configures root logging does not print them
    twice.
    """
    logger = logging.getLogger(f"funildash.{area}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return logger
