"""Structured Logging — JSON formatter and one-shot setup for the print service.

Invariants:
    - Every line carries timestamp, level, logger name and message
    - Order pipeline fields (order_id, tracking_code, blob_ref, page_count,
      error_code, attempt, path) are surfaced when a record carries them
    - setup_logging is idempotent: calling it twice does not duplicate output

Design Decisions:
    - setup_logging called once on startup via lifespan
    - pypdf reports recoverable damage in scanner output as warnings; those are
      raised to ERROR so a tolerant parse does not flood the log
"""

import json
import logging
from datetime import datetime, timezone


PIPELINE_FIELDS = (
    "order_id", "tracking_code", "blob_ref", "page_count",
    "error_code", "attempt", "path",
)

_NOISY_LOGGERS = {"pypdf": logging.ERROR, "httpx": logging.WARNING}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({
            key: record.__dict__[key]
            for key in PIPELINE_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Route all records through a single stderr handler."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root = logging.getLogger()
    for existing in [h for h in root.handlers if getattr(h, "_campus_print", False)]:
        root.removeHandler(existing)
    handler._campus_print = True
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)
