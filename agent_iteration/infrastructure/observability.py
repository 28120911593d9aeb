"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (task_id, attempt, delay_ms, status_code) surfaced when present
    - JSON format in production, human-readable in development
    - setup_logging replaces its own handler on repeat calls (never duplicates lines)

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - Library code only calls logging.getLogger(__name__); the embedding process
      owns setup_logging
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_FIELDS = (
    "task_id", "model", "attempt", "max_attempts", "delay_ms",
    "status_code", "error_code", "input_tokens", "output_tokens",
)
_HANDLER_MARK = "_agent_iteration_handler"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging for the process. Safe to call more than once."""
    for existing in list(logging.root.handlers):
        if getattr(existing, _HANDLER_MARK, False):
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    setattr(handler, _HANDLER_MARK, True)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
