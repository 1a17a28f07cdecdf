"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Dict

from pulse.core.context import get_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS: Dict[str, str] = {
    "httpx": "WARNING",
    "openai": "WARNING",
    "opik": "WARNING",
    "apscheduler": "INFO",
}


class RequestIdFilter(logging.Filter):
    """Stamp each record with the active request or batch-run id."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Install the console handler once; later calls are ignored."""
    if getattr(configure_logging, "_configured", False):
        return

    level = log_level.upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "filters": {"request_id": {"()": RequestIdFilter}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                    "filters": ["request_id"],
                }
            },
            "loggers": {
                "pulse": {"level": level},
                **{name: {"level": quiet} for name, quiet in QUIET_LOGGERS.items()},
            },
            "root": {"handlers": ["console"], "level": level},
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", level)
    setattr(configure_logging, "_configured", True)
