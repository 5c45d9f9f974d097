"""
Logging setup.

Everything goes to stdout; gunicorn / the container runtime collects it.
Call `configure_logging()` once at startup, then use
`logging.getLogger(__name__)` in each module.
"""
from __future__ import annotations

import logging.config
import sys
from typing import Any

from moodjournal.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logging_config(level: str | None = None) -> dict[str, Any]:
    level = (level or settings.LOG_LEVEL).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "moodjournal": {
                "level": level,
                "handlers": ["console"],
                "propagate": False,
            },
            # SQL echo stays off unless explicitly raised
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }


def configure_logging(level: str | None = None) -> None:
    logging.config.dictConfig(get_logging_config(level))
