"""Logging configuration

linkaudit logs to stdout only: MozLog JSON in deployed environments and rich
console output when developing or running the CLI.
"""

import logging
import sys
from logging.config import dictConfig
from typing import Any

from dockerflow import logging as dockerflow_logging

from linkaudit.config import settings

LOG_HANDLERS = {"mozlog": "console-mozlog", "pretty": "console-pretty"}

# Loggers routed to the configured handler. A level pins the logger below the
# configured one and keeps it from propagating.
LOGGERS: dict[str, str | None] = {
    "linkaudit": None,
    # One record per HTTP request.
    "request.summary": None,
    # One record per finished analysis job.
    "job.summary": None,
    # httpx logs every analysis request at INFO, `job.summary` already covers them.
    "httpx": "WARNING",
    # `request.summary` replaces the access log of `linkaudit serve`.
    "uvicorn.access": "WARNING",
}


def configure_logging() -> None:
    """Configure logging with MozLog."""
    try:
        handler = LOG_HANDLERS[settings.logging.format]
    except KeyError:
        raise ValueError(
            f"Invalid log format: {settings.logging.format}."
            f" Should either be {' or '.join(repr(name) for name in LOG_HANDLERS)}."
        ) from None

    if settings.current_env.lower() == "production" and handler != LOG_HANDLERS["mozlog"]:
        raise ValueError("Log format must be 'mozlog' in production")

    level: str = settings.logging.level
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": GCPCompatibleJSONFormatter,
                    "logger_name": "linkaudit",
                },
            },
            "handlers": {handler: _handler_config(handler, level)},
            "loggers": {
                name: {
                    "handlers": [handler],
                    "level": pinned or level,
                    "propagate": pinned is None and settings.logging.can_propagate,
                }
                for name, pinned in LOGGERS.items()
            },
        }
    )


def _handler_config(handler: str, level: str) -> dict[str, Any]:
    if handler == LOG_HANDLERS["mozlog"]:
        return {
            "level": level,
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": sys.stdout,
        }
    # URLs and page titles are user input, never render them as rich markup.
    return {
        "level": level,
        "class": "rich.logging.RichHandler",
        "markup": False,
        "rich_tracebacks": True,
        "show_path": False,
    }


class GCPCompatibleJSONFormatter(dockerflow_logging.JsonLogFormatter):
    """Dockerflow JSON formatter that also writes the `severity` field of Cloud Logging."""

    # LogSeverity names understood by Cloud Logging.
    GCP_SEVERITY = {
        logging.CRITICAL: "CRITICAL",
        logging.ERROR: "ERROR",
        logging.WARNING: "WARNING",
        logging.INFO: "INFO",
        logging.DEBUG: "DEBUG",
    }

    def convert_record(self, record):
        """Add `severity` next to the MozLog `Severity`, which Cloud Logging ignores."""
        out = super().convert_record(record)
        out["severity"] = self.GCP_SEVERITY.get(record.levelno, "DEFAULT")
        return out
