"""Sentry Configuration"""

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from sentry_sdk.types import Event, Hint

from linkaudit.config import settings

logger = logging.getLogger(__name__)

REDACTED_TEXT = "[REDACTED]"

# Headers of the analysis service requests that carry credentials.
SENSITIVE_HEADERS = frozenset({"x-api-key", "authorization", "cookie"})

# Local variables that hold submitted URLs.
SENSITIVE_VARS = frozenset({"url", "urls", "accepted", "work", "submission", "raw"})


def configure_sentry() -> None:  # pragma: no cover
    """Configure and initialize Sentry integration."""
    if settings.sentry.mode == "disabled":
        return
    sentry_sdk.init(
        dsn=settings.sentry.dsn,
        integrations=[
            StarletteIntegration(),
            FastApiIntegration(),
        ],
        release=settings.sentry.release or None,
        debug="debug" == settings.sentry.mode,
        before_send=strip_sensitive_data,
        environment=settings.sentry.env,
        traces_sample_rate=settings.sentry.traces_sample_rate,
    )


def strip_sensitive_data(event: Event, hint: Hint) -> Event | None:
    """Filter out the analysis API key and submitted URLs from Sentry events."""
    #  See: https://docs.sentry.io/platforms/python/configuration/filtering/
    request: dict[str, Any] = event.get("request", {})
    if request.get("data"):
        request["data"] = REDACTED_TEXT
    if request.get("query_string"):
        request["query_string"] = REDACTED_TEXT
    headers = request.get("headers")
    if isinstance(headers, dict):
        for name in headers:
            if name.lower() in SENSITIVE_HEADERS:
                headers[name] = REDACTED_TEXT

    try:
        for value in event.get("exception", {}).get("values", []):
            for frame in value.get("stacktrace", {}).get("frames", []):
                frame_vars = frame.get("vars", {})
                for name in frame_vars:
                    if name in SENSITIVE_VARS or name in ("headers", "api_key"):
                        frame_vars[name] = REDACTED_TEXT
    except (AttributeError, TypeError) as e:
        logger.warning(
            f"Encountered {type(e).__name__} for value {e} while filtering Sentry data."
        )

    return event
