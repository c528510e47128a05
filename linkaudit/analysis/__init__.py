"""Initialize the analysis client"""

import logging

from linkaudit.analysis.backends.fake import FakeAnalysisClient
from linkaudit.analysis.backends.http import HttpAnalysisClient
from linkaudit.analysis.protocol import AnalysisClient
from linkaudit.config import settings
from linkaudit.utils.http_client import create_http_client

logger = logging.getLogger(__name__)

client: AnalysisClient | None = None


def create_client(backend: str | None = None) -> AnalysisClient:
    """Create an analysis client for the given backend, defaulting to the configured one."""
    backend = backend or settings.analysis.backend
    match backend:
        case "http":
            return HttpAnalysisClient(
                http_client=create_http_client(
                    base_url=settings.analysis.url,
                    connect_timeout=settings.analysis.connect_timeout_sec,
                    request_timeout=settings.analysis.request_timeout_sec,
                ),
                endpoint=settings.analysis.endpoint,
                api_key=settings.analysis.api_key,
            )
        case "fake":
            return FakeAnalysisClient()
        case _:
            raise ValueError(f"Unknown analysis backend: {backend}")


async def init_client() -> None:
    """Initialize the analysis client.

    This should only be called once at the startup of application.
    """
    global client

    client = create_client()
    logger.info(
        "Analysis client initialization completed",
        extra={"backend": settings.analysis.backend, "url": settings.analysis.url},
    )


async def shutdown_client() -> None:
    """Close the analysis client and release its connections."""
    global client

    if client is not None:
        await client.close()
        client = None


def get_client() -> AnalysisClient:
    """Return the analysis client"""
    if client is None:
        raise ValueError("Analysis client has not been initialized.")
    return client
