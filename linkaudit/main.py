"""App startup point"""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from linkaudit import analysis
from linkaudit.config import settings
from linkaudit.config_logging import configure_logging
from linkaudit.config_sentry import configure_sentry
from linkaudit.entries.persistence import Persister
from linkaudit.entries.storage import create_storage
from linkaudit.entries.store import EntryStore
from linkaudit.exceptions import StorageError
from linkaudit.metrics import configure_metrics, shutdown_metrics
from linkaudit.middleware import logging as mw_logging, metrics
from linkaudit.processing.service import init_service
from linkaudit.web import api_v1, dockerflow

tags_metadata = [
    {
        "name": "urls",
        "description": "Submit URLs for analysis and manage their entries.",
    },
    {
        "name": "queue",
        "description": "Inspect and control the analysis queue.",
    },
]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up various configurations at startup and handle shutdown clean up.
    See lifespan events in fastAPI docs https://fastapi.tiangolo.com/advanced/events/
    """
    configure_logging()
    configure_sentry()
    await configure_metrics()
    await analysis.init_client()

    store = EntryStore(create_storage())
    try:
        await store.restore()
    except StorageError as exc:
        # Start empty rather than refuse to serve. The next flush overwrites the slot.
        logger.error("Failed to restore entries from storage", extra={"error": str(exc)})
    service = init_service(store, analysis.get_client())
    persister = Persister(store, interval=settings.entries.persist_interval_sec)
    persister.start()
    yield
    await service.shutdown()
    await persister.shutdown()
    await analysis.shutdown_client()
    await shutdown_metrics()


app = FastAPI(openapi_tags=tags_metadata, lifespan=lifespan, default_response_class=ORJSONResponse)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    """Use HTTP status code: 400 for all invalid requests."""
    # `exc.errors()` is intentionally omitted in the log to avoid log excessively
    # large error messages.
    logger.warning(f"HTTP 400: request validation error for path: {request.url.path}")
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"detail": exc.errors()}),
    )


# Note: the order of the following middleware registration matters.
# `LoggingMiddleware` should be added after `CorrelationIdMiddleware`.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "HEAD"],
)
app.add_middleware(metrics.MetricsMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.add_middleware(mw_logging.LoggingMiddleware)

app.include_router(dockerflow.router)
app.include_router(api_v1.router, prefix="/api/v1")
