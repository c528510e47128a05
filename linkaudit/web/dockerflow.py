"""Dockerflow Endpoints."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import ORJSONResponse, RedirectResponse, Response

from linkaudit.config import settings
from linkaudit.processing import service as queue_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def redirect_home_to_docs():
    """Redirects home endpoint to the interactive documentation provided by FastAPI."""
    response = RedirectResponse(url="/docs")
    return response


@router.get("/__heartbeat__", tags=["__heartbeat__"], summary="Dockerflow: __heartbeat__")
async def heartbeat() -> Response:
    """Dockerflow: Query service heartbeat. Reports the entry storage and the processor state,
    or a 503 until the queue service is initialized.
    """
    service = queue_service.service
    if service is None:
        return ORJSONResponse(status_code=503, content={"status": "error"})

    return ORJSONResponse(
        content={
            "status": "ok",
            "storage": {
                "kind": settings.entries.storage,
                "entries": len(service.store),
                "dirty": service.store.dirty,
            },
            "processor": {
                "isProcessing": service.processor.is_processing,
                "pending": len(service.queue),
            },
        }
    )


@router.get("/__lbheartbeat__", tags=["__lbheartbeat__"], summary="Dockerflow: __lbheartbeat__")
async def lbheartbeat() -> Response:
    """Dockerflow: Query service heartbeat for load balancer. It returns an empty string in the
    response.
    """
    return Response(content="")


@router.get("/__error__", tags=["__error__"], summary="Dockerflow: __error__")
async def test_error() -> Response:
    """Dockerflow: Return an API error to test service error handling."""
    logger.error("The __error__ endpoint was called")
    raise HTTPException(status_code=500, detail="")
