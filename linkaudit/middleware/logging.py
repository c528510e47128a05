"""The middleware that records access logs for Linkaudit."""

import logging
import time
from datetime import datetime
from typing import Any, Optional

from asgi_correlation_id.context import correlation_id
from pydantic import BaseModel
from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("request.summary")


class RequestSummaryLogDataModel(BaseModel):
    """Log metadata of the request summary."""

    errno: int
    time: datetime
    path: str
    method: str
    agent: Optional[str] = None
    querystring: dict[str, Any]
    code: int
    rid: Optional[str] = None

    def log_extra(self) -> dict[str, Any]:
        """Dump the model for the `extra` of a log record, with an iso-formatted time."""
        data: dict[str, Any] = self.model_dump()
        data["time"] = self.time.isoformat()
        return data


def create_request_summary_log_data(
    request: Request, message: Message, dt: datetime
) -> RequestSummaryLogDataModel:
    """Create log data for API endpoints."""
    return RequestSummaryLogDataModel(
        errno=0,
        time=dt,
        agent=request.headers.get("User-Agent"),
        path=request.url.path,
        method=request.method,
        querystring=dict(request.query_params),
        code=message["status"],
        # Provided by the asgi-correlation-id middleware.
        rid=correlation_id.get(),
    )


class LoggingMiddleware:
    """An ASGI middleware for logging."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware and store the ASGI app instance."""
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        """Log requests."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                request = Request(scope=scope)
                dt: datetime = datetime.fromtimestamp(time.time())
                log_data = create_request_summary_log_data(request, message, dt)
                logger.info("", extra=log_data.log_extra())

            await send(message)

        await self.app(scope, receive, send_wrapper)
        return
