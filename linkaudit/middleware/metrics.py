"""Middleware for request metrics using FastAPI's middleware system."""

import logging
from functools import cache
from http import HTTPStatus
from time import monotonic

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from linkaudit.metrics import get_metrics_client
from linkaudit.middleware import ScopeKey

logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for instrumenting request level metrics. Timing and status codes are
    collected per known path, and status codes for all paths (known and unknown).
    """

    @cache
    def _build_metric_name(self, method: str, path: str) -> str:
        name = "{}.{}".format(method, path.lower().lstrip("/").replace("/", ".")).lower()
        return name.replace("{", "").replace("}", "")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Capture request metrics including timing and status codes."""
        metrics_client = get_metrics_client()
        request.scope[ScopeKey.METRICS_CLIENT] = metrics_client

        started_at = monotonic()
        try:
            response = await call_next(request)

            duration = (monotonic() - started_at) * 1000
            status_code = response.status_code

            # Entry ids make the paths of unknown entries unbounded, so 404s are only
            # counted in the general `response.status_codes` metric.
            if status_code != HTTPStatus.NOT_FOUND:
                metric_name = self._build_metric_name(request.method, _route_path(request))
                metrics_client.timing(f"{metric_name}.timing", value=duration)
                metrics_client.increment(f"{metric_name}.status_codes.{status_code}")

            metrics_client.increment(f"response.status_codes.{status_code}")
            return response

        except Exception:
            duration = (monotonic() - started_at) * 1000
            metric_name = self._build_metric_name(request.method, _route_path(request))
            status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value

            metrics_client.timing(f"{metric_name}.timing", value=duration)
            metrics_client.increment(f"{metric_name}.status_codes.{status_code}")
            metrics_client.increment(f"response.status_codes.{status_code}")
            raise


def _route_path(request: Request) -> str:
    """Return the path template of the matched route (e.g. `/api/v1/urls/{entry_id}`),
    falling back to the raw path.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path
