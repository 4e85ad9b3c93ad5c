"""
Relay request metrics middleware

Routes are labelled by their template (/api/{path:path}, /auth/token), never
by the raw path, so fragment ids do not blow up the label set.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from boardsync.observability.metrics import RELAY_REQUEST_DURATION, RELAY_REQUEST_TOTAL
from boardsync.observability.request_logger import QUIET_PATHS


def route_label(request: Request) -> str:
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if template:
        return template
    # unmatched (404) requests share one label
    return "unmatched"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.startswith(QUIET_PATHS):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        labels = {"method": request.method, "route": route_label(request)}
        RELAY_REQUEST_TOTAL.labels(status_code=str(response.status_code), **labels).inc()
        RELAY_REQUEST_DURATION.labels(**labels).observe(elapsed_ms)
        return response
