"""
Relay request logging middleware

Every relayed call gets a trace id (taken from X-Trace-ID or generated) that
is bound into the structlog context, forwarded upstream by the proxy routes
and echoed back in the response headers. Health and metrics endpoints are not logged.
"""

import contextvars
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

log = structlog.get_logger()

QUIET_PATHS = ("/health", "/metrics")

_trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")


def get_trace_id() -> str:
    """Trace id of the request being relayed ("" outside a request)"""
    return _trace_id_var.get()


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """One log line per relayed request, level by outcome"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get("X-Trace-ID") or uuid.uuid4().hex
        _trace_id_var.set(trace_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(trace_id=trace_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = int((time.monotonic() - start) * 1000)

        if not request.url.path.startswith(QUIET_PATHS):
            level = log.warning if response.status_code >= 500 else log.info
            level(
                "Relayed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Duration-Ms"] = str(duration_ms)
        return response
