"""
/api/*: forward fragment store calls upstream with the caller's bearer token
"""

import httpx
import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from boardsync.api.deps import get_http_client
from boardsync.config import Settings, get_settings
from boardsync.observability.request_logger import get_trace_id

router = APIRouter(tags=["relay"])
log = structlog.get_logger()


@router.api_route("/api/{path:path}", methods=["GET", "POST", "PATCH", "PUT", "DELETE"])
async def forward_api(
    path: str,
    request: Request,
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> Response:
    url = f"{settings.RELAY_UPSTREAM_URL.rstrip('/')}/api/{path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"

    headers = {"Content-Type": "application/json", "X-Trace-ID": get_trace_id()}
    if auth := request.headers.get("authorization"):
        headers["Authorization"] = auth

    body = await request.body()
    try:
        upstream = await http.request(request.method, url, content=body or None, headers=headers)
    except httpx.HTTPError as e:
        log.error("Upstream fragment store unreachable", path=path, error=str(e))
        return JSONResponse({"error": "Proxy error"}, status_code=502)

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/json"),
    )
