"""
/auth/token: same-origin proxy for the identity provider's token endpoint

Public PKCE client, so there is no secret to add; the relay only keeps the
browser's token calls same-origin.
"""

import httpx
import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from boardsync.api.deps import get_http_client
from boardsync.config import AuthConfig, Settings, get_settings

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()


@router.post("/token")
async def token(
    request: Request,
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> Response:
    upstream_url = AuthConfig.from_settings(settings).upstream_token_url
    body = await request.body()
    try:
        upstream = await http.post(
            upstream_url,
            content=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.HTTPError as e:
        log.error("Identity provider unreachable", error=str(e))
        return JSONResponse({"error": "Token proxy error"}, status_code=502)

    if upstream.is_error:
        log.warning("Token endpoint rejected grant", status_code=upstream.status_code)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", "application/json"),
    )
