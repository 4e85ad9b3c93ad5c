"""
Local relay: FastAPI app between the board client and the remote services

- /api/*       -> fragment store (caller's Authorization header forwarded)
- /auth/token  -> identity provider token endpoint
- /config      -> non-secret client defaults
- /health, /metrics
"""

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from boardsync import __version__
from boardsync.api.auth import router as auth_router
from boardsync.api.config import router as config_router
from boardsync.api.health import router as health_router
from boardsync.api.proxy import router as proxy_router
from boardsync.config import get_settings
from boardsync.observability.logging_config import setup_logging
from boardsync.observability.metrics_middleware import MetricsMiddleware
from boardsync.observability.request_logger import RequestLoggerMiddleware

settings = get_settings()

setup_logging(env=settings.ENV, level=settings.LOG_LEVEL)
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Shared upstream client for the app's lifetime"""
    log.info("Relay starting", env=settings.ENV, upstream=settings.RELAY_UPSTREAM_URL)
    application.state.http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    yield

    await application.state.http.aclose()
    log.info("Relay stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=__version__,
    lifespan=lifespan,
)

# ── Middleware (registered bottom-up, executed top-down) ──
app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# ── Prometheus ──
app.mount("/metrics", make_asgi_app())

# ── Routes ──
app.include_router(health_router)
app.include_router(config_router)
app.include_router(auth_router)
app.include_router(proxy_router)


def run() -> None:
    import uvicorn

    uvicorn.run("boardsync.main:app", host="127.0.0.1", port=settings.RELAY_PORT)


if __name__ == "__main__":
    run()
