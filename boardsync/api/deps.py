"""
Relay dependencies (overridable in tests via app.dependency_overrides)
"""

import httpx
from fastapi import Request


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """Shared upstream client created in the app lifespan"""
    return request.app.state.http
