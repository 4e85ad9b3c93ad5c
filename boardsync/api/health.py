"""
Liveness check
"""

from fastapi import APIRouter, Depends

from boardsync.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict:
    return {"status": "ok", "app": settings.APP_NAME, "upstream": settings.RELAY_UPSTREAM_URL}
