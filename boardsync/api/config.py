"""
/config: non-secret connection defaults for the client
"""

from fastapi import APIRouter, Depends

from boardsync.config import Settings, get_settings

router = APIRouter(tags=["config"])


@router.get("/config")
async def client_config(settings: Settings = Depends(get_settings)) -> dict:
    """Workspace / fragment type defaults; tokens are never served"""
    return {
        "API_BASE_URL": "/api",
        "WORKSPACE_ID": settings.WORKSPACE_ID,
        "FRAGMENT_TYPE_ID": settings.FRAGMENT_TYPE_ID,
    }
