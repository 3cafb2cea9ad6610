from fastapi import APIRouter, Depends

from orbi.config import Settings
from orbi.routers.utils.dependencies import get_app_settings

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/config.json")
def frontend_config(settings: Settings = Depends(get_app_settings)) -> dict:
    """Runtime configuration read by the mini-app on load."""
    return {"apiUrl": settings.public_api_url}
