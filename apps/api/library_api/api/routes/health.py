from fastapi import APIRouter, Depends

from ...core.config import Settings
from ...domain.responses import ApiResponse, success_response
from ..dependencies import get_app_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=ApiResponse[dict])
def health(settings: Settings = Depends(get_app_settings)) -> ApiResponse[dict]:
    return success_response(
        {"status": "ok", "environment": settings.app_env},
        message="Service healthy",
    )
