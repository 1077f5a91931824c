from typing import Annotated

from fastapi import APIRouter, Depends

from ..core.config import Settings
from ..schemas.session import HealthResponse
from .dependencies import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(settings: Annotated[Settings, Depends(get_settings)]) -> dict:
    return {"status": "ok", "port": settings.HTTP_PORT}
