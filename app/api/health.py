"""Health check endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from app import __version__
from texel_scene import CURRENT_VERSION

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    scene_version: int


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="ok", version=__version__, scene_version=CURRENT_VERSION)
