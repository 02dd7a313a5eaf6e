"""FastAPI application entry point."""

from fastapi import FastAPI

from app import __version__
from app.api import health, scenes
from app.config import settings
from app.logging_config import setup_logging

setup_logging(settings.log_level.upper())

app = FastAPI(
    title="Texel Scene Service",
    description="Validation and version migration for ASCII-art editor scenes",
    version=__version__,
    debug=settings.debug,
)

app.include_router(health.router, tags=["health"])
app.include_router(scenes.router, prefix="/scenes", tags=["scenes"])
