"""
FastAPI dependencies.

Components are built once in create_app() and kept on app.state; routes
receive them through these functions so tests can swap any of them.
"""

from fastapi import Request

from .config import Settings
from .core.cache import MediaCache
from .services.media import MediaService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_media_cache(request: Request) -> MediaCache:
    return request.app.state.cache


def get_media_service(request: Request) -> MediaService:
    return request.app.state.media_service
